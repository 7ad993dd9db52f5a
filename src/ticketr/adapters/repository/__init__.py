"""
Local ticket repositories.
"""

from .yaml_repository import YamlTicketRepository


__all__ = ["YamlTicketRepository"]
