"""
Adapters - Jira, local ticket files and configuration sources.
"""

from .config import EnvironmentConfigProvider, FileConfigProvider
from .jira import JiraAdapter, JiraApiClient
from .repository import YamlTicketRepository


__all__ = [
    "EnvironmentConfigProvider",
    "FileConfigProvider",
    "JiraAdapter",
    "JiraApiClient",
    "YamlTicketRepository",
]
