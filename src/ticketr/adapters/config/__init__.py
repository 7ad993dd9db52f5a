"""
Configuration providers.
"""

from .environment import EnvironmentConfigProvider, load_env_file
from .file_provider import FileConfigProvider, find_config_file


__all__ = [
    "EnvironmentConfigProvider",
    "FileConfigProvider",
    "find_config_file",
    "load_env_file",
]
