"""
Error types and exit codes for the remote deployer.
"""

from .exceptions import (
    DeployerError, ConfigurationError, RepositoryError, ManifestNotFoundError,
    RemoteConnectionError, CommandExecutionError, ProxyConfigurationError,
    EXIT_FAILURE, EXIT_CONFIGURATION, EXIT_MANIFEST_NOT_FOUND, EXIT_REMOTE_UNREACHABLE
)

__all__ = [
    "DeployerError",
    "ConfigurationError",
    "RepositoryError",
    "ManifestNotFoundError",
    "RemoteConnectionError",
    "CommandExecutionError",
    "ProxyConfigurationError",
    "EXIT_FAILURE",
    "EXIT_CONFIGURATION",
    "EXIT_MANIFEST_NOT_FOUND",
    "EXIT_REMOTE_UNREACHABLE"
]
