"""
Configuration management for the remote deployer.
"""

from .config_manager import (
    ConfigManager, AppConfig, RepositoryConfig, RemoteConfig, ApplicationConfig,
    ProxyConfig, ProvisioningConfig, ValidationConfig, LoggingConfig,
    DEFAULT_BRANCH, get_config_manager, get_config, reset_config_manager, validate_port
)

__all__ = [
    "ConfigManager",
    "AppConfig",
    "RepositoryConfig",
    "RemoteConfig",
    "ApplicationConfig",
    "ProxyConfig",
    "ProvisioningConfig",
    "ValidationConfig",
    "LoggingConfig",
    "DEFAULT_BRANCH",
    "get_config_manager",
    "get_config",
    "reset_config_manager",
    "validate_port"
]
