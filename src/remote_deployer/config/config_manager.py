"""
Configuration management system for the remote deployer.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, fields, asdict
import logging

from ..error_handling import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_BRANCH = "main"


@dataclass
class RepositoryConfig:
    """Source repository configuration."""
    url: Optional[str] = None
    access_token: Optional[str] = None
    branch: Optional[str] = None  # prompted for; blank means DEFAULT_BRANCH
    workspace: str = "."
    compose_files: list = field(default_factory=lambda: [
        "docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"
    ])
    requirements_file: str = "requirements.txt"


@dataclass
class RemoteConfig:
    """SSH connection configuration for the target host."""
    user: Optional[str] = None
    host: Optional[str] = None
    key_path: Optional[str] = None
    port: int = 22
    connect_timeout: int = 15
    base_dir: Optional[str] = None  # defaults to /home/<user>


@dataclass
class ApplicationConfig:
    """Application container configuration."""
    port: Optional[int] = None
    restart_policy: str = "unless-stopped"


@dataclass
class ProxyConfig:
    """Nginx reverse proxy configuration."""
    sites_available: str = "/etc/nginx/sites-available"
    sites_enabled: str = "/etc/nginx/sites-enabled"
    listen_port: int = 80
    server_name: str = "_"


@dataclass
class ProvisioningConfig:
    """Remote host provisioning configuration."""
    enabled: bool = True
    docker_gpg_url: str = "https://download.docker.com/linux/ubuntu/gpg"
    docker_apt_url: str = "https://download.docker.com/linux/ubuntu"


@dataclass
class ValidationConfig:
    """Post-deployment validation configuration."""
    http_check: bool = True
    http_timeout: int = 10


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    directory: str = "."
    format: str = "[%(asctime)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    structured: bool = False


@dataclass
class AppConfig:
    """Complete application configuration."""
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    application: ApplicationConfig = field(default_factory=ApplicationConfig)
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    provisioning: ProvisioningConfig = field(default_factory=ProvisioningConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_SECTIONS = {
    "repository": RepositoryConfig,
    "remote": RemoteConfig,
    "application": ApplicationConfig,
    "proxy": ProxyConfig,
    "provisioning": ProvisioningConfig,
    "validation": ValidationConfig,
    "logging": LoggingConfig,
}


class ConfigManager:
    """
    Manages application configuration from multiple sources.

    Configuration is loaded in the following order (later sources override earlier):
    1. Default configuration
    2. Configuration file
    3. Environment variables
    4. Command-line arguments and prompts (applied by the CLI)
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to YAML configuration file
        """
        self.config_file = Path(config_file) if config_file else None
        self._config: Optional[AppConfig] = None
        self._env_var_mapping = self._create_env_var_mapping()

    def _create_env_var_mapping(self) -> Dict[str, str]:
        """Create mapping of environment variables to config paths."""
        return {
            # Repository configuration
            "GITHUB_TOKEN": "repository.access_token",
            "DEPLOY_REPO_URL": "repository.url",
            "DEPLOY_BRANCH": "repository.branch",
            "DEPLOY_WORKSPACE": "repository.workspace",

            # Remote host configuration
            "DEPLOY_REMOTE_USER": "remote.user",
            "DEPLOY_REMOTE_HOST": "remote.host",
            "DEPLOY_SSH_KEY": "remote.key_path",
            "DEPLOY_SSH_PORT": "remote.port",
            "DEPLOY_CONNECT_TIMEOUT": "remote.connect_timeout",
            "DEPLOY_REMOTE_BASE_DIR": "remote.base_dir",

            # Application configuration
            "DEPLOY_APP_PORT": "application.port",

            # Proxy configuration
            "DEPLOY_PROXY_LISTEN_PORT": "proxy.listen_port",
            "DEPLOY_PROXY_SERVER_NAME": "proxy.server_name",

            # Validation configuration
            "DEPLOY_HTTP_CHECK": "validation.http_check",
            "DEPLOY_HTTP_TIMEOUT": "validation.http_timeout",

            # Logging configuration
            "LOG_LEVEL": "logging.level",
            "LOG_DIR": "logging.directory",
            "LOG_FORMAT": "logging.format",
        }

    def load_config(self) -> AppConfig:
        """
        Load configuration from all sources.

        Returns:
            Complete application configuration

        Raises:
            ConfigurationError: If the merged configuration is invalid
        """
        if self._config is not None:
            return self._config

        config_dict = self._get_default_config()

        if self.config_file and self.config_file.exists():
            file_config = self._load_config_file(self.config_file)
            config_dict = self._merge_configs(config_dict, file_config)

        env_config = self._load_env_config()
        config_dict = self._merge_configs(config_dict, env_config)

        config_dict = self._substitute_env_vars(config_dict)

        self._validate_config(config_dict)

        self._config = self._dict_to_config(config_dict)
        return self._config

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return AppConfig().to_dict()

    def _load_config_file(self, config_path: Path) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to configuration file

        Returns:
            Configuration dictionary
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to load config file {config_path}", cause=e
            )

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        logger.debug(f"Loaded configuration from {config_path}")
        return config

    def _load_env_config(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        Returns:
            Configuration dictionary from environment variables
        """
        env_config: Dict[str, Any] = {}
        defaults = self._get_default_config()

        for env_var, config_path in self._env_var_mapping.items():
            value = os.getenv(env_var)
            if value is None or value == "":
                continue
            section, key = config_path.split('.')
            converted = self._convert_env_value(value, defaults[section][key], env_var)
            self._set_nested_value(env_config, config_path, converted)

        return env_config

    def _convert_env_value(self, value: str, default: Any, env_var: str) -> Any:
        """
        Convert environment variable string to the type of the field default.

        Args:
            value: String value from environment variable
            default: Default value of the target field
            env_var: Variable name, used in error messages

        Returns:
            Converted value
        """
        if isinstance(default, bool):
            lowered = value.lower()
            if lowered in ('true', 'yes', '1', 'on'):
                return True
            if lowered in ('false', 'no', '0', 'off'):
                return False
            raise ConfigurationError(f"Invalid boolean for {env_var}: {value}", config_key=env_var)

        if isinstance(default, int) or env_var == "DEPLOY_APP_PORT":
            try:
                return int(value)
            except ValueError:
                raise ConfigurationError(f"Invalid integer for {env_var}: {value}", config_key=env_var)

        if isinstance(default, list):
            return [item.strip() for item in value.split(',') if item.strip()]

        return value

    def _set_nested_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """
        Set a nested configuration value using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path (e.g., 'remote.host')
            value: Value to set
        """
        keys = path.split('.')
        current = config

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def _substitute_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Substitute ``${VAR}`` references in configuration values.

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with environment variables substituted
        """
        def substitute_recursive(obj):
            if isinstance(obj, dict):
                return {k: substitute_recursive(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [substitute_recursive(item) for item in obj]
            elif isinstance(obj, str) and obj.startswith('${') and obj.endswith('}'):
                env_var = obj[2:-1]
                return os.getenv(env_var, obj)
            else:
                return obj

        return substitute_recursive(config)

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge two configuration dictionaries.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """
        Validate configuration values.

        Args:
            config: Configuration dictionary

        Raises:
            ConfigurationError: If configuration is invalid
        """
        unknown_sections = set(config) - set(_SECTIONS)
        if unknown_sections:
            raise ConfigurationError(
                f"Unknown configuration sections: {sorted(unknown_sections)}"
            )

        for section, section_cls in _SECTIONS.items():
            if not isinstance(config.get(section), dict):
                raise ConfigurationError(
                    f"Configuration section [{section}] must be a mapping", config_section=section
                )
            known = {f.name for f in fields(section_cls)}
            unknown = set(config.get(section, {})) - known
            if unknown:
                raise ConfigurationError(
                    f"Unknown keys in [{section}]: {sorted(unknown)}", config_section=section
                )

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        log_level = str(config.get("logging", {}).get("level", "INFO")).upper()
        if log_level not in valid_levels:
            raise ConfigurationError(
                f"Invalid log level: {log_level}. Valid levels: {sorted(valid_levels)}",
                config_section="logging", config_key="level"
            )
        config["logging"]["level"] = log_level

        for section, key in (("remote", "port"), ("application", "port"), ("proxy", "listen_port")):
            value = config.get(section, {}).get(key)
            if value is None:
                continue
            validate_port(value, f"{section}.{key}")

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> AppConfig:
        """
        Convert configuration dictionary to AppConfig object.

        Args:
            config_dict: Configuration dictionary

        Returns:
            AppConfig object
        """
        return AppConfig(**{
            section: section_cls(**config_dict.get(section, {}))
            for section, section_cls in _SECTIONS.items()
        })

    def get_config(self) -> AppConfig:
        """
        Get the current configuration.

        Returns:
            Application configuration
        """
        if self._config is None:
            return self.load_config()
        return self._config

    def save_config(self, config_path: Optional[Path] = None) -> None:
        """
        Save current configuration to file, without secrets.

        Args:
            config_path: Path to save configuration file
        """
        if config_path is None:
            config_path = self.config_file or Path("deploy.yaml")

        config_dict = self.get_config().to_dict()
        config_dict["repository"].pop("access_token", None)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2)

        logger.info(f"Configuration saved to {config_path}")


def validate_port(value: Any, name: str = "port") -> int:
    """
    Parse and range-check a TCP port.

    Raises:
        ConfigurationError: If the value is not an integer in 1..65535
    """
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid {name}: {value!r} is not an integer", config_key=name)

    if isinstance(value, bool) or not 1 <= port <= 65535:
        raise ConfigurationError(f"Invalid {name}: {value!r} is outside 1-65535", config_key=name)
    return port


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_file: Optional[Union[str, Path]] = None) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        config_file: Path to configuration file (only used on first call)

    Returns:
        ConfigManager instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_file)
    return _config_manager


def get_config() -> AppConfig:
    """
    Get the current application configuration.

    Returns:
        Application configuration
    """
    return get_config_manager().get_config()


def reset_config_manager() -> None:
    """Drop the global configuration manager so the next call reloads."""
    global _config_manager
    _config_manager = None
