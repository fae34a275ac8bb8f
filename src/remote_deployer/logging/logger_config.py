"""
Logger configuration and setup for the remote deployer.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Union
from dataclasses import dataclass

from ..config import get_config
from .log_formatter import StructuredFormatter, ColoredFormatter
from .log_handler import DeploymentFileHandler, ConsoleHandler, SecretMaskingFilter


LOG_FILE_PATTERN = "deploy_%Y%m%d_%H%M%S.log"


@dataclass
class LoggerConfig:
    """Configuration for logging system."""
    level: str = "INFO"
    file_path: Optional[str] = None
    format_string: str = "[%(asctime)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_console: bool = True
    enable_file: bool = True
    enable_structured: bool = False
    enable_colors: bool = True


def build_log_path(directory: Union[str, Path] = ".", now: Optional[datetime] = None) -> Path:
    """
    Build the timestamped log file path for a deployment run.

    Args:
        directory: Directory the log file is created in
        now: Timestamp to use (defaults to the current local time)

    Returns:
        Path such as ``./deploy_20240101_120000.log``
    """
    now = now or datetime.now()
    return Path(directory) / now.strftime(LOG_FILE_PATTERN)


class LoggingManager:
    """
    Centralized logging manager for the remote deployer.

    Attaches a console handler and a per-run file handler to the root logger
    and removes them again on close, leaving foreign handlers untouched.
    """

    def __init__(self):
        """Initialize the logging manager."""
        self._handlers: Dict[str, logging.Handler] = {}
        self._configured = False
        self.config: Optional[LoggerConfig] = None
        self.secret_filter = SecretMaskingFilter()

    @property
    def log_file(self) -> Optional[Path]:
        handler = self._handlers.get('file')
        if handler is None:
            return None
        return Path(handler.baseFilename)

    def setup_logging(self, config: Optional[LoggerConfig] = None) -> None:
        """
        Set up the logging system with the specified configuration.

        Args:
            config: Logging configuration (uses app config if not provided)
        """
        if self._configured:
            return

        if config is None:
            app_config = get_config()
            config = LoggerConfig(
                level=app_config.logging.level,
                file_path=str(build_log_path(app_config.logging.directory)),
                format_string=app_config.logging.format,
                date_format=app_config.logging.date_format,
                enable_structured=app_config.logging.structured
            )

        self.config = config

        root_logger = logging.getLogger()
        root_logger.setLevel(self._get_log_level(config.level))

        if config.enable_console:
            console_handler = self._create_console_handler(config)
            root_logger.addHandler(console_handler)
            self._handlers['console'] = console_handler

        if config.enable_file and config.file_path:
            file_handler = self._create_file_handler(config)
            root_logger.addHandler(file_handler)
            self._handlers['file'] = file_handler

        self._configure_third_party_loggers()

        logging.getLogger(__name__).debug(f"Logging system initialized with level: {config.level}")

        self._configured = True

    def _create_console_handler(self, config: LoggerConfig) -> logging.Handler:
        """Create console handler with appropriate formatter."""
        handler = ConsoleHandler(sys.stdout)
        handler.setLevel(self._get_log_level(config.level))

        if config.enable_colors and sys.stdout.isatty():
            formatter = ColoredFormatter(config.format_string, config.date_format)
        else:
            formatter = logging.Formatter(config.format_string, config.date_format)

        handler.setFormatter(formatter)
        handler.addFilter(self.secret_filter)
        return handler

    def _create_file_handler(self, config: LoggerConfig) -> logging.Handler:
        """Create the per-run deployment log handler."""
        handler = DeploymentFileHandler(filename=config.file_path)
        # the file always keeps debug output, including remote command output
        handler.setLevel(logging.DEBUG)

        if config.enable_structured:
            formatter = StructuredFormatter()
        else:
            formatter = logging.Formatter(config.format_string, config.date_format)

        handler.setFormatter(formatter)
        handler.addFilter(self.secret_filter)

        logging.getLogger().setLevel(logging.DEBUG)
        return handler

    def _configure_third_party_loggers(self) -> None:
        """Configure third-party library loggers to reduce noise."""
        for logger_name in ('urllib3', 'requests', 'git', 'paramiko'):
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    def _get_log_level(self, level_str: str) -> int:
        """Convert string log level to logging constant."""
        level_mapping = {
            'DEBUG': logging.DEBUG,
            'INFO': logging.INFO,
            'WARNING': logging.WARNING,
            'ERROR': logging.ERROR,
            'CRITICAL': logging.CRITICAL
        }
        return level_mapping.get(level_str.upper(), logging.INFO)

    def close_handlers(self) -> None:
        """Detach and close all handlers created by this manager."""
        root_logger = logging.getLogger()
        for handler in self._handlers.values():
            root_logger.removeHandler(handler)
            handler.close()

        self._handlers.clear()
        self.secret_filter.clear()
        self._configured = False


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(config: Optional[LoggerConfig] = None) -> Optional[Path]:
    """
    Set up the global logging system.

    Args:
        config: Logging configuration

    Returns:
        Path of the deployment log file, if one is written
    """
    _logging_manager.setup_logging(config)
    return _logging_manager.log_file


def register_secret(secret: Optional[str]) -> None:
    """Mask ``secret`` in every log line written from now on."""
    _logging_manager.secret_filter.add_secret(secret)


def close_logging() -> None:
    """Close logging system and clean up resources."""
    _logging_manager.close_handlers()
