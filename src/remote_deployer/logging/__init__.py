"""
Logging system for the remote deployer.
"""

from .logger_config import (
    setup_logging, close_logging, register_secret,
    build_log_path, LoggerConfig, LoggingManager
)
from .log_formatter import StructuredFormatter, ColoredFormatter
from .log_handler import DeploymentFileHandler, ConsoleHandler, SecretMaskingFilter

__all__ = [
    "setup_logging",
    "close_logging",
    "register_secret",
    "build_log_path",
    "LoggerConfig",
    "LoggingManager",
    "StructuredFormatter",
    "ColoredFormatter",
    "DeploymentFileHandler",
    "ConsoleHandler",
    "SecretMaskingFilter"
]
