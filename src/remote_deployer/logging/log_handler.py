"""
Custom log handlers and filters for deployment logging.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO, Set


class DeploymentFileHandler(logging.FileHandler):
    """
    File handler for the per-run deployment log.

    Creates the parent directory on demand.
    """

    def __init__(self, filename: str, mode: str = 'a', encoding: Optional[str] = 'utf-8'):
        """
        Initialize deployment log handler.

        Args:
            filename: Log file path
            mode: File open mode
            encoding: File encoding
        """
        log_path = Path(filename)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        super().__init__(filename, mode, encoding)


class ConsoleHandler(logging.StreamHandler):
    """
    Console handler that mirrors the deployment log to the terminal.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        """
        Initialize console handler.

        Args:
            stream: Output stream (defaults to sys.stdout)
        """
        if stream is None:
            stream = sys.stdout

        super().__init__(stream)


class SecretMaskingFilter(logging.Filter):
    """
    Replaces registered secrets (access tokens) in log messages with ``***``.

    Git error output can echo the authenticated clone URL back, so masking
    happens on every record that reaches a deployer handler.
    """

    MASK = "***"

    def __init__(self):
        super().__init__()
        self._secrets: Set[str] = set()

    def add_secret(self, secret: Optional[str]) -> None:
        if secret:
            self._secrets.add(secret)

    def clear(self) -> None:
        self._secrets.clear()

    def mask(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, self.MASK)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if self._secrets:
            message = record.getMessage()
            masked = self.mask(message)
            if masked != message:
                record.msg = masked
                record.args = None
        return True
