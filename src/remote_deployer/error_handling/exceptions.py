"""
Custom exceptions for the remote deployer.

Every exception carries the process exit code the CLI terminates with, so a
failing step maps directly onto the exit status of the run.
"""

from typing import Optional, Dict, Any


EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2
EXIT_MANIFEST_NOT_FOUND = 10
EXIT_REMOTE_UNREACHABLE = 20


class DeployerError(Exception):
    """
    Base exception for all remote deployer errors.

    This is the root exception class that all other custom exceptions
    inherit from, providing common functionality and attributes.
    """

    default_exit_code = EXIT_FAILURE

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        exit_code: Optional[int] = None
    ):
        """
        Initialize deployer error.

        Args:
            message: Error message
            error_code: Optional error code for categorization
            context: Additional context information
            cause: Original exception that caused this error
            exit_code: Process exit code (defaults to the class default)
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.exit_code = exit_code if exit_code is not None else self.default_exit_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "exit_code": self.exit_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None
        }

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [self.message]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"Context: {context_str}")

        if self.cause:
            parts.append(f"Caused by: {self.cause}")

        return " | ".join(parts)


class ConfigurationError(DeployerError):
    """
    Exception for configuration errors.

    Raised when configuration loading or validation fails, including
    invalid operator input such as an out-of-range port.
    """

    default_exit_code = EXIT_CONFIGURATION

    def __init__(
        self,
        message: str,
        config_section: Optional[str] = None,
        config_key: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.get('context', {})
        if config_section:
            context['config_section'] = config_section
        if config_key:
            context['config_key'] = config_key

        kwargs['context'] = context
        super().__init__(message, **kwargs)

        self.config_section = config_section
        self.config_key = config_key


class RepositoryError(DeployerError):
    """
    Exception for repository-related errors.

    Raised when cloning or pulling the source repository fails, or when an
    existing checkout directory is not a git repository.
    """

    def __init__(
        self,
        message: str,
        repository_url: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize repository error.

        Args:
            message: Error message
            repository_url: Redacted URL of the repository
            operation: Operation that failed (clone, pull)
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if repository_url:
            context['repository_url'] = repository_url
        if operation:
            context['operation'] = operation

        kwargs['context'] = context
        super().__init__(message, **kwargs)

        self.repository_url = repository_url
        self.operation = operation


class ManifestNotFoundError(DeployerError):
    """Raised when the checkout has neither a Dockerfile nor a compose file."""

    default_exit_code = EXIT_MANIFEST_NOT_FOUND

    def __init__(self, message: str, search_path: Optional[str] = None, **kwargs):
        context = kwargs.get('context', {})
        if search_path:
            context['search_path'] = search_path

        kwargs['context'] = context
        super().__init__(message, **kwargs)

        self.search_path = search_path


class RemoteConnectionError(DeployerError):
    """
    Exception for remote connectivity failures.

    Raised when the SSH session cannot be established or the connectivity
    probe cannot be executed on the remote host.
    """

    default_exit_code = EXIT_REMOTE_UNREACHABLE

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        user: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.get('context', {})
        if host:
            context['host'] = host
        if user:
            context['user'] = user

        kwargs['context'] = context
        super().__init__(message, **kwargs)

        self.host = host
        self.user = user


class CommandExecutionError(DeployerError):
    """
    Exception for remote commands that exit with a non-zero status.

    The exit code of the run is the exit status of the failed command.
    """

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        status: Optional[int] = None,
        output: str = "",
        **kwargs
    ):
        """
        Initialize command execution error.

        Args:
            message: Error message
            command: Command (or script summary) that failed
            status: Remote exit status
            output: Combined stdout/stderr of the command
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if command:
            context['command'] = command
        if status is not None:
            context['status'] = status

        kwargs['context'] = context
        # paramiko reports -1 when the server sends no exit status
        if status is not None and status > 0 and 'exit_code' not in kwargs:
            kwargs['exit_code'] = status
        super().__init__(message, **kwargs)

        self.command = command
        self.status = status
        self.output = output


class ProxyConfigurationError(CommandExecutionError):
    """Raised when the Nginx site cannot be written, tested or reloaded."""
