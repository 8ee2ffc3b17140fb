"""Custom exception definitions for mvn-invoker."""

from typing import Any


class InvokerError(Exception):
    """Base exception for all mvn-invoker errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(InvokerError):
    """Exception raised when a command line cannot be configured.

    Always raised before any process is launched.
    """

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error.

        Args:
            message: Error message.
            config_key: Configuration key that caused the error.
            details: Additional error details.
        """
        details = details or {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, details)


class MavenInvocationError(ConfigurationError):
    """Exception raised by the invoker when a request cannot be turned into a command line."""


class ExecutionError(InvokerError):
    """Base class for failures captured into an invocation result."""


class LaunchError(ExecutionError):
    """Exception recorded when the operating system refuses to start the process."""

    def __init__(
        self,
        message: str,
        executable: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize launch error.

        Args:
            message: Error message.
            executable: Executable that could not be started.
            details: Additional error details.
        """
        details = details or {}
        if executable:
            details["executable"] = executable
        super().__init__(message, details)


class InvocationTimeoutError(ExecutionError):
    """Exception recorded when a process was killed for exceeding its timeout."""

    def __init__(
        self,
        message: str,
        timeout_seconds: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize timeout error.

        Args:
            message: Error message.
            timeout_seconds: The timeout that expired.
            details: Additional error details.
        """
        details = details or {}
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(message, details)


class StreamError(ExecutionError):
    """Exception recorded when process output could not be pumped to its consumer."""

    def __init__(
        self,
        message: str,
        stream: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize stream error.

        Args:
            message: Error message.
            stream: Name of the failing stream (stdin/stdout/stderr).
            details: Additional error details.
        """
        details = details or {}
        if stream:
            details["stream"] = stream
        super().__init__(message, details)
