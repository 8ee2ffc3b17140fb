"""Exception definitions module."""

from mvn_invoker.core.exceptions.errors import (
    ConfigurationError,
    ExecutionError,
    InvocationTimeoutError,
    InvokerError,
    LaunchError,
    MavenInvocationError,
    StreamError,
)

__all__ = [
    "InvokerError",
    "ConfigurationError",
    "MavenInvocationError",
    "ExecutionError",
    "LaunchError",
    "InvocationTimeoutError",
    "StreamError",
]
