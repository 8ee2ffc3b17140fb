"""Data models module."""

from mvn_invoker.models.request import (
    NO_TIMEOUT,
    ChecksumPolicy,
    InvocationRequest,
    OutputHandler,
    ReactorFailureBehavior,
    UpdateSnapshotsPolicy,
)
from mvn_invoker.models.result import CommandLine, InvocationResult

__all__ = [
    "NO_TIMEOUT",
    "ChecksumPolicy",
    "InvocationRequest",
    "OutputHandler",
    "ReactorFailureBehavior",
    "UpdateSnapshotsPolicy",
    "CommandLine",
    "InvocationResult",
]
