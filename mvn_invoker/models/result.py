"""Compiled command line and invocation result models."""

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mvn_invoker.core.exceptions.errors import ExecutionError, InvocationTimeoutError

POWERSHELL_PREFIX: tuple[str, ...] = (
    "powershell",
    "-NoProfile",
    "-ExecutionPolicy",
    "Bypass",
    "-File",
)


@dataclass(frozen=True)
class CommandLine:
    """A fully resolved process launch.

    Attributes:
        executable: Maven executable (or wrapper script) to run.
        arguments: Ordered argument tokens, never re-split by a shell.
        environment: Complete environment for the child process.
        working_directory: Directory the process starts in.
    """

    executable: Path
    arguments: tuple[str, ...] = ()
    environment: dict[str, str] = field(default_factory=dict)
    working_directory: Path = field(default_factory=Path.cwd)

    @property
    def argv(self) -> list[str]:
        """Argument vector handed to the operating system."""
        executable = str(self.executable)
        if self.executable.suffix.lower() == ".ps1":
            return [*POWERSHELL_PREFIX, executable, *self.arguments]
        return [executable, *self.arguments]

    def environment_variables(self) -> list[str]:
        """Environment as ``NAME=value`` declarations."""
        return [f"{name}={value}" for name, value in self.environment.items()]

    def __str__(self) -> str:
        return shlex.join(self.argv)


@dataclass
class InvocationResult:
    """Outcome of one invocation.

    ``exit_code`` is None when no exit status was ever observed (launch
    failure, timeout kill, stream failure); ``execution_exception`` then says
    why. A non-zero exit code with no exception is a build that ran and
    failed, not an invocation error.

    Attributes:
        exit_code: Native exit status of the process.
        execution_exception: Why the process could not be run to completion.
        command: Rendered command line, for diagnostics.
        duration_seconds: Wall-clock time from launch to completion.
    """

    exit_code: int | None = None
    execution_exception: ExecutionError | None = None
    command: str | None = None
    duration_seconds: float = 0.0

    @property
    def timed_out(self) -> bool:
        """Whether the process was killed by the watchdog."""
        return isinstance(self.execution_exception, InvocationTimeoutError)

    @property
    def success(self) -> bool:
        """Whether the process ran and exited with status 0."""
        return self.execution_exception is None and self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "exit_code": self.exit_code,
            "success": self.success,
            "timed_out": self.timed_out,
            "error_type": (
                type(self.execution_exception).__name__
                if self.execution_exception
                else None
            ),
            "error_message": (
                self.execution_exception.message if self.execution_exception else None
            ),
            "command": self.command,
            "duration_seconds": self.duration_seconds,
        }
