"""Invocation request data model."""

from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Timeout value meaning "wait for the process forever"
NO_TIMEOUT = 0

OutputHandler = Callable[[str], None]


class ReactorFailureBehavior(str, Enum):
    """How the reactor reacts to a failing module."""

    FAIL_FAST = "ff"  # Default, emits no flag
    FAIL_AT_END = "fae"
    FAIL_NEVER = "fn"

    @property
    def short_option(self) -> str:
        """Short command-line option without the leading dash."""
        return self.value


class ChecksumPolicy(str, Enum):
    """Global checksum policy for artifact downloads."""

    FAIL = "fail"
    WARN = "warn"


class UpdateSnapshotsPolicy(str, Enum):
    """Whether snapshot dependencies are re-checked against remote repositories."""

    ALWAYS = "always"
    DEFAULT = "default"
    NEVER = "never"


class InvocationRequest(BaseModel):
    """Immutable description of a single Maven run.

    Build one with keyword arguments and derive variants with
    ``request.model_copy(update={...})``.

    ``batch_mode=True`` runs Maven non-interactively: ``-B`` is passed and any
    configured input stream is ignored.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_directory: Path | None = Field(default=None, description="Project directory")
    pom_file: Path | None = Field(default=None, description="Explicit POM file")
    pom_file_name: str | None = Field(
        default=None,
        description="POM file name relative to the base directory",
    )

    goals: tuple[str, ...] = Field(
        default=(),
        description="Goals joined into one line and re-split shell-style",
    )
    args: tuple[str, ...] = Field(default=(), description="Raw arguments, passed verbatim")
    profiles: tuple[str, ...] = Field(default=())
    properties: dict[str, str] = Field(default_factory=dict)

    batch_mode: bool = False
    offline: bool = False
    update_snapshots: bool = Field(default=False, description="Legacy switch for ALWAYS")
    update_snapshots_policy: UpdateSnapshotsPolicy = UpdateSnapshotsPolicy.DEFAULT
    recursive: bool = True
    debug: bool = False
    show_errors: bool = False
    non_plugin_updates: bool = False
    show_version: bool = False
    quiet: bool = False
    no_transfer_progress: bool = False

    reactor_failure_behavior: ReactorFailureBehavior = ReactorFailureBehavior.FAIL_FAST
    projects: tuple[str, ...] = Field(default=())
    also_make: bool = False
    also_make_dependents: bool = False
    resume_from: str | None = None

    global_checksum_policy: ChecksumPolicy | None = None
    builder_id: str | None = None
    threads: str | None = Field(default=None, description="Thread count spec, e.g. '2.0C'")

    user_settings_file: Path | None = None
    global_settings_file: Path | None = None
    toolchains_file: Path | None = None
    global_toolchains_file: Path | None = None
    local_repository_directory: Path | None = None

    java_home: Path | None = None
    maven_opts: str | None = None
    shell_environment_inherited: bool = True
    shell_environments: dict[str, str] = Field(default_factory=dict)

    maven_home: Path | None = None
    maven_executable: Path | None = None

    timeout_in_seconds: int | None = Field(
        default=None, ge=0, description="None uses the invoker default; 0 disables the timeout"
    )

    input_stream: Any = Field(default=None, exclude=True, description="Readable file-like object")
    output_handler: OutputHandler | None = Field(default=None, exclude=True)
    error_handler: OutputHandler | None = Field(default=None, exclude=True)

    @property
    def effective_update_snapshots_policy(self) -> UpdateSnapshotsPolicy:
        """Resolve the legacy boolean against the tri-state policy."""
        if self.update_snapshots_policy is not UpdateSnapshotsPolicy.DEFAULT:
            return self.update_snapshots_policy
        if self.update_snapshots:
            return UpdateSnapshotsPolicy.ALWAYS
        return UpdateSnapshotsPolicy.DEFAULT

    def get_base_directory(self, default: Path | None = None) -> Path | None:
        return self.base_directory if self.base_directory is not None else default

    def get_local_repository_directory(self, default: Path | None = None) -> Path | None:
        if self.local_repository_directory is not None:
            return self.local_repository_directory
        return default

    def get_input_stream(self, default: Any = None) -> Any:
        return self.input_stream if self.input_stream is not None else default

    def get_output_handler(self, default: OutputHandler | None = None) -> OutputHandler | None:
        return self.output_handler if self.output_handler is not None else default

    def get_error_handler(self, default: OutputHandler | None = None) -> OutputHandler | None:
        return self.error_handler if self.error_handler is not None else default
