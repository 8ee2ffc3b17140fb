"""Application settings using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mvn_invoker.core.config.loader import ConfigLoader

DEFAULT_CONFIG_PATH = Path("mvn-invoker.yaml")


def _optional_path(v: str | Path | None) -> Path | None:
    if v is None or v == "":
        return None
    return Path(v)


class InvokerSettings(BaseSettings):
    """Invoker defaults shared by every invocation.

    ``maven_home`` stands in for the process-wide ``maven.home`` property and
    is consulted after request and invoker-level values.
    """

    model_config = SettingsConfigDict(
        env_prefix="MVN_INVOKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    maven_home: Path | None = Field(
        default=None,
        description="Maven installation directory",
    )
    maven_executable: Path | None = Field(
        default=None,
        description="Executable, absolute or relative to the project or <home>/bin",
    )
    local_repository: Path | None = Field(
        default=None,
        description="Default local repository directory",
    )
    working_directory: Path | None = Field(
        default=None,
        description="Default working directory when a request names none",
    )
    timeout_in_seconds: int = Field(
        default=0,
        ge=0,
        description="Default timeout (0 = no timeout)",
    )
    termination_grace_seconds: float = Field(
        default=5.0,
        ge=0,
        le=300,
        description="Seconds between terminate and kill on timeout",
    )

    @field_validator(
        "maven_home",
        "maven_executable",
        "local_repository",
        "working_directory",
        mode="before",
    )
    @classmethod
    def validate_paths(cls, v: str | Path | None) -> Path | None:
        """Treat empty strings as unset."""
        return _optional_path(v)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="MVN_INVOKER_LOGGING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = Field(
        default="INFO",
        description="Log level",
    )
    format: str = Field(
        default="[%(name)s] %(message)s",
        description="Log format string",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    use_rich: bool = Field(
        default=True,
        description="Use Rich console for output",
    )

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("file", mode="before")
    @classmethod
    def validate_file(cls, v: str | None) -> Path | None:
        """Validate and convert file to Path."""
        return _optional_path(v)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="MVN_INVOKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    invoker: InvokerSettings = Field(default_factory=InvokerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Settings instance with values from YAML.

        Raises:
            ConfigurationError: If the file or one of its sections is malformed.
        """
        loader = ConfigLoader(path)
        loader.load()

        return cls(
            invoker=InvokerSettings(**loader.get_section("invoker")),
            logging=LoggingSettings(**loader.get_section("logging")),
        )

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from default locations.

        Priority: YAML file > environment variables > .env > defaults

        Args:
            path: Explicit YAML file. Defaults to ./mvn-invoker.yaml when present.

        Returns:
            Settings instance.
        """
        if path is not None:
            return cls.from_yaml(path)
        if DEFAULT_CONFIG_PATH.exists():
            return cls.from_yaml(DEFAULT_CONFIG_PATH)

        return cls()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings singleton.
    """
    return Settings.load()
