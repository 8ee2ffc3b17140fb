"""Maven home and executable resolution.

Home and executable may come from the request, from invoker-level defaults,
from the ``maven.home`` property or from the ``MAVEN_HOME``/``M2_HOME``
environment variables, in that order of precedence. Properties and
environment are handed in explicitly and never re-read from the process.
"""

import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from mvn_invoker.core.exceptions.errors import ConfigurationError
from mvn_invoker.core.logger.logger import get_logger

MAVEN_HOME_PROPERTY = "maven.home"
MAVEN_HOME_ENV_VARS: tuple[str, ...] = ("MAVEN_HOME", "M2_HOME")

DEFAULT_EXECUTABLE = "mvn"
WRAPPER_EXECUTABLE = "mvnw"

OS_FAMILY_WINDOWS = "windows"
OS_FAMILY_UNIX = "unix"

# Tried in order before the bare name on Windows
WINDOWS_SUFFIXES: tuple[str, ...] = (".cmd", ".bat", ".ps1")


def current_os_family() -> str:
    """Return the OS family of the running interpreter."""
    return OS_FAMILY_WINDOWS if os.name == "nt" else OS_FAMILY_UNIX


def canonicalize(path: Path, description: str, logger: logging.Logger) -> Path:
    """Resolve symlinks and relative parts of a path, best effort.

    Args:
        path: Path to canonicalize.
        description: What the path is, for the fallback log message.
        logger: Logger receiving the fallback message.

    Returns:
        The canonical path, or the absolute path if resolution failed.
    """
    try:
        return path.resolve()
    except (OSError, RuntimeError) as e:
        logger.debug(f"Failed to canonicalize {description}: {path}. Using as-is. ({e})")
        return path.absolute()


class PathResolver:
    """Resolves the Maven home directory and the executable to launch."""

    def __init__(
        self,
        properties: Mapping[str, str] | None = None,
        environment: Mapping[str, str] | None = None,
        os_family: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            properties: Process-wide properties; ``maven.home`` is consulted.
            environment: Environment snapshot; MAVEN_HOME then M2_HOME are consulted.
            os_family: "windows" or "unix". Detected from the interpreter if omitted.
            logger: Logger for diagnostics.
        """
        self.properties: Mapping[str, str] = dict(properties or {})
        self.environment: Mapping[str, str] = dict(environment or {})
        self.os_family = os_family or current_os_family()
        self.logger = logger or get_logger(__name__)

    @property
    def is_windows(self) -> bool:
        return self.os_family == OS_FAMILY_WINDOWS

    def resolve_home(self, *overrides: Path | None) -> Path | None:
        """Pick the Maven home directory.

        Args:
            *overrides: Candidates in precedence order (request value, then
                invoker default). The property and environment follow them.

        Returns:
            The home directory, or None if no source configured one.

        Raises:
            ConfigurationError: If the chosen home is not a directory and does
                not point into a ``bin`` directory either.
        """
        home, source = self._first_home_candidate(overrides)
        if home is None:
            self.logger.debug("No Maven home configured")
            return None

        if not home.is_dir():
            bin_dir = home.parent
            if bin_dir.name == "bin" and bin_dir != home:
                # The executable was given instead of the installation directory
                home = bin_dir.parent
            else:
                raise ConfigurationError(
                    f"Maven home from {source} is not a directory: '{home}'",
                    config_key="maven_home",
                    details={"source": source},
                )

        self.logger.debug(f"Using Maven home of: '{home}' (from {source})")
        return home

    def _first_home_candidate(
        self, overrides: Sequence[Path | None]
    ) -> tuple[Path | None, str]:
        for index, candidate in enumerate(overrides):
            if candidate is not None:
                return Path(candidate), "request" if index == 0 else "invoker default"

        prop = self.properties.get(MAVEN_HOME_PROPERTY)
        if prop:
            return Path(prop), f"property '{MAVEN_HOME_PROPERTY}'"

        for name in MAVEN_HOME_ENV_VARS:
            value = self.environment.get(name)
            if value:
                return Path(value), f"environment variable {name}"

        return None, "none"

    def resolve_executable(
        self,
        executable: Path | None,
        base_directory: Path | None,
        maven_home: Path | None,
    ) -> Path:
        """Find the executable file to launch.

        An absolute ``executable`` is used verbatim. Otherwise the project
        directory is searched first, then ``<maven_home>/bin``. Without an
        explicit executable the project directory is searched for the ``mvnw``
        wrapper before ``mvn``.

        Args:
            executable: Explicit executable, absolute or relative.
            base_directory: Project directory to search first.
            maven_home: Resolved Maven home directory.

        Returns:
            Canonical path of the executable.

        Raises:
            ConfigurationError: If no candidate file exists.
        """
        if executable is not None and executable.is_absolute():
            return executable

        if executable is not None:
            project_names: list[str] = [str(executable)]
            home_names: list[str] = [str(executable)]
        else:
            project_names = [WRAPPER_EXECUTABLE, DEFAULT_EXECUTABLE]
            home_names = [DEFAULT_EXECUTABLE]

        searched: list[str] = []
        locations: list[tuple[Path, list[str]]] = []
        if base_directory is not None:
            locations.append((base_directory, project_names))
        if maven_home is not None:
            locations.append((maven_home / "bin", home_names))

        for directory, names in locations:
            for name in names:
                found = self._find_script(directory, name, searched)
                if found is not None:
                    return canonicalize(found, "Maven executable", self.logger)

        if searched:
            message = "Maven executable not found. Searched: " + ", ".join(searched)
        else:
            message = (
                "Maven executable not found: no project directory or Maven home configured. "
                "Set maven_home, the 'maven.home' property or MAVEN_HOME."
            )
        raise ConfigurationError(
            message,
            config_key="maven_executable",
            details={"searched": searched},
        )

    def _find_script(self, directory: Path, name: str, searched: list[str]) -> Path | None:
        candidates: list[Path] = []
        if self.is_windows:
            candidates.extend(directory / f"{name}{suffix}" for suffix in WINDOWS_SUFFIXES)
        candidates.append(directory / name)

        for candidate in candidates:
            searched.append(str(candidate))
            if candidate.is_file():
                return candidate

        self.logger.debug(f"No executable named '{name}' in {directory}")
        return None
