"""Translation of an invocation request into a Maven command line.

The compiler is a pure function of the request and the defaults it was
constructed with. Argument order is fixed:

1. flags (-B, -o, -U/-nsu, -N, -X/-e, -C/-c, -npu, -V, -q, -ntp, -b)
2. reactor behavior (-fae/-fn, -rf, -pl with -am/-amd)
3. local repository (-D maven.repo.local=...)
4. POM location (-f)
5. settings and toolchains (-s, -gs, -t, -gt; global toolchains use
   Maven's own -gt option)
6. properties (-D key=value)
7. profiles (-P)
8. goals, then raw arguments
9. threads (-T)
"""

import logging
import os
import shlex
from collections.abc import Mapping
from pathlib import Path

from mvn_invoker.core.exceptions.errors import ConfigurationError
from mvn_invoker.core.logger.logger import get_logger
from mvn_invoker.invoker.resolver import PathResolver, canonicalize
from mvn_invoker.models.request import (
    ChecksumPolicy,
    InvocationRequest,
    ReactorFailureBehavior,
    UpdateSnapshotsPolicy,
)
from mvn_invoker.models.result import CommandLine

DEFAULT_POM_FILE_NAME = "pom.xml"
LOCAL_REPOSITORY_PROPERTY = "maven.repo.local"

# Set so that mvn.cmd exits instead of prompting "Terminate batch job (Y/N)?"
TERMINATE_CMD_VAR = "MAVEN_TERMINATE_CMD"
JAVA_HOME_VAR = "JAVA_HOME"
M2_HOME_VAR = "M2_HOME"
MAVEN_OPTS_VAR = "MAVEN_OPTS"


class CommandLineCompiler:
    """Builds the executable, arguments, environment and working directory for a request.

    Invoker-level defaults are fixed at construction; ``compile`` holds no
    state between calls and can be used for independent requests from
    several threads.
    """

    def __init__(
        self,
        resolver: PathResolver | None = None,
        logger: logging.Logger | None = None,
        working_directory: Path | None = None,
        local_repository_directory: Path | None = None,
        maven_home: Path | None = None,
        maven_executable: Path | None = None,
        system_environment: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the compiler.

        Args:
            resolver: Maven home and executable resolver.
            logger: Logger for diagnostics. Must not be None at compile time.
            working_directory: Default working directory.
            local_repository_directory: Default local repository.
            maven_home: Default Maven home.
            maven_executable: Default executable, absolute or relative.
            system_environment: Environment snapshot inherited by the child
                process. Captured from ``os.environ`` if omitted.
        """
        self.logger: logging.Logger | None = logger if logger is not None else get_logger(__name__)
        self.system_environment: dict[str, str] = dict(
            os.environ if system_environment is None else system_environment
        )
        self.resolver = resolver or PathResolver(
            environment=self.system_environment, logger=self.logger
        )
        self.working_directory = working_directory
        self.local_repository_directory = local_repository_directory
        self.maven_home = maven_home
        self.maven_executable = maven_executable

    def compile(self, request: InvocationRequest) -> CommandLine:
        """Compile a request into a command line.

        Args:
            request: The invocation request.

        Returns:
            The resolved command line.

        Raises:
            ConfigurationError: If no executable can be found, the local
                repository is not a directory, the goals cannot be split, or
                no logger is configured.
        """
        logger = self._check_required_state()

        working_directory = self._resolve_working_directory(request, logger)

        maven_home = self.resolver.resolve_home(request.maven_home, self.maven_home)
        executable = self.resolver.resolve_executable(
            request.maven_executable or self.maven_executable,
            working_directory,
            maven_home,
        )

        environment = self._build_environment(request, maven_home)

        args: list[str] = []
        self._add_flags(request, args)
        self._add_reactor_behavior(request, args)
        self._add_local_repository(request, args, logger)
        self._add_pom_location(request, working_directory, args, logger)
        self._add_settings_location(request, args, logger)
        self._add_toolchains_location(request, args, logger)
        self._add_properties(request, args)
        self._add_profiles(request, args)
        self._add_goals(request, args)
        self._add_args(request, args)
        self._add_threads(request, args)

        return CommandLine(
            executable=executable,
            arguments=tuple(args),
            environment=environment,
            working_directory=working_directory,
        )

    def _check_required_state(self) -> logging.Logger:
        if self.logger is None:
            raise ConfigurationError("A logger instance is required.", config_key="logger")
        return self.logger

    def _resolve_working_directory(
        self, request: InvocationRequest, logger: logging.Logger
    ) -> Path:
        working_directory = request.base_directory

        if working_directory is None and request.pom_file is not None:
            working_directory = request.pom_file.parent

        if working_directory is None:
            working_directory = self.working_directory

        if working_directory is None:
            working_directory = Path.cwd()
        elif working_directory.is_file():
            logger.warning(
                f"Specified base directory ({working_directory}) is a file. "
                "Using its parent directory..."
            )
            working_directory = working_directory.parent

        return canonicalize(working_directory, "base directory", logger)

    def _build_environment(
        self, request: InvocationRequest, maven_home: Path | None
    ) -> dict[str, str]:
        environment: dict[str, str] = {}

        if request.shell_environment_inherited:
            environment.update(self.system_environment)
            environment[TERMINATE_CMD_VAR] = "on"
            # An inherited M2_HOME may name a different installation
            if maven_home is not None:
                environment[M2_HOME_VAR] = str(maven_home.absolute())

        if request.java_home is not None:
            environment[JAVA_HOME_VAR] = str(request.java_home.absolute())

        if request.maven_opts is not None:
            environment[MAVEN_OPTS_VAR] = request.maven_opts

        environment.update(request.shell_environments)
        return environment

    def _add_flags(self, request: InvocationRequest, args: list[str]) -> None:
        if request.batch_mode:
            args.append("-B")

        if request.offline:
            args.append("-o")

        policy = request.effective_update_snapshots_policy
        if policy is UpdateSnapshotsPolicy.ALWAYS:
            args.append("-U")
        elif policy is UpdateSnapshotsPolicy.NEVER:
            args.append("-nsu")

        if not request.recursive:
            args.append("-N")

        # -X already shows errors
        if request.debug:
            args.append("-X")
        elif request.show_errors:
            args.append("-e")

        if request.global_checksum_policy is ChecksumPolicy.FAIL:
            args.append("-C")
        elif request.global_checksum_policy is ChecksumPolicy.WARN:
            args.append("-c")

        if request.non_plugin_updates:
            args.append("-npu")

        if request.show_version:
            args.append("-V")

        if request.quiet:
            args.append("-q")

        if request.no_transfer_progress:
            args.append("-ntp")

        if request.builder_id:
            args.extend(["-b", request.builder_id])

    def _add_reactor_behavior(self, request: InvocationRequest, args: list[str]) -> None:
        behavior = request.reactor_failure_behavior
        if behavior in (ReactorFailureBehavior.FAIL_AT_END, ReactorFailureBehavior.FAIL_NEVER):
            args.append(f"-{behavior.short_option}")

        if request.resume_from:
            args.extend(["-rf", request.resume_from])

        if request.projects:
            args.extend(["-pl", ",".join(request.projects)])

            if request.also_make:
                args.append("-am")

            if request.also_make_dependents:
                args.append("-amd")

    def _add_local_repository(
        self, request: InvocationRequest, args: list[str], logger: logging.Logger
    ) -> None:
        local_repository = request.get_local_repository_directory(self.local_repository_directory)
        if local_repository is None:
            return

        local_repository = canonicalize(local_repository, "local repository directory", logger)

        if not local_repository.is_dir():
            raise ConfigurationError(
                f"Local repository location: '{local_repository}' is NOT a directory.",
                config_key="local_repository_directory",
            )

        args.extend(["-D", f"{LOCAL_REPOSITORY_PROPERTY}={local_repository}"])

    def _add_pom_location(
        self,
        request: InvocationRequest,
        working_directory: Path,
        args: list[str],
        logger: logging.Logger,
    ) -> None:
        pom = request.pom_file

        if pom is None:
            base_directory = request.base_directory
            if base_directory is not None and base_directory.is_file():
                pom = base_directory
            else:
                pom = working_directory / (request.pom_file_name or DEFAULT_POM_FILE_NAME)

        pom = canonicalize(pom, "POM path", logger)

        if pom.parent == working_directory:
            if pom.name != DEFAULT_POM_FILE_NAME:
                logger.debug(
                    "Specified POM file is not named 'pom.xml'. "
                    "Using the '-f' command-line option to accommodate non-standard filename..."
                )
                args.extend(["-f", pom.name])
        else:
            args.extend(["-f", str(pom)])

    def _add_settings_location(
        self, request: InvocationRequest, args: list[str], logger: logging.Logger
    ) -> None:
        self._add_file_option("-s", request.user_settings_file, "user settings path", args, logger)
        self._add_file_option(
            "-gs", request.global_settings_file, "global settings path", args, logger
        )

    def _add_toolchains_location(
        self, request: InvocationRequest, args: list[str], logger: logging.Logger
    ) -> None:
        self._add_file_option("-t", request.toolchains_file, "toolchains path", args, logger)
        self._add_file_option(
            "-gt", request.global_toolchains_file, "global toolchains path", args, logger
        )

    @staticmethod
    def _add_file_option(
        option: str,
        path: Path | None,
        description: str,
        args: list[str],
        logger: logging.Logger,
    ) -> None:
        if path is None:
            return
        args.extend([option, str(canonicalize(path, description, logger))])

    def _add_properties(self, request: InvocationRequest, args: list[str]) -> None:
        for key, value in request.properties.items():
            args.extend(["-D", f"{key}={value}"])

    def _add_profiles(self, request: InvocationRequest, args: list[str]) -> None:
        if request.profiles:
            args.extend(["-P", ",".join(request.profiles)])

    def _add_goals(self, request: InvocationRequest, args: list[str]) -> None:
        if not request.goals:
            return

        line = " ".join(request.goals)
        try:
            args.extend(shlex.split(line))
        except ValueError as e:
            raise ConfigurationError(
                f"Problem to set goals: {e}",
                config_key="goals",
                details={"line": line},
            ) from e

    def _add_args(self, request: InvocationRequest, args: list[str]) -> None:
        args.extend(request.args)

    def _add_threads(self, request: InvocationRequest, args: list[str]) -> None:
        if request.threads:
            args.extend(["-T", request.threads])
