"""Invoker: the public entry point for running Maven as a child process."""

import asyncio
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from mvn_invoker.core.config.settings import InvokerSettings, get_settings
from mvn_invoker.core.exceptions.errors import ConfigurationError, MavenInvocationError
from mvn_invoker.core.logger.logger import get_logger
from mvn_invoker.invoker.command_line import CommandLineCompiler
from mvn_invoker.invoker.executor import ProcessExecutor
from mvn_invoker.invoker.handlers import PrintStreamHandler
from mvn_invoker.invoker.resolver import MAVEN_HOME_PROPERTY, PathResolver
from mvn_invoker.models.request import InvocationRequest, OutputHandler
from mvn_invoker.models.result import CommandLine, InvocationResult


class Invoker:
    """Runs invocation requests against a Maven installation.

    Invoker-level values (home, executable, working directory, local
    repository, stream handlers) act as defaults; any value set on the
    request wins. The environment is captured once, at construction.

    Example:
        invoker = Invoker(maven_home=Path("/opt/maven"))
        result = invoker.execute_sync(
            InvocationRequest(base_directory=Path("my-project"), goals=("clean", "install"))
        )
    """

    def __init__(
        self,
        maven_home: Path | None = None,
        maven_executable: Path | None = None,
        working_directory: Path | None = None,
        local_repository_directory: Path | None = None,
        output_handler: OutputHandler | None = None,
        error_handler: OutputHandler | None = None,
        input_stream: Any = None,
        logger: logging.Logger | None = None,
        properties: Mapping[str, str] | None = None,
        environment: Mapping[str, str] | None = None,
        settings: InvokerSettings | None = None,
    ) -> None:
        """Initialize the invoker.

        Args:
            maven_home: Default Maven home directory.
            maven_executable: Default executable, absolute or relative.
            working_directory: Default working directory.
            local_repository_directory: Default local repository.
            output_handler: Default stdout consumer (prints to stdout if unset).
            error_handler: Default stderr consumer (prints to stdout if unset).
            input_stream: Default input stream for interactive runs.
            logger: Logger for diagnostics.
            properties: Process-wide properties; ``maven.home`` is consulted.
                Built from settings if omitted.
            environment: Environment snapshot. Captured from ``os.environ``
                if omitted.
            settings: Invoker settings. Loaded from the global settings if omitted.
        """
        settings = settings or get_settings().invoker

        self.maven_home = maven_home
        self.maven_executable = maven_executable or settings.maven_executable
        self.working_directory = working_directory or settings.working_directory
        self.local_repository_directory = local_repository_directory or settings.local_repository
        self.output_handler: OutputHandler = output_handler or PrintStreamHandler()
        self.error_handler: OutputHandler = error_handler or PrintStreamHandler()
        self.input_stream = input_stream
        self.logger = logger or get_logger(__name__)
        self.default_timeout = settings.timeout_in_seconds

        if properties is None:
            properties = (
                {MAVEN_HOME_PROPERTY: str(settings.maven_home)} if settings.maven_home else {}
            )
        self.properties: dict[str, str] = dict(properties)
        self.environment: dict[str, str] = dict(os.environ if environment is None else environment)

        self.executor = ProcessExecutor(
            termination_grace_seconds=settings.termination_grace_seconds,
            logger=self.logger,
        )

    def compile(self, request: InvocationRequest) -> CommandLine:
        """Compile a request without running it.

        Raises:
            MavenInvocationError: If the command line cannot be configured.
        """
        compiler = CommandLineCompiler(
            resolver=PathResolver(
                properties=self.properties,
                environment=self.environment,
                logger=self.logger,
            ),
            logger=self.logger,
            working_directory=self.working_directory,
            local_repository_directory=self.local_repository_directory,
            maven_home=self.maven_home,
            maven_executable=self.maven_executable,
            system_environment=self.environment,
        )

        try:
            return compiler.compile(request)
        except ConfigurationError as e:
            raise MavenInvocationError(
                f"Error configuring command-line. Reason: {e.message}",
                details=e.details,
            ) from e

    async def execute(self, request: InvocationRequest) -> InvocationResult:
        """Compile and run a request.

        Args:
            request: The invocation request.

        Returns:
            InvocationResult. Launch failures, timeouts and stream failures
            are reported through ``execution_exception``.

        Raises:
            MavenInvocationError: If the command line cannot be configured.
                No process is started in that case.
        """
        command = self.compile(request)

        timeout = request.timeout_in_seconds
        if timeout is None:
            timeout = self.default_timeout
        result = await self.executor.execute(
            command,
            output_handler=request.get_output_handler(self.output_handler),
            error_handler=request.get_error_handler(self.error_handler),
            input_stream=request.get_input_stream(self.input_stream),
            timeout_in_seconds=timeout,
            batch_mode=request.batch_mode,
        )

        if result.execution_exception is not None:
            self.logger.debug(f"Invocation failed: {result.execution_exception}")
        else:
            self.logger.debug(
                f"Maven exited with code {result.exit_code} "
                f"after {result.duration_seconds:.1f}s"
            )
        return result

    def execute_sync(self, request: InvocationRequest) -> InvocationResult:
        """Blocking variant of :meth:`execute` for callers without an event loop."""
        return asyncio.run(self.execute(request))
