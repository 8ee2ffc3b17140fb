"""Process execution for compiled Maven command lines.

One ``execute`` call launches one process and pumps its streams on
dedicated asyncio tasks until the process exits or the timeout expires.
Failures after the command line was compiled are captured into the
returned InvocationResult instead of being raised.
"""

import asyncio
import contextlib
import io
import logging
import os
import select
import signal
import threading
import time
from collections.abc import Callable
from typing import Any

from mvn_invoker.core.exceptions.errors import (
    InvocationTimeoutError,
    LaunchError,
    StreamError,
)
from mvn_invoker.core.logger.logger import get_logger
from mvn_invoker.models.request import NO_TIMEOUT, OutputHandler
from mvn_invoker.models.result import CommandLine, InvocationResult

DEFAULT_TERMINATION_GRACE_SECONDS = 5.0
DEFAULT_LINE_LIMIT = 1024 * 1024
INPUT_CHUNK_SIZE = 8192
INPUT_POLL_SECONDS = 0.1
INPUT_JOIN_TIMEOUT_SECONDS = 1.0
INPUT_THREAD_NAME = "mvn-invoker-stdin"

IS_WINDOWS = os.name == "nt"


def _fileno(source: Any) -> int | None:
    try:
        return source.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _input_reader(source: Any, stop: threading.Event) -> Callable[[], Any]:
    """Build a blocking read function for an input stream.

    The function returns the next chunk, an empty value at EOF, or None when
    nothing was available within the poll interval.
    """
    fd = None if IS_WINDOWS else _fileno(source)
    if fd is not None:

        def read_fd() -> bytes | None:
            ready, _, _ = select.select([fd], [], [], INPUT_POLL_SECONDS)
            if not ready or stop.is_set():
                return None
            return os.read(fd, INPUT_CHUNK_SIZE)

        return read_fd

    if isinstance(source, io.TextIOBase):
        return source.readline

    read = getattr(source, "read1", None) or source.read
    return lambda: read(INPUT_CHUNK_SIZE)


class ProcessExecutor:
    """Runs a command line to completion or timeout with live stream consumption."""

    def __init__(
        self,
        termination_grace_seconds: float = DEFAULT_TERMINATION_GRACE_SECONDS,
        line_limit: int = DEFAULT_LINE_LIMIT,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            termination_grace_seconds: Time a timed-out process gets to exit
                after the terminate signal before it is killed.
            line_limit: Longest output line, in bytes, read in one piece.
            logger: Logger for diagnostics.
        """
        self.termination_grace_seconds = termination_grace_seconds
        self.line_limit = line_limit
        self.logger = logger or get_logger(__name__)

    async def execute(
        self,
        command: CommandLine,
        output_handler: OutputHandler | None = None,
        error_handler: OutputHandler | None = None,
        input_stream: Any = None,
        timeout_in_seconds: int = NO_TIMEOUT,
        batch_mode: bool = False,
    ) -> InvocationResult:
        """Run a command line.

        Args:
            command: The compiled command line.
            output_handler: Receives each stdout line.
            error_handler: Receives each stderr line.
            input_stream: Readable file-like object piped to stdin in
                interactive mode.
            timeout_in_seconds: Seconds before the process is killed
                (NO_TIMEOUT waits forever).
            batch_mode: Whether Maven runs non-interactively; the input
                stream is then ignored.

        Returns:
            InvocationResult with the exit code, or with an execution
            exception if the process could not be run to completion.
        """
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Executing: {command}")

        if batch_mode:
            if input_stream is not None:
                self.logger.info(
                    "Executing in batch mode. The configured input stream will be ignored."
                )
            input_stream = None
        elif input_stream is None:
            self.logger.warning(
                "Maven will be executed in interactive mode, "
                "but no input stream has been configured for this invocation."
            )

        result = InvocationResult(command=str(command))
        start_time = time.monotonic()

        try:
            process = await asyncio.create_subprocess_exec(
                *command.argv,
                stdin=(
                    asyncio.subprocess.PIPE
                    if input_stream is not None
                    else asyncio.subprocess.DEVNULL
                ),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=command.working_directory,
                env=command.environment,
                limit=self.line_limit,
                start_new_session=not IS_WINDOWS,
            )
        except OSError as e:
            result.execution_exception = LaunchError(
                f"Failed to launch '{command.executable}': {e}",
                executable=str(command.executable),
                details={"errno": e.errno},
            )
            result.duration_seconds = time.monotonic() - start_time
            return result

        stream_errors: list[StreamError] = []
        pumps = [
            asyncio.create_task(
                self._pump_output(process.stdout, output_handler, "stdout", stream_errors)
            ),
            asyncio.create_task(
                self._pump_output(process.stderr, error_handler, "stderr", stream_errors)
            ),
        ]
        input_pump: asyncio.Task[None] | None = None
        if input_stream is not None:
            input_pump = asyncio.create_task(
                self._pump_input(input_stream, process.stdin, stream_errors)
            )

        try:
            if timeout_in_seconds > 0:
                exit_code = await asyncio.wait_for(
                    self._wait(process, pumps), timeout=timeout_in_seconds
                )
            else:
                exit_code = await self._wait(process, pumps)
        except asyncio.TimeoutError:
            self.logger.warning(
                f"Process {process.pid} timed out after {timeout_in_seconds} seconds, terminating"
            )
            await self._terminate(process)
            result.execution_exception = InvocationTimeoutError(
                f"Process timed out after {timeout_in_seconds} seconds",
                timeout_seconds=timeout_in_seconds,
            )
            return result
        except asyncio.CancelledError:
            await self._terminate(process)
            raise
        finally:
            await self._cancel(pumps, input_pump)
            result.duration_seconds = time.monotonic() - start_time

        if stream_errors:
            result.execution_exception = stream_errors[0]
            return result

        result.exit_code = exit_code
        return result

    async def _wait(
        self,
        process: asyncio.subprocess.Process,
        pumps: list[asyncio.Task[None]],
    ) -> int:
        await asyncio.gather(*pumps)
        return await process.wait()

    async def _pump_output(
        self,
        stream: asyncio.StreamReader | None,
        handler: OutputHandler | None,
        name: str,
        errors: list[StreamError],
    ) -> None:
        """Forward each line of a process stream to its handler.

        Lines longer than the reader limit are assembled from several reads
        and delivered whole. The stream is drained to EOF even after the
        handler failed, so the process never blocks on a full pipe.
        """
        if stream is None:
            return

        forwarding = handler is not None
        pending = bytearray()
        while True:
            try:
                pending += await stream.readuntil(b"\n")
            except asyncio.LimitOverrunError as e:
                pending += await stream.readexactly(e.consumed)
                continue
            except asyncio.IncompleteReadError as e:
                # EOF, possibly after a last line without terminator
                pending += e.partial
                if pending and forwarding:
                    self._deliver(bytes(pending), handler, name, errors)
                return

            raw = bytes(pending)
            pending.clear()
            if forwarding:
                forwarding = self._deliver(raw, handler, name, errors)

    @staticmethod
    def _deliver(
        raw: bytes,
        handler: OutputHandler | None,
        name: str,
        errors: list[StreamError],
    ) -> bool:
        """Hand one line to its handler; False once the handler has failed."""
        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        try:
            handler(line)  # type: ignore[misc]
        except Exception as e:
            errors.append(StreamError(f"Failure processing {name}: {e}", stream=name))
            return False
        return True

    async def _pump_input(
        self,
        source: Any,
        sink: asyncio.StreamWriter | None,
        errors: list[StreamError],
    ) -> None:
        """Copy the input stream to the process stdin, closing it at EOF.

        Reads happen on a worker thread that lives only as long as this
        invocation, so one input stream can be shared by consecutive
        invocations. Sources backed by a file descriptor are polled and read
        straight from the descriptor; the thread stops at the next poll once
        the invocation is over and never consumes input meant for a later
        one. In-memory sources never block, and text ones are read a line at
        a time.
        """
        if sink is None:
            return

        loop = asyncio.get_running_loop()
        chunks: asyncio.Queue[Any] = asyncio.Queue()
        stop = threading.Event()
        read = _input_reader(source, stop)

        def deliver(item: Any) -> None:
            # The loop may already be closed when a late read returns
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(chunks.put_nowait, item)

        def reader() -> None:
            try:
                while not stop.is_set():
                    chunk = read()
                    if chunk is None:
                        continue
                    deliver(chunk or None)
                    if not chunk:
                        return
            except (OSError, ValueError) as e:
                deliver(e)

        thread = threading.Thread(target=reader, name=INPUT_THREAD_NAME, daemon=True)
        thread.start()

        try:
            while True:
                item = await chunks.get()
                if item is None:
                    break
                if isinstance(item, Exception):
                    errors.append(
                        StreamError(f"Failure processing stdin: {item}", stream="stdin")
                    )
                    break
                sink.write(item.encode("utf-8") if isinstance(item, str) else item)
                await sink.drain()
        except (BrokenPipeError, ConnectionResetError):
            self.logger.debug("Process closed stdin before the input stream was exhausted")
        finally:
            stop.set()
            with contextlib.suppress(OSError):
                sink.close()
            await asyncio.to_thread(thread.join, INPUT_JOIN_TIMEOUT_SECONDS)
            if thread.is_alive():
                self.logger.debug("Input reader is still blocked in a read after the process ended")

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Stop a process and its children, escalating to a kill if ignored."""
        self._signal(process, force=False)
        try:
            await asyncio.wait_for(process.wait(), timeout=self.termination_grace_seconds)
        except asyncio.TimeoutError:
            self.logger.warning(
                f"Process {process.pid} ignored the termination request, killing it"
            )
            self._signal(process, force=True)
            await process.wait()

    @staticmethod
    def _signal(process: asyncio.subprocess.Process, force: bool) -> None:
        with contextlib.suppress(ProcessLookupError, PermissionError):
            if IS_WINDOWS:
                if force:
                    process.kill()
                else:
                    process.terminate()
            else:
                # The process leads its own session, so this reaches its children too
                os.killpg(process.pid, signal.SIGKILL if force else signal.SIGTERM)

    @staticmethod
    async def _cancel(
        pumps: list[asyncio.Task[None]],
        input_pump: asyncio.Task[None] | None,
    ) -> None:
        tasks = [*pumps, input_pump] if input_pump is not None else pumps
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
