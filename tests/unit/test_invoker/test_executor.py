"""
Unit tests for ProcessExecutor.

Runs small shell scripts standing in for Maven to check exit codes,
stream pumping, stdin handling and the timeout watchdog.
"""

import io
import logging
import os
import threading
import time
from pathlib import Path

import pytest

from mvn_invoker.core.exceptions import InvocationTimeoutError, LaunchError, StreamError
from mvn_invoker.invoker.executor import INPUT_THREAD_NAME, ProcessExecutor
from mvn_invoker.invoker.handlers import CollectingHandler
from mvn_invoker.models import CommandLine

pytestmark = pytest.mark.skipif(os.name == "nt", reason="fake executables are POSIX shell scripts")


def _command(executable: Path, *arguments: str, cwd: Path | None = None, **env: str) -> CommandLine:
    return CommandLine(
        executable=executable,
        arguments=arguments,
        environment={"PATH": os.environ.get("PATH", "/usr/bin:/bin"), **env},
        working_directory=cwd or executable.parent,
    )


class TestExitCodes:
    """Tests for exit status reporting."""

    @pytest.mark.asyncio
    async def test_success(self, fake_executable):
        """Test a clean exit is reported as exit code 0."""
        executor = ProcessExecutor()

        result = await executor.execute(_command(fake_executable("exit 0")), batch_mode=True)

        assert result.exit_code == 0
        assert result.execution_exception is None
        assert result.success is True

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_not_an_error(self, fake_executable):
        """Test a failing build is an exit code, not an execution exception."""
        executor = ProcessExecutor()

        result = await executor.execute(_command(fake_executable("exit 3")), batch_mode=True)

        assert result.exit_code == 3
        assert result.execution_exception is None
        assert result.success is False

    @pytest.mark.asyncio
    async def test_launch_failure(self, temp_dir: Path):
        """Test a missing executable is captured as a LaunchError."""
        executor = ProcessExecutor()
        command = _command(temp_dir / "does-not-exist", cwd=temp_dir)

        result = await executor.execute(command, batch_mode=True)

        assert result.exit_code is None
        assert isinstance(result.execution_exception, LaunchError)
        assert result.execution_exception.details["executable"] == str(temp_dir / "does-not-exist")

    @pytest.mark.asyncio
    async def test_command_recorded(self, fake_executable):
        """Test the rendered command line is kept on the result."""
        executable = fake_executable("exit 0")

        result = await ProcessExecutor().execute(
            _command(executable, "clean", "two words"), batch_mode=True
        )

        assert result.command == f"{executable} clean 'two words'"


class TestOutputStreams:
    """Tests for stdout and stderr pumping."""

    @pytest.mark.asyncio
    async def test_lines_reach_handlers(self, fake_executable):
        """Test each line goes to the matching handler without its terminator."""
        executable = fake_executable(
            'echo "out one"\necho "err one" >&2\necho "out two"\nprintf "no newline"'
        )
        out, err = CollectingHandler(), CollectingHandler()

        result = await ProcessExecutor().execute(
            _command(executable), output_handler=out, error_handler=err, batch_mode=True
        )

        assert result.exit_code == 0
        assert out.lines == ["out one", "out two", "no newline"]
        assert err.lines == ["err one"]

    @pytest.mark.asyncio
    async def test_arguments_not_resplit(self, fake_executable):
        """Test arguments reach the process as separate tokens."""
        executable = fake_executable('for arg in "$@"; do echo "[$arg]"; done')
        out = CollectingHandler()

        await ProcessExecutor().execute(
            _command(executable, "-D", "msg=a b", "clean"), output_handler=out, batch_mode=True
        )

        assert out.lines == ["[-D]", "[msg=a b]", "[clean]"]

    @pytest.mark.asyncio
    async def test_environment_and_working_directory(self, fake_executable, temp_dir: Path):
        """Test the process sees the compiled environment and directory."""
        workdir = temp_dir / "work"
        workdir.mkdir()
        executable = fake_executable('echo "$GREETING"\npwd')
        out = CollectingHandler()

        await ProcessExecutor().execute(
            _command(executable, cwd=workdir, GREETING="hello"),
            output_handler=out,
            batch_mode=True,
        )

        assert out.lines == ["hello", str(workdir)]

    @pytest.mark.asyncio
    async def test_no_handlers_still_drains(self, fake_executable):
        """Test output is discarded without blocking when no handler is set."""
        executable = fake_executable("i=0\nwhile [ $i -lt 2000 ]; do echo line $i; i=$((i+1)); done")

        result = await ProcessExecutor().execute(_command(executable), batch_mode=True)

        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_replaced(self, fake_executable):
        """Test undecodable bytes do not break the pump."""
        executable = fake_executable(r"printf 'bad \377 byte\n'")
        out = CollectingHandler()

        await ProcessExecutor().execute(_command(executable), output_handler=out, batch_mode=True)

        assert out.lines == ["bad � byte"]

    @pytest.mark.asyncio
    async def test_long_line_delivered_whole(self, fake_executable):
        """Test a line longer than the reader limit reaches the handler in one piece."""
        executable = fake_executable(
            "head -c 100000 /dev/zero | tr '\\0' a\nprintf 'bbbb\\ndone\\n'"
        )
        out = CollectingHandler()

        result = await ProcessExecutor(line_limit=1024).execute(
            _command(executable), output_handler=out, batch_mode=True
        )

        assert result.exit_code == 0
        assert out.lines == ["a" * 100000 + "bbbb", "done"]

    @pytest.mark.asyncio
    async def test_long_last_line_without_newline(self, fake_executable):
        """Test an over-long final line without terminator is still delivered."""
        executable = fake_executable("head -c 5000 /dev/zero | tr '\\0' z")
        out = CollectingHandler()

        await ProcessExecutor(line_limit=1024).execute(
            _command(executable), output_handler=out, batch_mode=True
        )

        assert out.lines == ["z" * 5000]

    @pytest.mark.asyncio
    async def test_failing_handler(self, fake_executable):
        """Test a handler exception becomes a StreamError and the process still finishes."""
        executable = fake_executable("echo first\necho second\nexit 0")
        seen: list[str] = []

        def explode(line: str) -> None:
            seen.append(line)
            raise RuntimeError("consumer broke")

        result = await ProcessExecutor().execute(
            _command(executable), output_handler=explode, batch_mode=True
        )

        assert result.exit_code is None
        assert isinstance(result.execution_exception, StreamError)
        assert result.execution_exception.details["stream"] == "stdout"
        assert "consumer broke" in result.execution_exception.message
        assert seen == ["first"]


class TestInput:
    """Tests for stdin handling."""

    @pytest.mark.asyncio
    async def test_input_piped_in_interactive_mode(self, fake_executable):
        """Test the input stream is copied to stdin and closed at EOF."""
        out = CollectingHandler()

        result = await ProcessExecutor().execute(
            _command(fake_executable("cat")),
            output_handler=out,
            input_stream=io.BytesIO(b"hello\nworld\n"),
        )

        assert result.exit_code == 0
        assert out.lines == ["hello", "world"]

    @pytest.mark.asyncio
    async def test_text_input(self, fake_executable):
        """Test a text stream is encoded before it is written."""
        out = CollectingHandler()

        await ProcessExecutor().execute(
            _command(fake_executable("cat")),
            output_handler=out,
            input_stream=io.StringIO("typed answer\n"),
        )

        assert out.lines == ["typed answer"]

    @pytest.mark.asyncio
    async def test_batch_mode_ignores_input(self, fake_executable, caplog: pytest.LogCaptureFixture):
        """Test batch mode never pipes the input stream."""
        out = CollectingHandler()

        with caplog.at_level(logging.INFO):
            result = await ProcessExecutor().execute(
                _command(fake_executable("cat")),
                output_handler=out,
                input_stream=io.BytesIO(b"should not arrive\n"),
                batch_mode=True,
            )

        assert result.exit_code == 0
        assert out.lines == []
        assert "batch mode" in caplog.text

    @pytest.mark.asyncio
    async def test_interactive_without_input_warns(
        self, fake_executable, caplog: pytest.LogCaptureFixture
    ):
        """Test interactive mode without an input stream logs a warning and sees EOF."""
        out = CollectingHandler()

        with caplog.at_level(logging.WARNING):
            result = await ProcessExecutor().execute(
                _command(fake_executable("cat")), output_handler=out
            )

        assert result.exit_code == 0
        assert out.lines == []
        assert "interactive mode" in caplog.text

    @pytest.mark.asyncio
    async def test_process_ignoring_input(self, fake_executable):
        """Test a process that never reads stdin still completes."""
        result = await ProcessExecutor().execute(
            _command(fake_executable("exit 0")),
            input_stream=io.BytesIO(b"x" * 1024 * 1024),
        )

        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_pipe_shared_by_consecutive_invocations(self, fake_executable):
        """Test an input pipe reused across invocations feeds each one its own line."""
        executable = fake_executable('read line\necho "got $line"')
        executor = ProcessExecutor()
        read_fd, write_fd = os.pipe()
        source = open(read_fd, "rb", buffering=0)
        try:
            first = CollectingHandler()
            os.write(write_fd, b"first\n")
            await executor.execute(_command(executable), output_handler=first, input_stream=source)

            assert first.lines == ["got first"]
            assert not [t for t in threading.enumerate() if t.name == INPUT_THREAD_NAME]

            second = CollectingHandler()
            os.write(write_fd, b"second\n")
            result = await executor.execute(
                _command(executable), output_handler=second, input_stream=source
            )

            assert result.exit_code == 0
            assert second.lines == ["got second"]
        finally:
            source.close()
            os.close(write_fd)

    @pytest.mark.asyncio
    async def test_text_input_partially_consumed(self, fake_executable):
        """Test a process reading one line of a text stream finishes cleanly."""
        executable = fake_executable('read line\necho "got $line"')
        source = io.StringIO("one\ntwo\n")
        out = CollectingHandler()

        await ProcessExecutor().execute(_command(executable), output_handler=out, input_stream=source)

        assert out.lines == ["got one"]

    """Tests for the timeout watchdog."""

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, fake_executable):
        """Test a long-running process is stopped and reported as timed out."""
        executor = ProcessExecutor(termination_grace_seconds=1.0)
        start = time.monotonic()

        result = await executor.execute(
            _command(fake_executable("echo started\nsleep 30")),
            timeout_in_seconds=1,
            batch_mode=True,
        )

        assert time.monotonic() - start < 10
        assert result.exit_code is None
        assert isinstance(result.execution_exception, InvocationTimeoutError)
        assert result.execution_exception.message == "Process timed out after 1 seconds"
        assert result.timed_out is True

    @pytest.mark.asyncio
    async def test_termination_escalates_to_kill(self, fake_executable):
        """Test a process ignoring SIGTERM is killed after the grace period."""
        executor = ProcessExecutor(termination_grace_seconds=0.5)
        start = time.monotonic()

        result = await executor.execute(
            _command(fake_executable("trap '' TERM\nsleep 30")),
            timeout_in_seconds=1,
            batch_mode=True,
        )

        assert time.monotonic() - start < 10
        assert result.timed_out is True

    @pytest.mark.asyncio
    async def test_fast_process_within_timeout(self, fake_executable):
        """Test a process finishing before the deadline reports its exit code."""
        result = await ProcessExecutor().execute(
            _command(fake_executable("exit 2")), timeout_in_seconds=30, batch_mode=True
        )

        assert result.exit_code == 2
        assert result.timed_out is False

    @pytest.mark.asyncio
    async def test_one_second_run_under_four_second_timeout(self, fake_executable):
        """Test a one-second process is not disturbed by a four-second timeout."""
        result = await ProcessExecutor().execute(
            _command(fake_executable("sleep 1\necho done")),
            output_handler=CollectingHandler(),
            timeout_in_seconds=4,
            batch_mode=True,
        )

        assert result.exit_code == 0
        assert result.execution_exception is None
