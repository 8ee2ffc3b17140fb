"""Line consumers for process output."""

import logging
import sys
from typing import TextIO


class PrintStreamHandler:
    """Writes every line to a text stream (stdout unless told otherwise)."""

    def __init__(self, stream: TextIO | None = None, always_flush: bool = False) -> None:
        self.stream = stream
        self.always_flush = always_flush

    def __call__(self, line: str) -> None:
        stream = self.stream or sys.stdout
        stream.write(line + "\n")
        if self.always_flush:
            stream.flush()


class CollectingHandler:
    """Keeps every line in memory."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def __call__(self, line: str) -> None:
        self.lines.append(line)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class LoggingHandler:
    """Forwards every line to a logger."""

    def __init__(self, logger: logging.Logger, level: int = logging.INFO) -> None:
        self.logger = logger
        self.level = level

    def __call__(self, line: str) -> None:
        self.logger.log(self.level, line)
