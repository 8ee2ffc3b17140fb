"""Maven invocation: path resolution, command-line compilation and process execution.

This module provides:
- Maven home and executable resolution across operating systems
- Request to command-line compilation
- Process execution with stream pumping and timeouts
"""

from mvn_invoker.invoker.command_line import CommandLineCompiler
from mvn_invoker.invoker.executor import ProcessExecutor
from mvn_invoker.invoker.handlers import (
    CollectingHandler,
    LoggingHandler,
    PrintStreamHandler,
)
from mvn_invoker.invoker.invoker import Invoker
from mvn_invoker.invoker.resolver import PathResolver

__all__ = [
    "PathResolver",
    "CommandLineCompiler",
    "ProcessExecutor",
    "Invoker",
    "PrintStreamHandler",
    "CollectingHandler",
    "LoggingHandler",
]
