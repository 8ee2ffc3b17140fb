"""mvn-invoker: run Maven builds as child processes from Python."""

__version__ = "0.1.0"
