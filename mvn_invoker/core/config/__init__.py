"""Configuration management for mvn-invoker."""

from mvn_invoker.core.config.loader import ConfigLoader
from mvn_invoker.core.config.settings import (
    InvokerSettings,
    LoggingSettings,
    Settings,
    get_settings,
)

__all__ = [
    "ConfigLoader",
    "InvokerSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
]
