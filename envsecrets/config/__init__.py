"""Configuration for envsecrets."""

from .settings import LOG_LEVELS, Settings, configure, get_settings

__all__ = ["LOG_LEVELS", "Settings", "configure", "get_settings"]
