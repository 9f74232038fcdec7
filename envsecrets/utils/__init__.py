"""Utility modules for envsecrets."""

from .logging import (
    console,
    get_logger,
    setup_logging,
)


__all__ = [
    "setup_logging",
    "get_logger",
    "console",
]
