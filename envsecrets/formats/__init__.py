"""Plaintext import/export formats (dotenv and JSON)."""

from .parsers import (
    FORMATS,
    parse_dotenv,
    parse_entries,
    parse_json,
    render_dotenv,
    render_entries,
    render_json,
)

__all__ = [
    "FORMATS",
    "parse_dotenv",
    "parse_json",
    "parse_entries",
    "render_dotenv",
    "render_json",
    "render_entries",
]
