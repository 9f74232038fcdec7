"""Parse and render plaintext key/value files for import and export.

Supported formats:
- dotenv: KEY=value lines; blank lines and lines starting with # or // are
  skipped, surrounding quotes are stripped
- json: a single JSON object of string values
"""

import json
from typing import IO, Union

from ..vault.exceptions import InvalidInputError

FORMATS = ("dotenv", "json")

QUOTE_CHARS = ('"', "'")
COMMENT_PREFIXES = ("#", "//")


def _strip_quotes(value: str) -> str:
    """Remove one pair of matching surrounding quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in QUOTE_CHARS:
        return value[1:-1]
    return value


def parse_dotenv(text: str) -> dict[str, str]:
    """
    Parse dotenv content.

    Lines without '=' or with an empty key are ignored. Later duplicates
    win.

    Args:
        text: File content

    Returns:
        Mapping of key to value
    """
    entries: dict[str, str] = {}

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(COMMENT_PREFIXES):
            continue

        key, sep, value = line.partition("=")
        if not sep:
            continue

        key = key.strip()
        if not key:
            continue

        entries[key] = _strip_quotes(value.strip())

    return entries


def parse_json(text: str) -> dict[str, str]:
    """
    Parse a JSON object of strings.

    Raises:
        InvalidInputError: If the content is not an object of string values
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON: {e}")

    if not isinstance(data, dict):
        raise InvalidInputError("JSON input must be an object of key/value pairs.")

    for key, value in data.items():
        if not isinstance(value, str):
            raise InvalidInputError(f"Value for {key!r} must be a string.")

    return data


def _needs_quotes(value: str) -> bool:
    """Whether a value would change when parsed back unquoted."""
    if value != value.strip():
        return True
    return _strip_quotes(value) != value


def render_dotenv(entries: dict[str, str]) -> str:
    """
    Render entries as dotenv lines sorted by key.

    Raises:
        InvalidInputError: If a value contains a newline
    """
    lines = []
    for key in sorted(entries):
        value = entries[key]
        if "\n" in value or "\r" in value:
            raise InvalidInputError(
                f"Value for {key!r} contains a newline; export it as JSON instead."
            )
        if _needs_quotes(value):
            value = f'"{value}"'
        lines.append(f"{key}={value}")
    return "\n".join(lines) + ("\n" if lines else "")


def render_json(entries: dict[str, str]) -> str:
    """Render entries as an indented JSON object sorted by key."""
    return json.dumps(entries, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def parse_entries(source: Union[str, IO[str]], fmt: str) -> dict[str, str]:
    """
    Parse entries in the given format.

    Args:
        source: Text or a readable text stream
        fmt: "dotenv" or "json"
    """
    text = source if isinstance(source, str) else source.read()
    if fmt == "dotenv":
        return parse_dotenv(text)
    if fmt == "json":
        return parse_json(text)
    raise InvalidInputError(f"Invalid format {fmt!r}, must be dotenv or json.")


def render_entries(entries: dict[str, str], fmt: str) -> str:
    """Render entries in the given format."""
    if fmt == "dotenv":
        return render_dotenv(entries)
    if fmt == "json":
        return render_json(entries)
    raise InvalidInputError(f"Invalid format {fmt!r}, must be dotenv or json.")
