"""Command-line interface for envsecrets."""
