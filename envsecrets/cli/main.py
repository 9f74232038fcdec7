"""envsecrets CLI - encrypted per-environment secret vaults."""

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..config.settings import LOG_LEVELS, Settings, configure
from ..utils.logging import console as err_console
from ..utils.logging import get_logger, setup_logging
from ..vault import (
    ConsolePrompter,
    InvalidInputError,
    MemoryCredentialStore,
    OperationCancelledError,
    PassphraseResolver,
    SystemCredentialStore,
    VaultError,
    VaultStore,
    validate_environment,
)

app = typer.Typer(
    name="envsecrets",
    help="Securely manage your .env files and secrets in encrypted vaults.",
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)


def _env_option():
    return typer.Option(..., "--env", "-e", help="Environment name (e.g., prod, staging)")


@contextmanager
def vault_errors() -> Iterator[None]:
    """Report vault errors on stderr and exit with status 1."""
    try:
        yield
    except OperationCancelledError as e:
        err_console.print(f"[yellow]Cancelled: {escape(str(e))}[/yellow]")
        raise typer.Exit(1)
    except VaultError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def build_store(settings: Settings) -> VaultStore:
    """Wire the credential cache, prompter and resolver for a command."""
    if settings.use_keyring:
        credentials = SystemCredentialStore(settings.vault.keyring_service)
    else:
        credentials = MemoryCredentialStore()

    resolver = PassphraseResolver.from_config(settings.vault, credentials, ConsolePrompter())
    return VaultStore(resolver, settings.vault)


def _store(ctx: typer.Context) -> VaultStore:
    return build_store(ctx.obj)


@app.callback()
def cli(
    ctx: typer.Context,
    vault_dir: Optional[Path] = typer.Option(
        None,
        "--vault-dir",
        help="Directory holding vault files (default: .envsecrets)",
    ),
    no_keyring: bool = typer.Option(
        False,
        "--no-keyring",
        help="Do not read or cache passphrases in the OS keyring",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Write debug logs to this file",
    ),
):
    """
    envsecrets securely manages your .env files and secrets.

    Passphrases are taken from $ENVSECRETS_PASSPHRASE, the OS keyring or an
    interactive prompt, in that order.
    """
    settings = Settings.from_env()

    if vault_dir is not None:
        settings.vault.vault_dir = vault_dir
    if no_keyring:
        settings.use_keyring = False
    if log_level is not None:
        if log_level.upper() not in LOG_LEVELS:
            raise typer.BadParameter(
                f"must be one of {', '.join(LOG_LEVELS)}", param_hint="--log-level"
            )
        settings.log_level = log_level.upper()
    if log_file is not None:
        settings.log_file = log_file

    setup_logging(settings.log_level, settings.log_file)
    configure(settings)
    ctx.obj = settings


@app.command()
def init(
    ctx: typer.Context,
    env: str = _env_option(),
):
    """
    Initialize a new vault for an environment.

    The vault is created at <vault-dir>/<env>.vault with owner-only
    permissions. You will be asked to choose and confirm a passphrase unless
    $ENVSECRETS_PASSPHRASE is set.
    """
    store = _store(ctx)

    with vault_errors():
        vault = store.create(env)

    console.print(f"[green]Vault created for environment '{escape(env)}'[/green]")
    console.print(f"  Location: {vault.path}")


@app.command()
def add(
    ctx: typer.Context,
    env: str = _env_option(),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Entry key"),
    value: Optional[str] = typer.Option(None, "--value", "-v", help="Entry value"),
    secret: bool = typer.Option(False, "--secret", "-s", help="Hide value input"),
):
    """
    Add or update an entry in the vault.

    Missing key or value are prompted for; use --secret to hide the value
    while typing.
    """
    store = _store(ctx)

    with vault_errors():
        if not key:
            key = typer.prompt("Enter key", default="", show_default=False)
        if not key:
            raise InvalidInputError("Key cannot be empty.")

        if not value:
            if secret:
                value = store.resolver.prompter.secret("Enter secret")
            else:
                value = typer.prompt("Enter value", default="", show_default=False)
        if not value:
            raise InvalidInputError("Value cannot be empty.")

        vault = store.open(env)
        existed = key in vault
        vault.set_entry(key, vault.encrypt_value(value))
        store.save(vault)

    action = "updated" if existed else "added"
    console.print(f"[green]Entry '{escape(key)}' {action} in {escape(env)} vault[/green]")


@app.command()
def get(
    ctx: typer.Context,
    env: str = _env_option(),
    key: str = typer.Option(..., "--key", "-k", help="Entry key"),
):
    """
    Print the decrypted value of an entry.

    Only the value is written to stdout, so the output can be captured:

        export API_KEY=$(envsecrets get -e prod -k API_KEY)
    """
    store = _store(ctx)

    with vault_errors():
        vault = store.open(env)
        plaintext = vault.reveal(key)

    typer.echo(plaintext)


@app.command()
def delete(
    ctx: typer.Context,
    env: str = _env_option(),
    key: str = typer.Option(..., "--key", "-k", help="Entry key"),
):
    """Delete an entry from the vault."""
    store = _store(ctx)

    with vault_errors():
        vault = store.open(env)
        vault.delete_entry(key)
        store.save(vault)

    console.print(f"[green]Entry '{escape(key)}' deleted from {escape(env)} vault[/green]")


@app.command("list")
def list_entries(
    ctx: typer.Context,
    env: str = _env_option(),
):
    """List entry keys with their timestamps. Values are never shown."""
    store = _store(ctx)

    with vault_errors():
        vault = store.open(env)

    if not len(vault):
        console.print(f"[yellow]No entries in {escape(env)} vault[/yellow]")
        return

    table = Table(title=f"{env} ({len(vault)} entries)")
    table.add_column("Key", style="cyan")
    table.add_column("Created")
    table.add_column("Updated")

    for key in vault:
        entry = vault.entries[key]
        table.add_row(escape(key), entry.created_at, entry.updated_at)

    console.print(table)


@app.command()
def rotate(
    ctx: typer.Context,
    env: str = _env_option(),
):
    """
    Rotate the passphrase for a vault.

    Every entry is re-encrypted under a new salt and the new passphrase. If
    any entry cannot be re-encrypted, nothing is written.
    """
    from ..vault import rotate_passphrase

    store = _store(ctx)

    with vault_errors():
        vault = store.open(env)
        new_passphrase = store.resolver.prompter.secret("Enter new passphrase", confirm=True)
        if not new_passphrase:
            raise InvalidInputError("New passphrase cannot be empty.")
        stats = rotate_passphrase(store, vault, new_passphrase)

    console.print(f"[green]Passphrase rotated for {escape(env)} vault[/green]")
    console.print(f"  {stats['entries_rotated']} entries re-encrypted")


@app.command()
def export(
    ctx: typer.Context,
    env: str = _env_option(),
    fmt: str = typer.Option("dotenv", "--format", "-f", help="Output format (dotenv or json)"),
):
    """
    Export decrypted vault entries to stdout.

    Examples:

        envsecrets export -e prod > .env

        envsecrets export -e staging --format json > env.json
    """
    from ..formats import render_entries
    from ..vault import export_entries

    store = _store(ctx)

    with vault_errors():
        if fmt not in ("dotenv", "json"):
            raise InvalidInputError(f"Invalid format {fmt!r}, must be dotenv or json.")
        vault = store.open(env)
        output = render_entries(export_entries(vault), fmt)

    typer.echo(output, nl=False)


@app.command("import")
def import_file(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(None, help="Input file (default: stdin)"),
    env: str = _env_option(),
    fmt: str = typer.Option(..., "--format", "-f", help="Input format (dotenv or json)"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite existing keys"),
):
    """
    Import plaintext entries from a dotenv or JSON file into a vault.

    Examples:

        envsecrets import .env -e prod --format dotenv

        cat .env | envsecrets import -e local --format dotenv
    """
    from ..formats import parse_entries
    from ..vault import import_entries

    store = _store(ctx)

    with vault_errors():
        if fmt not in ("dotenv", "json"):
            raise InvalidInputError(f"Invalid format {fmt!r}, must be dotenv or json.")

        if file is not None:
            if not file.exists():
                raise InvalidInputError(f"File not found: {file}")
            entries = parse_entries(file.read_text(encoding="utf-8"), fmt)
        else:
            entries = parse_entries(sys.stdin, fmt)

        if not entries:
            raise InvalidInputError("No entries found in input.")

        vault = store.open(env)
        stats = import_entries(vault, entries, overwrite=overwrite)
        if stats["imported"]:
            store.save(vault)

    console.print(
        f"[green]Imported {stats['imported']} entries, skipped {stats['skipped']}[/green]"
    )


@app.command()
def verify(
    ctx: typer.Context,
    env: str = _env_option(),
):
    """Check that every entry in the vault decrypts."""
    from ..vault import verify_vault_integrity

    store = _store(ctx)

    with vault_errors():
        vault = store.open(env)
        stats = verify_vault_integrity(vault)

    console.print(f"Entries verified: {stats['entries_verified']}")
    if stats["entries_failed"]:
        console.print(f"[red]Entries failed: {stats['entries_failed']}[/red]")
        for error in stats["errors"]:
            console.print(f"  {escape(error)}")
        raise typer.Exit(1)

    console.print(f"[green]All entries in {escape(env)} vault are intact[/green]")


@app.command()
def destroy(
    ctx: typer.Context,
    env: str = _env_option(),
):
    """
    Permanently delete a vault and all its secrets.

    The cached passphrase is cleared and the passphrase must be typed again,
    followed by a confirmation.
    """
    store = _store(ctx)

    with vault_errors():
        destroyed = store.destroy(env)

    if not destroyed:
        console.print("[yellow]Destroy cancelled, vault kept[/yellow]")
        return

    console.print(f"[green]Vault for {escape(env)} destroyed[/green]")


@app.command()
def clear(
    ctx: typer.Context,
    env: str = _env_option(),
):
    """Clear the cached passphrase for an environment from the keyring."""
    store = _store(ctx)

    with vault_errors():
        validate_environment(env)
        cleared = store.resolver.evict(env)

    if not cleared:
        err_console.print("[yellow]Warning: could not clear cached passphrase[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]Cached passphrase cleared for {escape(env)}[/green]")


@app.command()
def version():
    """Show version information."""
    console.print(f"envsecrets v{__version__}")
    console.print("Encrypted per-environment secret vaults")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
