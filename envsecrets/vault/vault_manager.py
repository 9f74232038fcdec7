"""Vault store for on-disk vault lifecycle operations.

Handles vault creation, passphrase verification, loading, atomic saving and
destruction. One vault file per environment lives at
``<vault_dir>/<environment>.vault``.
"""

import os
import re
import stat
import tempfile
from pathlib import Path
from typing import Optional

from ..utils.logging import get_logger
from .config import VaultConfig, get_vault_config
from .crypto import KdfParams, KeyDerivation
from .exceptions import (
    EnvironmentMismatchError,
    InvalidInputError,
    InvalidPassphraseError,
    StorageError,
    VaultAlreadyExistsError,
    VaultNotFoundError,
)
from .models import Vault
from .passphrase import PassphraseResolver

logger = get_logger(__name__)

# Environment names double as file names
ENVIRONMENT_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_environment(environment: str) -> str:
    """
    Check that an environment name is usable as a vault file name.

    Raises:
        InvalidInputError: If empty or containing path separators or other
            characters outside letters, digits, '.', '_' and '-'
    """
    if not environment:
        raise InvalidInputError("Environment cannot be empty.")
    if not ENVIRONMENT_PATTERN.match(environment):
        raise InvalidInputError(
            f"Invalid environment name {environment!r}: use letters, digits, '.', '_' or '-'."
        )
    return environment


class VaultStore:
    """
    Manages vault files for all environments in a vault directory.

    Usage:
        store = VaultStore(resolver)

        if store.exists("prod"):
            vault = store.open("prod")
        else:
            vault = store.create("prod")

        vault.set_entry("API_KEY", vault.encrypt_value("abc123"))
        store.save(vault)
    """

    def __init__(self, resolver: PassphraseResolver, config: Optional[VaultConfig] = None):
        """
        Initialize the vault store.

        Args:
            resolver: Source of passphrases for create/open/destroy
            config: Vault configuration (uses global if not provided)
        """
        self.resolver = resolver
        self.config = config or get_vault_config()

    @property
    def vault_dir(self) -> Path:
        """Directory holding vault files."""
        return Path(self.config.vault_dir)

    def vault_path(self, environment: str) -> Path:
        """Path to the vault file for an environment."""
        validate_environment(environment)
        return self.vault_dir / f"{environment}{self.config.vault_extension}"

    def exists(self, environment: str) -> bool:
        """Check whether a vault file exists for an environment."""
        return self.vault_path(environment).exists()

    def environments(self) -> list[str]:
        """Names of all environments with a vault in the vault directory."""
        if not self.vault_dir.is_dir():
            return []
        suffix = self.config.vault_extension
        return sorted(
            path.name[: -len(suffix)]
            for path in self.vault_dir.glob(f"*{suffix}")
            if path.is_file() and ENVIRONMENT_PATTERN.match(path.name[: -len(suffix)])
        )

    def create(self, environment: str) -> Vault:
        """
        Create a new, empty vault and return it open.

        The passphrase is always newly chosen: the cache is bypassed and the
        prompt asks for confirmation. A prompted passphrase is cached only
        once the vault file has been written.

        Raises:
            VaultAlreadyExistsError: If the environment already has a vault
        """
        if self.exists(environment):
            raise VaultAlreadyExistsError(environment)

        override = self.resolver.override()
        passphrase = override or self.resolver.prompt(environment, confirm=True)

        fingerprint = KeyDerivation.create_fingerprint(
            passphrase,
            time_cost=self.config.fingerprint_time_cost,
            memory_cost=self.config.fingerprint_memory_cost,
            parallelism=self.config.fingerprint_parallelism,
        )
        salt = KeyDerivation.generate_salt(self.config.salt_size)

        vault = Vault.new(environment, salt, fingerprint, KdfParams.from_config(self.config))
        vault.path = self.vault_path(environment)
        self.save(vault)
        vault.attach(passphrase)
        if not override:
            self.resolver.remember(environment, passphrase)

        logger.info(f"Created vault for {environment} at {vault.path}")
        return vault

    def open(self, environment: str) -> Vault:
        """
        Load a vault and verify the resolved passphrase against it.

        A rejected passphrase is evicted from the cache before the error is
        raised so it is not silently retried next time.

        Raises:
            VaultNotFoundError: If no vault exists
            EnvironmentMismatchError: If the file belongs to another environment
            InvalidPassphraseError: If the passphrase does not match
        """
        if not self.exists(environment):
            raise VaultNotFoundError(environment)

        passphrase = self.resolver.resolve(environment)
        vault = self.load(environment)

        if not KeyDerivation.verify_fingerprint(vault.meta.fingerprint, passphrase):
            self.resolver.evict(environment)
            raise InvalidPassphraseError(f"Invalid passphrase for environment {environment!r}.")

        vault.attach(passphrase)
        logger.debug(f"Opened vault for {environment} ({len(vault)} entries)")
        return vault

    def load(self, environment: str) -> Vault:
        """
        Read and parse a vault file without verifying any passphrase.

        Raises:
            VaultNotFoundError: If no vault exists
            VaultCorruptedError: If the file cannot be parsed
            EnvironmentMismatchError: If the file belongs to another environment
        """
        path = self.vault_path(environment)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise VaultNotFoundError(environment)
        except OSError as e:
            raise StorageError(f"Failed to read vault file {path}: {e}")

        vault = Vault.from_json(content)
        if vault.environment != environment:
            raise EnvironmentMismatchError(environment, vault.environment)

        vault.path = path
        return vault

    def save(self, vault: Vault) -> Path:
        """
        Write a vault to disk, replacing the previous file atomically.

        Returns:
            Path written
        """
        if vault.path is None:
            vault.path = self.vault_path(vault.environment)
        else:
            validate_environment(vault.environment)

        self._ensure_vault_dir(vault.path.parent)
        self._write_atomic(vault.path, vault.to_json())
        return vault.path

    def destroy(self, environment: str) -> bool:
        """
        Permanently delete a vault after fresh passphrase verification.

        The cached passphrase is cleared first and neither the cache nor the
        override variable is consulted: the operator must type the passphrase
        and then confirm.

        Returns:
            True if deleted, False if the operator declined

        Raises:
            VaultNotFoundError: If no vault exists
            InvalidPassphraseError: If the passphrase does not match
        """
        if not self.exists(environment):
            raise VaultNotFoundError(environment)

        self.resolver.evict(environment)
        vault = self.load(environment)

        passphrase = self.resolver.prompt(
            environment,
            message=f"Enter passphrase to destroy vault for environment {environment!r}",
        )
        if not KeyDerivation.verify_fingerprint(vault.meta.fingerprint, passphrase):
            raise InvalidPassphraseError("Invalid passphrase: cannot destroy vault.")

        confirmed = self.resolver.prompter.confirm(
            f"This will permanently delete the {environment} vault and all its secrets. "
            "Are you sure?"
        )
        if not confirmed:
            logger.info(f"Destruction of {environment} vault cancelled")
            return False

        try:
            vault.path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete vault file {vault.path}: {e}")

        logger.info(f"Destroyed vault for {environment}")
        return True

    def _ensure_vault_dir(self, directory: Path) -> None:
        """Create the vault directory with owner-only permissions.

        An existing directory owned by the current user is narrowed to
        dir_mode if it is more permissive.
        """
        if directory.is_dir():
            try:
                st = directory.stat()
                if st.st_uid == os.getuid() and stat.S_IMODE(st.st_mode) != self.config.dir_mode:
                    os.chmod(directory, self.config.dir_mode)
                    logger.info(f"Restricted permissions on vault directory {directory}")
            except OSError as e:
                raise StorageError(f"Failed to secure vault directory {directory}: {e}")
            return
        try:
            directory.mkdir(parents=True, exist_ok=True, mode=self.config.dir_mode)
            os.chmod(directory, self.config.dir_mode)
        except OSError as e:
            raise StorageError(f"Failed to create vault directory {directory}: {e}")

    def _write_atomic(self, path: Path, content: str) -> None:
        """Write to a temp file in the same directory, then rename over the target."""
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise StorageError(f"Failed to write vault file {path}: {e}")

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                os.chmod(tmp_path, self.config.file_mode)
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Failed to write vault file {path}: {e}")
