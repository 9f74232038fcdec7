"""In-memory vault model.

A vault is one JSON document per environment. Metadata is stored in clear;
entry values are AES-GCM ciphertext produced by the crypto module.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from .crypto import KdfParams, decrypt, encrypt
from .exceptions import (
    EntryNotFoundError,
    InvalidInputError,
    VaultCorruptedError,
    VaultLockedError,
)

FORMAT_VERSION = 1
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"  # RFC3339, UTC, second precision


def utc_now() -> str:
    """Current UTC time as an RFC3339 timestamp."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def _object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise VaultCorruptedError(f"Invalid vault file: {what} must be an object.")
    return data


def _text(data: dict[str, Any], name: str, what: str, default: Optional[str] = None) -> str:
    """Read a string field, raising VaultCorruptedError if missing or mistyped."""
    value = data.get(name, default)
    if not isinstance(value, str):
        raise VaultCorruptedError(f"Invalid vault file: {what} field {name!r} must be a string.")
    return value


@dataclass
class Entry:
    """One encrypted value with its creation and update times."""

    ciphertext: str
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "value": self.ciphertext,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entry":
        """Create from dictionary."""
        data = _object(data, "entry")
        return cls(
            ciphertext=_text(data, "value", "entry"),
            created_at=_text(data, "created_at", "entry", default=""),
            updated_at=_text(data, "updated_at", "entry", default=""),
        )


@dataclass
class VaultMeta:
    """
    Vault metadata, stored unencrypted.

    Contains only:
    - Environment name the vault was created for
    - Salt for key derivation
    - Fingerprint (Argon2id hash) of the passphrase
    - Key derivation parameters
    """

    environment: str
    salt: str
    fingerprint: str
    kdf: KdfParams = field(default_factory=KdfParams)
    version: int = FORMAT_VERSION

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "env": self.environment,
            "salt": self.salt,
            "fingerprint": self.fingerprint,
            "kdf": self.kdf.to_dict(),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VaultMeta":
        """Create from dictionary."""
        data = _object(data, "meta")
        version = data.get("version", FORMAT_VERSION)
        if not isinstance(version, int) or isinstance(version, bool):
            raise VaultCorruptedError(f"Invalid vault file: unsupported version {version!r}.")
        return cls(
            environment=_text(data, "env", "meta"),
            salt=_text(data, "salt", "meta"),
            fingerprint=_text(data, "fingerprint", "meta"),
            kdf=KdfParams.from_dict(data.get("kdf") or {}),
            version=version,
        )


@dataclass
class Vault:
    """
    Encrypted key/value container for one environment.

    The passphrase is attached by the vault store after verification and
    lives only in process memory for the duration of a command.

    Usage:
        vault = store.open("prod")
        vault.set_entry("API_KEY", vault.encrypt_value("abc123"))
        store.save(vault)
        vault.reveal("API_KEY")  # "abc123"
    """

    meta: VaultMeta
    entries: dict[str, Entry] = field(default_factory=dict)
    path: Optional[Path] = field(default=None, compare=False)
    passphrase: Optional[str] = field(default=None, repr=False, compare=False)

    @classmethod
    def new(
        cls,
        environment: str,
        salt: str,
        fingerprint: str,
        kdf: Optional[KdfParams] = None,
    ) -> "Vault":
        """
        Create an empty vault.

        Raises:
            InvalidInputError: If any of environment, salt or fingerprint is empty
        """
        if not environment:
            raise InvalidInputError("Environment cannot be empty.")
        if not fingerprint:
            raise InvalidInputError("Fingerprint cannot be empty.")
        if not salt:
            raise InvalidInputError("Salt cannot be empty.")
        return cls(
            meta=VaultMeta(
                environment=environment,
                salt=salt,
                fingerprint=fingerprint,
                kdf=kdf or KdfParams(),
            )
        )

    @property
    def environment(self) -> str:
        return self.meta.environment

    @property
    def is_unlocked(self) -> bool:
        return bool(self.passphrase)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: str) -> bool:
        return key in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.entries))

    # Entry operations (in memory only; callers save through the store)

    def set_entry(self, key: str, ciphertext: str) -> Entry:
        """
        Add or overwrite an entry.

        Args:
            key: Entry key
            ciphertext: Encrypted value from encrypt_value()

        Returns:
            The stored entry
        """
        if not key:
            raise InvalidInputError("Key cannot be empty.")
        if not ciphertext:
            raise InvalidInputError("Encrypted value cannot be empty.")

        now = utc_now()
        entry = self.entries.get(key)
        if entry is not None:
            entry.ciphertext = ciphertext
            entry.updated_at = now
        else:
            entry = Entry(ciphertext=ciphertext, created_at=now, updated_at=now)
            self.entries[key] = entry
        return entry

    def get_entry(self, key: str) -> Entry:
        """Get an entry or raise EntryNotFoundError."""
        try:
            return self.entries[key]
        except KeyError:
            raise EntryNotFoundError(key)

    def delete_entry(self, key: str) -> None:
        """Remove an entry or raise EntryNotFoundError."""
        if key not in self.entries:
            raise EntryNotFoundError(key)
        del self.entries[key]

    # Session

    def attach(self, passphrase: str) -> None:
        """Bind a verified passphrase to this vault."""
        if not passphrase:
            raise InvalidInputError("Passphrase cannot be empty.")
        self.passphrase = passphrase

    def lock(self) -> None:
        """Drop the session passphrase."""
        self.passphrase = None

    def require_passphrase(self) -> str:
        if not self.passphrase:
            raise VaultLockedError()
        return self.passphrase

    def encrypt_value(self, plaintext: bytes | str) -> str:
        """Encrypt a value with this vault's salt and session passphrase."""
        return encrypt(plaintext, self.meta.salt, self.require_passphrase(), self.meta.kdf)

    def decrypt_entry(self, key: str) -> bytes:
        """Decrypt an entry's value."""
        entry = self.get_entry(key)
        return decrypt(entry.ciphertext, self.meta.salt, self.require_passphrase(), self.meta.kdf)

    def reveal(self, key: str) -> str:
        """Decrypt an entry's value as UTF-8 text."""
        try:
            return self.decrypt_entry(key).decode("utf-8")
        except UnicodeDecodeError:
            raise VaultCorruptedError(f"Entry {key!r} is not valid UTF-8 text.")

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "meta": self.meta.to_dict(),
            "entries": {key: self.entries[key].to_dict() for key in sorted(self.entries)},
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vault":
        """Create from dictionary."""
        data = _object(data, "vault")
        entries = {}
        for key, raw in _object(data.get("entries") or {}, "entries").items():
            entry = Entry.from_dict(raw)
            if not key or not entry.ciphertext:
                raise VaultCorruptedError(f"Invalid entry {key!r} in vault.")
            entries[key] = entry
        return cls(meta=VaultMeta.from_dict(data.get("meta")), entries=entries)

    @classmethod
    def from_json(cls, json_str: str) -> "Vault":
        """Deserialize from JSON string."""
        try:
            data = json.loads(json_str)
            return cls.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError, ValueError) as e:
            raise VaultCorruptedError(f"Invalid vault file: {e}")
