"""Credential store access for cached vault passphrases.

Passphrases are cached per environment under the key ``env:<environment>``
in the OS credential store (macOS Keychain, Windows Credential Locker,
Secret Service on Linux) through the keyring library.
"""

from abc import ABC, abstractmethod
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .exceptions import CredentialStoreError

DEFAULT_SERVICE = "envsecrets"


def credential_key(environment: str) -> str:
    """Credential store key for an environment's cached passphrase."""
    return f"env:{environment}"


class CredentialStore(ABC):
    """Get/set/delete access to cached secrets."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Retrieve a secret by key. Returns None if not found."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store or update a secret."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a secret. Does not raise if the key does not exist."""


class SystemCredentialStore(CredentialStore):
    """Credential store backed by the OS keyring."""

    def __init__(self, service: str = DEFAULT_SERVICE):
        self.service = service

    def get(self, key: str) -> Optional[str]:
        try:
            return keyring.get_password(self.service, key)
        except KeyringError as e:
            raise CredentialStoreError(f"Failed to read {key!r} from keyring: {e}")

    def set(self, key: str, value: str) -> None:
        try:
            keyring.set_password(self.service, key, value)
        except KeyringError as e:
            raise CredentialStoreError(f"Failed to write {key!r} to keyring: {e}")

    def delete(self, key: str) -> None:
        try:
            keyring.delete_password(self.service, key)
        except PasswordDeleteError:
            pass  # Nothing cached
        except KeyringError as e:
            raise CredentialStoreError(f"Failed to delete {key!r} from keyring: {e}")


class MemoryCredentialStore(CredentialStore):
    """Process-local credential store.

    Used when the OS keyring is disabled, and as a test double.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._secrets: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._secrets.get(key)

    def set(self, key: str, value: str) -> None:
        self._secrets[key] = value

    def delete(self, key: str) -> None:
        self._secrets.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._secrets
