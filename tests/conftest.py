"""Shared pytest fixtures for envsecrets tests."""

from pathlib import Path
from typing import Optional

import pytest

# Argon2id costs small enough to keep tests fast
FAST_KDF = {"time_cost": 1, "memory_cost": 1024, "parallelism": 1}


class ScriptedPrompter:
    """Prompter double answering from queued responses.

    Records every message it was asked so tests can assert on prompts.
    """

    def __init__(self, secrets: Optional[list[str]] = None, confirmations: Optional[list[bool]] = None):
        self.secrets = list(secrets or [])
        self.confirmations = list(confirmations or [])
        self.secret_prompts: list[tuple[str, bool]] = []
        self.confirm_prompts: list[str] = []

    def secret(self, message: str, confirm: bool = False) -> str:
        self.secret_prompts.append((message, confirm))
        if not self.secrets:
            from envsecrets.vault import OperationCancelledError

            raise OperationCancelledError("No scripted answer left.")
        return self.secrets.pop(0)

    def confirm(self, message: str) -> bool:
        self.confirm_prompts.append(message)
        if not self.confirmations:
            return False
        return self.confirmations.pop(0)


@pytest.fixture
def vault_config(tmp_path: Path):
    """VaultConfig pointing at a temporary directory with low KDF costs."""
    from envsecrets.vault import VaultConfig

    return VaultConfig(
        vault_dir=tmp_path / ".envsecrets",
        kdf_time_cost=FAST_KDF["time_cost"],
        kdf_memory_cost=FAST_KDF["memory_cost"],
        kdf_parallelism=FAST_KDF["parallelism"],
        fingerprint_time_cost=FAST_KDF["time_cost"],
        fingerprint_memory_cost=FAST_KDF["memory_cost"],
        fingerprint_parallelism=FAST_KDF["parallelism"],
    )


@pytest.fixture
def fast_kdf():
    """KdfParams matching the vault_config fixture."""
    from envsecrets.vault import KdfParams

    return KdfParams(**FAST_KDF)


@pytest.fixture
def credentials():
    """Empty in-memory credential store."""
    from envsecrets.vault import MemoryCredentialStore

    return MemoryCredentialStore()


@pytest.fixture
def prompter() -> ScriptedPrompter:
    """Prompter with no scripted answers; tests fill it as needed."""
    return ScriptedPrompter()


@pytest.fixture
def environ() -> dict:
    """Process environment seen by the resolver (no override set)."""
    return {}


@pytest.fixture
def resolver(credentials, prompter, environ):
    """PassphraseResolver wired to the in-memory cache and scripted prompter."""
    from envsecrets.vault import PassphraseResolver

    return PassphraseResolver(credentials, prompter, environ=environ)


@pytest.fixture
def store(resolver, vault_config):
    """VaultStore over a temporary vault directory."""
    from envsecrets.vault import VaultStore

    return VaultStore(resolver, vault_config)


@pytest.fixture
def prod_vault(store, prompter):
    """An open, empty vault for 'prod' with passphrase 'correct-horse'."""
    prompter.secrets.append("correct-horse")
    return store.create("prod")
