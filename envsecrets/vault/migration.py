"""Whole-vault maintenance flows.

Provides:
- Passphrase rotation (re-encrypt every entry under a new salt and key)
- Bulk import of plaintext values
- Export of decrypted values
- Integrity verification
"""

from typing import Mapping

from ..utils.logging import get_logger
from .crypto import KdfParams, KeyDerivation, decrypt, encrypt
from .exceptions import InvalidInputError, VaultError
from .models import Entry, Vault, utc_now
from .vault_manager import VaultStore

logger = get_logger(__name__)


def rotate_passphrase(store: VaultStore, vault: Vault, new_passphrase: str) -> dict:
    """
    Change a vault's passphrase.

    Every entry is decrypted with the current salt and passphrase and
    re-encrypted under a new salt and the new passphrase. The vault is only
    modified once every entry has been re-encrypted; a single failure leaves
    it untouched.

    Args:
        store: Vault store used to persist the result and update the cache
        vault: Open vault (current passphrase attached)
        new_passphrase: Operator-confirmed new passphrase

    Returns:
        Dict with rotation statistics

    Raises:
        InvalidInputError: If the new passphrase is empty
        DecryptionError: If any entry fails to decrypt under the current passphrase
    """
    if not new_passphrase:
        raise InvalidInputError("New passphrase cannot be empty.")

    config = store.config
    old_passphrase = vault.require_passphrase()
    old_salt = vault.meta.salt
    old_kdf = vault.meta.kdf

    new_salt = KeyDerivation.generate_salt(config.salt_size)
    new_kdf = KdfParams.from_config(config)
    new_fingerprint = KeyDerivation.create_fingerprint(
        new_passphrase,
        time_cost=config.fingerprint_time_cost,
        memory_cost=config.fingerprint_memory_cost,
        parallelism=config.fingerprint_parallelism,
    )

    now = utc_now()
    staged: dict[str, Entry] = {}
    for key in sorted(vault.entries):
        entry = vault.entries[key]
        try:
            plaintext = decrypt(entry.ciphertext, old_salt, old_passphrase, old_kdf)
        except VaultError:
            logger.error(f"Rotation aborted: entry {key} could not be decrypted")
            raise
        staged[key] = Entry(
            ciphertext=encrypt(plaintext, new_salt, new_passphrase, new_kdf),
            created_at=entry.created_at,
            updated_at=now,
        )

    vault.entries = staged
    vault.meta.salt = new_salt
    vault.meta.fingerprint = new_fingerprint
    vault.meta.kdf = new_kdf
    vault.attach(new_passphrase)

    store.save(vault)
    store.resolver.remember(vault.environment, new_passphrase)

    logger.info(f"Rotated passphrase for {vault.environment} ({len(staged)} entries)")
    return {"entries_rotated": len(staged)}


def export_entries(vault: Vault) -> dict[str, str]:
    """
    Decrypt every entry of an open vault.

    Returns:
        Mapping of key to plaintext value, sorted by key
    """
    return {key: vault.reveal(key) for key in vault}


def import_entries(
    vault: Vault,
    values: Mapping[str, str],
    overwrite: bool = False,
) -> dict:
    """
    Encrypt plaintext values into an open vault.

    Existing keys are skipped unless overwrite is set. The vault is not
    saved; the caller decides whether to persist.

    Args:
        vault: Open vault
        values: Plaintext key/value pairs
        overwrite: Replace values of keys already in the vault

    Returns:
        Dict with import statistics
    """
    stats = {
        "imported": 0,
        "skipped": 0,
    }

    for key, value in values.items():
        if not key:
            raise InvalidInputError("Key cannot be empty.")
        if key in vault and not overwrite:
            stats["skipped"] += 1
            continue
        vault.set_entry(key, vault.encrypt_value(value))
        stats["imported"] += 1

    logger.debug(
        f"Imported {stats['imported']} entries into {vault.environment}, "
        f"skipped {stats['skipped']}"
    )
    return stats


def verify_vault_integrity(vault: Vault) -> dict:
    """
    Verify all entries can be decrypted.

    Does not modify the vault.

    Returns:
        Dict with verification results
    """
    stats = {
        "entries_verified": 0,
        "entries_failed": 0,
        "errors": [],
    }

    for key in vault:
        try:
            vault.decrypt_entry(key)
            stats["entries_verified"] += 1
        except VaultError as e:
            stats["entries_failed"] += 1
            stats["errors"].append(f"{key}: {e}")

    return stats
