"""Core cryptographic primitives for vault encryption.

Uses:
- Argon2id (argon2-cffi) for passphrase-to-key derivation
- Argon2id PHC hashes (argon2-cffi PasswordHasher) for passphrase fingerprints
- AES-256-GCM (cryptography) for authenticated encryption of entry values

Ciphertext format (standard base64 text):
[nonce (12 bytes)] [ciphertext] [tag (16 bytes)]
"""

import base64
import binascii
import os
from dataclasses import dataclass
from typing import Any, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import (
    CiphertextFormatError,
    DecryptionError,
    EncryptionError,
    InvalidInputError,
    VaultCorruptedError,
)

# Key derivation parameters
SALT_SIZE = 16  # 128 bits
MIN_SALT_SIZE = 8  # Argon2 lower bound
KEY_SIZE = 32  # 256 bits for AES-256
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 64 * 1024  # KiB
ARGON2_PARALLELISM = 4

# AEAD parameters
NONCE_SIZE = 12  # 96 bits for AES-GCM
TAG_SIZE = 16  # 128-bit authentication tag


@dataclass(frozen=True)
class KdfParams:
    """Argon2id cost parameters recorded alongside a vault's salt."""

    time_cost: int = ARGON2_TIME_COST
    memory_cost: int = ARGON2_MEMORY_COST
    parallelism: int = ARGON2_PARALLELISM
    algorithm: str = "argon2id"

    @classmethod
    def from_config(cls, config) -> "KdfParams":
        """Build parameters from a VaultConfig."""
        return cls(
            time_cost=config.kdf_time_cost,
            memory_cost=config.kdf_memory_cost,
            parallelism=config.kdf_parallelism,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "algorithm": self.algorithm,
            "time_cost": self.time_cost,
            "memory_cost": self.memory_cost,
            "parallelism": self.parallelism,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KdfParams":
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise VaultCorruptedError("Key derivation parameters must be an object.")
        algorithm = data.get("algorithm", "argon2id")
        if algorithm != "argon2id":
            raise VaultCorruptedError(f"Unsupported key derivation algorithm: {algorithm}")

        costs = {
            "time_cost": data.get("time_cost", ARGON2_TIME_COST),
            "memory_cost": data.get("memory_cost", ARGON2_MEMORY_COST),
            "parallelism": data.get("parallelism", ARGON2_PARALLELISM),
        }
        for name, value in costs.items():
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise VaultCorruptedError(f"Invalid key derivation parameter {name}: {value!r}")

        # Argon2 needs at least 8 KiB of memory per lane
        if costs["memory_cost"] < 8 * costs["parallelism"]:
            raise VaultCorruptedError(
                f"Invalid key derivation parameters: memory_cost {costs['memory_cost']} "
                f"is below 8 KiB per lane"
            )
        return cls(**costs)


DEFAULT_KDF_PARAMS = KdfParams()


def clear_bytes(*buffers) -> None:
    """
    Overwrite mutable byte buffers with zeros.

    Best effort only: immutable copies made by libraries are out of reach.
    """
    for buf in buffers:
        if isinstance(buf, (bytearray, memoryview)):
            buf[:] = bytes(len(buf))


class KeyDerivation:
    """Derives encryption keys and fingerprints from passphrases using Argon2id."""

    @staticmethod
    def generate_salt(size: int = SALT_SIZE) -> str:
        """Generate a cryptographically secure random salt, base64 encoded."""
        return base64.b64encode(os.urandom(size)).decode("ascii")

    @staticmethod
    def decode_salt(encoded_salt: str) -> bytes:
        """
        Decode a base64 salt.

        Raises:
            InvalidInputError: If the salt is empty
            CiphertextFormatError: If the salt is not valid base64 or too short
        """
        if not encoded_salt:
            raise InvalidInputError("Salt cannot be empty.")
        try:
            salt = base64.b64decode(encoded_salt, validate=True)
        except (binascii.Error, ValueError) as e:
            raise CiphertextFormatError(f"Invalid salt encoding: {e}")
        if len(salt) < MIN_SALT_SIZE:
            raise CiphertextFormatError(
                f"Salt too short: expected at least {MIN_SALT_SIZE} bytes, got {len(salt)}"
            )
        return salt

    @staticmethod
    def derive_key(
        passphrase: str,
        salt: bytes,
        params: KdfParams = DEFAULT_KDF_PARAMS,
    ) -> bytearray:
        """
        Derive a 256-bit key from a passphrase using Argon2id.

        Args:
            passphrase: Vault passphrase
            salt: Raw salt bytes from the vault metadata
            params: Argon2id cost parameters

        Returns:
            32-byte derived key in a mutable buffer the caller should clear
        """
        if not passphrase:
            raise InvalidInputError("Passphrase cannot be empty.")
        if not salt:
            raise InvalidInputError("Salt cannot be empty.")
        return bytearray(
            hash_secret_raw(
                secret=passphrase.encode("utf-8"),
                salt=salt,
                time_cost=params.time_cost,
                memory_cost=params.memory_cost,
                parallelism=params.parallelism,
                hash_len=KEY_SIZE,
                type=Type.ID,
            )
        )

    @staticmethod
    def create_fingerprint(
        passphrase: str,
        time_cost: int = ARGON2_TIME_COST,
        memory_cost: int = ARGON2_MEMORY_COST,
        parallelism: int = ARGON2_PARALLELISM,
    ) -> str:
        """
        Hash a passphrase for later verification.

        The hash carries its own random salt, independent of the vault salt,
        so two fingerprints of the same passphrase differ.

        Returns:
            Argon2id PHC string
        """
        if not passphrase:
            raise InvalidInputError("Passphrase cannot be empty.")
        hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )
        return hasher.hash(passphrase)

    @staticmethod
    def verify_fingerprint(fingerprint: str, passphrase: str) -> bool:
        """
        Verify a passphrase against a stored fingerprint in constant time.

        Args:
            fingerprint: Argon2id PHC string from vault metadata
            passphrase: Candidate passphrase

        Returns:
            True if the passphrase matches

        Raises:
            VaultCorruptedError: If the fingerprint is empty or not a valid hash
        """
        if not fingerprint:
            raise VaultCorruptedError("Vault fingerprint is empty.")
        if not passphrase:
            return False
        try:
            return PasswordHasher().verify(fingerprint, passphrase)
        except VerifyMismatchError:
            return False
        except InvalidHashError:
            raise VaultCorruptedError("Vault fingerprint is not a valid hash.")
        except VerificationError:
            return False


def encrypt(
    plaintext: bytes | str,
    salt: str,
    passphrase: str,
    params: Optional[KdfParams] = None,
) -> str:
    """
    Encrypt a value for storage in a vault entry.

    A fresh random nonce is generated on every call.

    Args:
        plaintext: Data to encrypt
        salt: Base64 vault salt
        passphrase: Vault passphrase
        params: Argon2id parameters (defaults if not provided)

    Returns:
        Base64 text of nonce + ciphertext + tag
    """
    if plaintext is None:
        raise InvalidInputError("Plaintext cannot be None.")
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")

    raw_salt = KeyDerivation.decode_salt(salt)
    key = KeyDerivation.derive_key(passphrase, raw_salt, params or DEFAULT_KDF_PARAMS)
    nonce = bytearray(os.urandom(NONCE_SIZE))
    staged = bytearray(plaintext)
    try:
        sealed = AESGCM(key).encrypt(nonce, staged, None)
        return base64.b64encode(bytes(nonce) + sealed).decode("ascii")
    except (TypeError, ValueError, OverflowError) as e:
        raise EncryptionError(f"AES-GCM encryption failed: {e}")
    finally:
        clear_bytes(key, nonce, staged)


def decrypt(
    ciphertext: str,
    salt: str,
    passphrase: str,
    params: Optional[KdfParams] = None,
) -> bytes:
    """
    Decrypt a vault entry value.

    Args:
        ciphertext: Base64 text produced by encrypt()
        salt: Base64 vault salt
        passphrase: Vault passphrase
        params: Argon2id parameters (defaults if not provided)

    Returns:
        Decrypted plaintext

    Raises:
        CiphertextFormatError: If the input is not base64 or is truncated
        DecryptionError: If the tag does not verify (wrong key or tampering)
    """
    if not ciphertext:
        raise InvalidInputError("Ciphertext cannot be empty.")

    try:
        raw = bytearray(base64.b64decode(ciphertext, validate=True))
    except (binascii.Error, ValueError) as e:
        raise CiphertextFormatError(f"Invalid ciphertext encoding: {e}")

    min_length = NONCE_SIZE + TAG_SIZE
    if len(raw) < min_length:
        clear_bytes(raw)
        raise CiphertextFormatError(
            f"Ciphertext too short: expected at least {min_length} bytes, got {len(raw)}"
        )

    raw_salt = KeyDerivation.decode_salt(salt)
    key = KeyDerivation.derive_key(passphrase, raw_salt, params or DEFAULT_KDF_PARAMS)
    nonce = raw[:NONCE_SIZE]
    try:
        return AESGCM(key).decrypt(nonce, bytes(raw[NONCE_SIZE:]), None)
    except InvalidTag:
        raise DecryptionError()
    finally:
        clear_bytes(key, nonce, raw)
