"""Vault configuration for the envsecrets secret store."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class VaultConfig:
    """Configuration for vault storage and encryption operations."""

    # Storage layout: <vault_dir>/<environment><vault_extension>
    vault_dir: Path = Path(".envsecrets")
    vault_extension: str = ".vault"
    dir_mode: int = 0o700
    file_mode: int = 0o600

    # Vault salt size
    salt_size: int = 16  # 128 bits

    # Argon2id key derivation
    kdf_time_cost: int = 3
    kdf_memory_cost: int = 64 * 1024  # KiB, 64 MiB
    kdf_parallelism: int = 4

    # Argon2id passphrase fingerprint
    fingerprint_time_cost: int = 3
    fingerprint_memory_cost: int = 64 * 1024  # KiB
    fingerprint_parallelism: int = 4

    # Passphrase sources
    passphrase_env_var: str = "ENVSECRETS_PASSPHRASE"
    keyring_service: str = "envsecrets"

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            ENVSECRETS_DIR: Directory holding vault files (default: .envsecrets)
            ENVSECRETS_PASSPHRASE_VAR: Name of the passphrase override variable
            ENVSECRETS_KEYRING_SERVICE: Credential store service name
            ENVSECRETS_KDF_TIME_COST: Argon2id iterations (default: 3)
            ENVSECRETS_KDF_MEMORY_COST: Argon2id memory in KiB (default: 65536)
            ENVSECRETS_KDF_PARALLELISM: Argon2id lanes (default: 4)
        """
        config = cls()

        if vault_dir := os.getenv("ENVSECRETS_DIR"):
            config.vault_dir = Path(vault_dir)

        if env_var := os.getenv("ENVSECRETS_PASSPHRASE_VAR"):
            config.passphrase_env_var = env_var

        if service := os.getenv("ENVSECRETS_KEYRING_SERVICE"):
            config.keyring_service = service

        if time_cost := os.getenv("ENVSECRETS_KDF_TIME_COST"):
            config.kdf_time_cost = int(time_cost)
            config.fingerprint_time_cost = int(time_cost)

        if memory_cost := os.getenv("ENVSECRETS_KDF_MEMORY_COST"):
            config.kdf_memory_cost = int(memory_cost)
            config.fingerprint_memory_cost = int(memory_cost)

        if parallelism := os.getenv("ENVSECRETS_KDF_PARALLELISM"):
            config.kdf_parallelism = int(parallelism)
            config.fingerprint_parallelism = int(parallelism)

        return config


# Global configuration instance
_config: VaultConfig | None = None


def get_vault_config() -> VaultConfig:
    """Get the global vault configuration."""
    global _config
    if _config is None:
        _config = VaultConfig.from_env()
    return _config


def set_vault_config(config: VaultConfig) -> None:
    """Set the global vault configuration."""
    global _config
    _config = config
