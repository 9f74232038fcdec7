"""envsecrets - Encrypted per-environment secret vaults."""

__version__ = "0.1.0"

from .vault import Vault, VaultConfig, VaultError, VaultStore

__all__ = [
    "__version__",
    "Vault",
    "VaultConfig",
    "VaultError",
    "VaultStore",
]
