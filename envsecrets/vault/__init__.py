"""Vault core for envsecrets.

Provides passphrase-protected, per-environment secret vaults: Argon2id key
derivation, AES-256-GCM entry encryption, passphrase caching in the OS
credential store, and atomic on-disk persistence.

Usage:
    from envsecrets.vault import (
        ConsolePrompter,
        PassphraseResolver,
        SystemCredentialStore,
        VaultStore,
    )

    resolver = PassphraseResolver(SystemCredentialStore(), ConsolePrompter())
    store = VaultStore(resolver)

    vault = store.open("prod")
    vault.set_entry("API_KEY", vault.encrypt_value("abc123"))
    store.save(vault)

    # Change the passphrase
    from envsecrets.vault import rotate_passphrase
    rotate_passphrase(store, vault, "new-pass")
"""

# Exceptions
from .exceptions import (
    AuthenticationError,
    CiphertextFormatError,
    CredentialStoreError,
    DecryptionError,
    EncryptionError,
    EntryNotFoundError,
    EnvironmentMismatchError,
    InvalidInputError,
    InvalidPassphraseError,
    NotFoundError,
    OperationCancelledError,
    StorageError,
    VaultAlreadyExistsError,
    VaultCorruptedError,
    VaultError,
    VaultLockedError,
    VaultNotFoundError,
)

# Configuration
from .config import (
    VaultConfig,
    get_vault_config,
    set_vault_config,
)

# Cryptography
from .crypto import (
    KdfParams,
    KeyDerivation,
    decrypt,
    encrypt,
)

# Credential cache
from .credentials import (
    CredentialStore,
    MemoryCredentialStore,
    SystemCredentialStore,
    credential_key,
)

# Passphrase resolution
from .passphrase import (
    ConsolePrompter,
    PassphraseResolver,
    Prompter,
)

# Vault model and storage
from .models import (
    Entry,
    Vault,
    VaultMeta,
)
from .vault_manager import (
    VaultStore,
    validate_environment,
)

# Whole-vault flows
from .migration import (
    export_entries,
    import_entries,
    rotate_passphrase,
    verify_vault_integrity,
)

__all__ = [
    # Exceptions
    "VaultError",
    "InvalidInputError",
    "OperationCancelledError",
    "VaultLockedError",
    "NotFoundError",
    "VaultNotFoundError",
    "EntryNotFoundError",
    "VaultAlreadyExistsError",
    "AuthenticationError",
    "InvalidPassphraseError",
    "DecryptionError",
    "EncryptionError",
    "VaultCorruptedError",
    "CiphertextFormatError",
    "EnvironmentMismatchError",
    "StorageError",
    "CredentialStoreError",
    # Configuration
    "VaultConfig",
    "get_vault_config",
    "set_vault_config",
    # Cryptography
    "KdfParams",
    "KeyDerivation",
    "encrypt",
    "decrypt",
    # Credential cache
    "CredentialStore",
    "SystemCredentialStore",
    "MemoryCredentialStore",
    "credential_key",
    # Passphrase
    "Prompter",
    "ConsolePrompter",
    "PassphraseResolver",
    # Vault
    "Entry",
    "VaultMeta",
    "Vault",
    "VaultStore",
    "validate_environment",
    # Flows
    "rotate_passphrase",
    "export_entries",
    "import_entries",
    "verify_vault_integrity",
]
