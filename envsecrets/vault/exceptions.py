"""Vault exceptions for the envsecrets secret store."""


class VaultError(Exception):
    """Base exception for vault operations."""

    pass


class InvalidInputError(VaultError, ValueError):
    """Raised when a key, value, passphrase or environment name is empty or malformed."""

    def __init__(self, message: str = "Invalid input."):
        super().__init__(message)


class OperationCancelledError(VaultError):
    """Raised when the operator aborts a prompt."""

    def __init__(self, message: str = "Operation cancelled."):
        super().__init__(message)


class VaultLockedError(VaultError):
    """Raised when a vault is used without a verified passphrase attached."""

    def __init__(self, message: str = "Vault is locked. Open it with a passphrase first."):
        super().__init__(message)


class NotFoundError(VaultError):
    """Base for missing vaults and entries."""

    pass


class VaultNotFoundError(NotFoundError):
    """Raised when no vault file exists for an environment."""

    def __init__(self, environment: str = ""):
        message = (
            f"Vault not found for environment {environment!r}."
            if environment
            else "Vault not found."
        )
        super().__init__(message)


class EntryNotFoundError(NotFoundError):
    """Raised when a key is not present in the vault."""

    def __init__(self, key: str = ""):
        message = f"Entry not found: {key!r}" if key else "Entry not found."
        super().__init__(message)


class VaultAlreadyExistsError(VaultError):
    """Raised when trying to create a vault that already exists."""

    def __init__(self, environment: str = ""):
        message = (
            f"Vault already exists for environment {environment!r}."
            if environment
            else "Vault already exists."
        )
        super().__init__(message)


class AuthenticationError(VaultError):
    """Base for wrong passphrases and failed authentication tags."""

    pass


class InvalidPassphraseError(AuthenticationError):
    """Raised when a passphrase does not match the vault fingerprint."""

    def __init__(self, message: str = "Invalid passphrase."):
        super().__init__(message)


class DecryptionError(AuthenticationError):
    """Raised when authenticated decryption fails."""

    def __init__(self, message: str = "Failed to decrypt value: wrong key or tampered ciphertext."):
        super().__init__(message)


class EncryptionError(VaultError):
    """Raised when encryption fails."""

    def __init__(self, message: str = "Failed to encrypt value."):
        super().__init__(message)


class VaultCorruptedError(VaultError):
    """Raised when vault contents cannot be parsed or trusted."""

    def __init__(self, message: str = "Vault data is corrupted."):
        super().__init__(message)


class CiphertextFormatError(VaultCorruptedError):
    """Raised when a ciphertext or salt is badly encoded or truncated."""

    def __init__(self, message: str = "Malformed ciphertext."):
        super().__init__(message)


class EnvironmentMismatchError(VaultCorruptedError):
    """Raised when the environment recorded in a vault file differs from the requested one."""

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Vault environment mismatch: expected {expected!r}, got {actual!r}."
        )
        self.expected = expected
        self.actual = actual


class StorageError(VaultError):
    """Raised when the filesystem or credential store cannot be accessed."""

    def __init__(self, message: str = "Storage access failed."):
        super().__init__(message)


class CredentialStoreError(StorageError):
    """Raised when the OS credential store rejects an operation."""

    def __init__(self, message: str = "Credential store access failed."):
        super().__init__(message)
