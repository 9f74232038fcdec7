"""Passphrase resolution for vault environments.

A passphrase is looked up in order:
1. Process-level override (ENVSECRETS_PASSPHRASE by default), never cached
2. Cached credential for the environment in the credential store
3. Interactive prompt, written back to the cache on success

Verification against the vault fingerprint is left to the vault store.
"""

import os
from abc import ABC, abstractmethod
from typing import Mapping, Optional

import typer

from ..utils.logging import get_logger
from .config import VaultConfig
from .credentials import CredentialStore, credential_key
from .exceptions import CredentialStoreError, InvalidInputError, OperationCancelledError

logger = get_logger(__name__)


class Prompter(ABC):
    """Asks the operator for secrets and confirmations."""

    @abstractmethod
    def secret(self, message: str, confirm: bool = False) -> str:
        """Read hidden input. With confirm, the value must be typed twice."""

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """Ask a yes/no question, defaulting to no."""


class ConsolePrompter(Prompter):
    """Prompter reading from the terminal through Typer."""

    def secret(self, message: str, confirm: bool = False) -> str:
        try:
            return typer.prompt(
                message,
                default="",
                show_default=False,
                hide_input=True,
                confirmation_prompt=confirm,
            )
        except typer.Abort:
            raise OperationCancelledError("Passphrase prompt aborted.")

    def confirm(self, message: str) -> bool:
        try:
            return typer.confirm(message, default=False)
        except typer.Abort:
            raise OperationCancelledError("Confirmation aborted.")


class PassphraseResolver:
    """
    Resolves the passphrase for a vault environment.

    Usage:
        resolver = PassphraseResolver(SystemCredentialStore(), ConsolePrompter())
        passphrase = resolver.resolve("prod")
    """

    def __init__(
        self,
        credentials: CredentialStore,
        prompter: Prompter,
        env_var: str = "ENVSECRETS_PASSPHRASE",
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            credentials: Cache for resolved passphrases
            prompter: Interactive input source
            env_var: Name of the override environment variable
            environ: Environment mapping (defaults to os.environ)
        """
        self.credentials = credentials
        self.prompter = prompter
        self.env_var = env_var
        self._environ = environ if environ is not None else os.environ

    @classmethod
    def from_config(
        cls,
        config: VaultConfig,
        credentials: CredentialStore,
        prompter: Prompter,
    ) -> "PassphraseResolver":
        """Create a resolver using the override variable named in the config."""
        return cls(credentials, prompter, env_var=config.passphrase_env_var)

    def resolve(
        self,
        environment: str,
        *,
        use_override: bool = True,
        use_cache: bool = True,
        confirm: bool = False,
    ) -> str:
        """
        Produce a passphrase for an environment.

        Args:
            environment: Vault environment name
            use_override: Whether the override variable is consulted
            use_cache: Whether the credential store is consulted
            confirm: Whether a prompted passphrase must be typed twice

        Returns:
            Passphrase (not yet verified)

        Raises:
            InvalidInputError: If the environment is empty or the prompt yields nothing
            OperationCancelledError: If the prompt is aborted
        """
        if not environment:
            raise InvalidInputError("Environment cannot be empty.")

        if use_override:
            override = self.override()
            if override:
                logger.debug(f"Using passphrase from ${self.env_var} for {environment}")
                return override

        if use_cache:
            cached = self.cached(environment)
            if cached:
                logger.debug(f"Using cached passphrase for {environment}")
                return cached

        passphrase = self.prompt(environment, confirm=confirm)
        self.remember(environment, passphrase)
        return passphrase

    def override(self) -> Optional[str]:
        """Passphrase from the override variable, if set and non-empty."""
        return self._environ.get(self.env_var) or None

    def prompt(
        self,
        environment: str,
        message: Optional[str] = None,
        confirm: bool = False,
    ) -> str:
        """Prompt for a passphrase without touching the cache."""
        if message is None:
            message = f"Enter passphrase for environment {environment!r}"
        passphrase = self.prompter.secret(message, confirm=confirm)
        if not passphrase:
            raise InvalidInputError("Passphrase cannot be empty.")
        return passphrase

    def cached(self, environment: str) -> Optional[str]:
        """Look up the cached passphrase, treating store failures as a miss."""
        try:
            return self.credentials.get(credential_key(environment))
        except CredentialStoreError as e:
            logger.warning(f"Could not read cached passphrase: {e}")
            return None

    def remember(self, environment: str, passphrase: str) -> bool:
        """
        Cache a passphrase for an environment.

        Returns:
            True if cached, False if the credential store refused (logged)
        """
        try:
            self.credentials.set(credential_key(environment), passphrase)
            return True
        except CredentialStoreError as e:
            logger.warning(f"Failed to cache passphrase for {environment}: {e}")
            return False

    def evict(self, environment: str) -> bool:
        """
        Remove the cached passphrase for an environment.

        Returns:
            True if the store accepted the delete, False if it failed (logged)
        """
        try:
            self.credentials.delete(credential_key(environment))
            return True
        except CredentialStoreError as e:
            logger.warning(f"Failed to clear cached passphrase for {environment}: {e}")
            return False
