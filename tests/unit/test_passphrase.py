"""Unit tests for passphrase resolution and the credential cache."""

from unittest.mock import patch

import pytest


class TestMemoryCredentialStore:
    def test_get_set_delete(self):
        from envsecrets.vault import MemoryCredentialStore

        store = MemoryCredentialStore()
        assert store.get("env:prod") is None

        store.set("env:prod", "secret")
        assert store.get("env:prod") == "secret"
        assert "env:prod" in store

        store.delete("env:prod")
        assert store.get("env:prod") is None

    def test_delete_missing_is_not_an_error(self):
        from envsecrets.vault import MemoryCredentialStore

        MemoryCredentialStore().delete("env:missing")

    def test_credential_key(self):
        from envsecrets.vault import credential_key

        assert credential_key("prod") == "env:prod"


class TestSystemCredentialStore:
    """Tests for the keyring-backed store with the keyring calls patched."""

    def test_uses_service_and_key(self):
        from envsecrets.vault import SystemCredentialStore

        store = SystemCredentialStore("envsecrets")
        with patch("envsecrets.vault.credentials.keyring") as mock_keyring:
            mock_keyring.get_password.return_value = "pw"
            assert store.get("env:prod") == "pw"
            store.set("env:prod", "new")

        mock_keyring.get_password.assert_called_once_with("envsecrets", "env:prod")
        mock_keyring.set_password.assert_called_once_with("envsecrets", "env:prod", "new")

    def test_delete_missing_is_ignored(self):
        from keyring.errors import PasswordDeleteError

        from envsecrets.vault import SystemCredentialStore

        with patch("envsecrets.vault.credentials.keyring") as mock_keyring:
            mock_keyring.delete_password.side_effect = PasswordDeleteError("missing")
            SystemCredentialStore().delete("env:prod")

    def test_backend_errors_are_wrapped(self):
        from keyring.errors import KeyringError

        from envsecrets.vault import CredentialStoreError, SystemCredentialStore

        with patch("envsecrets.vault.credentials.keyring") as mock_keyring:
            mock_keyring.set_password.side_effect = KeyringError("locked")
            with pytest.raises(CredentialStoreError):
                SystemCredentialStore().set("env:prod", "pw")


class FailingCredentialStore:
    """Credential store whose every operation fails."""

    def _fail(self):
        from envsecrets.vault import CredentialStoreError

        raise CredentialStoreError("unavailable")

    def get(self, key):
        self._fail()

    def set(self, key, value):
        self._fail()

    def delete(self, key):
        self._fail()


class TestPassphraseResolver:
    """Tests for the override, cache, prompt resolution order."""

    def test_override_wins_and_is_not_cached(self, resolver, credentials, environ, prompter):
        credentials.set("env:prod", "cached-pass")
        environ["ENVSECRETS_PASSPHRASE"] = "override-pass"

        assert resolver.resolve("prod") == "override-pass"
        assert credentials.get("env:prod") == "cached-pass"
        assert prompter.secret_prompts == []

    def test_override(self, resolver, environ):
        assert resolver.override() is None

        environ["ENVSECRETS_PASSPHRASE"] = ""
        assert resolver.override() is None

        environ["ENVSECRETS_PASSPHRASE"] = "override-pass"
        assert resolver.override() == "override-pass"

    def test_cache_used_before_prompt(self, resolver, credentials, prompter):
        credentials.set("env:prod", "cached-pass")

        assert resolver.resolve("prod") == "cached-pass"
        assert prompter.secret_prompts == []

    def test_prompt_result_is_cached(self, resolver, credentials, prompter):
        prompter.secrets.append("typed-pass")

        assert resolver.resolve("prod") == "typed-pass"
        assert credentials.get("env:prod") == "typed-pass"

    def test_bypass_cache_and_confirm(self, resolver, credentials, prompter):
        credentials.set("env:prod", "cached-pass")
        prompter.secrets.append("fresh-pass")

        assert resolver.resolve("prod", use_cache=False, confirm=True) == "fresh-pass"
        assert prompter.secret_prompts[0][1] is True
        assert credentials.get("env:prod") == "fresh-pass"

    def test_bypass_override(self, resolver, environ, prompter):
        environ["ENVSECRETS_PASSPHRASE"] = "override-pass"
        prompter.secrets.append("typed-pass")

        assert resolver.resolve("prod", use_override=False) == "typed-pass"

    def test_caches_are_per_environment(self, resolver, credentials, prompter):
        credentials.set("env:prod", "prod-pass")
        prompter.secrets.append("dev-pass")

        assert resolver.resolve("dev") == "dev-pass"
        assert credentials.get("env:prod") == "prod-pass"

    def test_empty_prompt_is_invalid(self, resolver, credentials, prompter):
        from envsecrets.vault import InvalidInputError

        prompter.secrets.append("")

        with pytest.raises(InvalidInputError):
            resolver.resolve("prod")
        assert credentials.get("env:prod") is None

    def test_empty_environment_is_invalid(self, resolver):
        from envsecrets.vault import InvalidInputError

        with pytest.raises(InvalidInputError):
            resolver.resolve("")

    def test_custom_override_variable(self, credentials, prompter):
        from envsecrets.vault import PassphraseResolver

        resolver = PassphraseResolver(
            credentials, prompter, env_var="MY_PASS", environ={"MY_PASS": "custom"}
        )
        assert resolver.resolve("prod") == "custom"

    def test_store_failures_fall_through_to_prompt(self, prompter):
        from envsecrets.vault import PassphraseResolver

        resolver = PassphraseResolver(FailingCredentialStore(), prompter, environ={})
        prompter.secrets.append("typed-pass")

        assert resolver.resolve("prod") == "typed-pass"
        assert resolver.evict("prod") is False
        assert resolver.remember("prod", "x") is False

    def test_evict(self, resolver, credentials):
        credentials.set("env:prod", "cached-pass")

        assert resolver.evict("prod") is True
        assert credentials.get("env:prod") is None


class TestConsolePrompter:
    """Tests for the Typer-backed prompter."""

    def test_secret_hides_input(self):
        from envsecrets.vault import ConsolePrompter

        with patch("envsecrets.vault.passphrase.typer.prompt", return_value="pw") as mock_prompt:
            assert ConsolePrompter().secret("Passphrase", confirm=True) == "pw"

        kwargs = mock_prompt.call_args.kwargs
        assert kwargs["hide_input"] is True
        assert kwargs["confirmation_prompt"] is True

    def test_abort_becomes_cancellation(self):
        import typer

        from envsecrets.vault import ConsolePrompter, OperationCancelledError

        with patch("envsecrets.vault.passphrase.typer.prompt", side_effect=typer.Abort()):
            with pytest.raises(OperationCancelledError):
                ConsolePrompter().secret("Passphrase")

        with patch("envsecrets.vault.passphrase.typer.confirm", side_effect=typer.Abort()):
            with pytest.raises(OperationCancelledError):
                ConsolePrompter().confirm("Sure?")
