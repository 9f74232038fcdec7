"""Unit tests for the vault crypto module."""

import base64

import pytest


class TestKeyDerivation:
    """Tests for Argon2id key derivation and salts."""

    def test_generate_salt(self):
        """Test salt generation produces base64 of the requested size."""
        from envsecrets.vault.crypto import KeyDerivation

        salt = KeyDerivation.generate_salt()
        assert len(base64.b64decode(salt)) == 16

    def test_generate_salt_unique(self):
        """Test each salt generation is unique."""
        from envsecrets.vault.crypto import KeyDerivation

        salts = [KeyDerivation.generate_salt() for _ in range(10)]
        assert len(set(salts)) == 10

    def test_decode_salt_rejects_empty(self):
        from envsecrets.vault.crypto import KeyDerivation
        from envsecrets.vault.exceptions import InvalidInputError

        with pytest.raises(InvalidInputError):
            KeyDerivation.decode_salt("")

    def test_decode_salt_rejects_bad_encoding(self):
        from envsecrets.vault.crypto import KeyDerivation
        from envsecrets.vault.exceptions import CiphertextFormatError

        with pytest.raises(CiphertextFormatError):
            KeyDerivation.decode_salt("not base64!!")

    def test_decode_salt_rejects_short(self):
        from envsecrets.vault.crypto import KeyDerivation
        from envsecrets.vault.exceptions import CiphertextFormatError

        with pytest.raises(CiphertextFormatError):
            KeyDerivation.decode_salt(base64.b64encode(b"abc").decode())

    def test_derive_key(self, fast_kdf):
        """Test key derivation is deterministic and 256 bits long."""
        from envsecrets.vault.crypto import KeyDerivation

        salt = b"0123456789abcdef"
        key1 = KeyDerivation.derive_key("correct-horse", salt, fast_kdf)
        key2 = KeyDerivation.derive_key("correct-horse", salt, fast_kdf)

        assert key1 == key2
        assert len(key1) == 32

    def test_derive_key_different_passphrases(self, fast_kdf):
        from envsecrets.vault.crypto import KeyDerivation

        salt = b"0123456789abcdef"
        assert KeyDerivation.derive_key("a", salt, fast_kdf) != KeyDerivation.derive_key(
            "b", salt, fast_kdf
        )

    def test_derive_key_different_salts(self, fast_kdf):
        from envsecrets.vault.crypto import KeyDerivation

        key1 = KeyDerivation.derive_key("pass", b"0123456789abcdef", fast_kdf)
        key2 = KeyDerivation.derive_key("pass", b"fedcba9876543210", fast_kdf)
        assert key1 != key2

    def test_derive_key_rejects_empty_passphrase(self, fast_kdf):
        from envsecrets.vault.crypto import KeyDerivation
        from envsecrets.vault.exceptions import InvalidInputError

        with pytest.raises(InvalidInputError):
            KeyDerivation.derive_key("", b"0123456789abcdef", fast_kdf)


class TestFingerprint:
    """Tests for passphrase fingerprints."""

    def test_verify_correct_and_wrong(self):
        from envsecrets.vault.crypto import KeyDerivation

        fingerprint = KeyDerivation.create_fingerprint(
            "correct-horse", time_cost=1, memory_cost=1024, parallelism=1
        )

        assert fingerprint.startswith("$argon2id$")
        assert KeyDerivation.verify_fingerprint(fingerprint, "correct-horse")
        assert not KeyDerivation.verify_fingerprint(fingerprint, "battery-staple")

    def test_empty_passphrase_never_matches(self):
        from envsecrets.vault.crypto import KeyDerivation

        fingerprint = KeyDerivation.create_fingerprint(
            "pass", time_cost=1, memory_cost=1024, parallelism=1
        )
        assert not KeyDerivation.verify_fingerprint(fingerprint, "")

    def test_fingerprints_are_salted_independently(self):
        """Two fingerprints of one passphrase differ and neither contains the vault salt."""
        from envsecrets.vault.crypto import KeyDerivation

        vault_salt = KeyDerivation.generate_salt()
        fp1 = KeyDerivation.create_fingerprint("pass", time_cost=1, memory_cost=1024, parallelism=1)
        fp2 = KeyDerivation.create_fingerprint("pass", time_cost=1, memory_cost=1024, parallelism=1)

        assert fp1 != fp2
        assert vault_salt.rstrip("=") not in fp1
        assert KeyDerivation.verify_fingerprint(fp1, "pass")
        assert KeyDerivation.verify_fingerprint(fp2, "pass")

    def test_invalid_fingerprint_is_corruption(self):
        from envsecrets.vault.crypto import KeyDerivation
        from envsecrets.vault.exceptions import VaultCorruptedError

        with pytest.raises(VaultCorruptedError):
            KeyDerivation.verify_fingerprint("not-a-hash", "pass")

        with pytest.raises(VaultCorruptedError):
            KeyDerivation.verify_fingerprint("", "pass")


class TestEncryptDecrypt:
    """Tests for AES-256-GCM value encryption."""

    @pytest.fixture
    def salt(self):
        from envsecrets.vault.crypto import KeyDerivation

        return KeyDerivation.generate_salt()

    def test_round_trip(self, salt, fast_kdf):
        from envsecrets.vault.crypto import decrypt, encrypt

        ciphertext = encrypt(b"abc123", salt, "correct-horse", fast_kdf)
        assert decrypt(ciphertext, salt, "correct-horse", fast_kdf) == b"abc123"

    def test_round_trip_text_and_empty(self, salt, fast_kdf):
        from envsecrets.vault.crypto import decrypt, encrypt

        assert decrypt(encrypt("héllo", salt, "p", fast_kdf), salt, "p", fast_kdf) == "héllo".encode()
        assert decrypt(encrypt(b"", salt, "p", fast_kdf), salt, "p", fast_kdf) == b""

    def test_ciphertext_layout(self, salt, fast_kdf):
        """Ciphertext is base64 of nonce, sealed data and tag."""
        from envsecrets.vault.crypto import NONCE_SIZE, TAG_SIZE, encrypt

        raw = base64.b64decode(encrypt(b"abc123", salt, "p", fast_kdf))
        assert len(raw) == NONCE_SIZE + len(b"abc123") + TAG_SIZE

    def test_nonce_uniqueness(self, salt, fast_kdf):
        """Encrypting the same value twice yields different ciphertexts."""
        from envsecrets.vault.crypto import NONCE_SIZE, encrypt

        first = encrypt(b"same", salt, "p", fast_kdf)
        second = encrypt(b"same", salt, "p", fast_kdf)

        assert first != second
        assert base64.b64decode(first)[:NONCE_SIZE] != base64.b64decode(second)[:NONCE_SIZE]

    def test_tamper_detection(self, salt, fast_kdf):
        """Flipping any byte makes decryption fail."""
        from envsecrets.vault.crypto import decrypt, encrypt
        from envsecrets.vault.exceptions import DecryptionError

        raw = bytearray(base64.b64decode(encrypt(b"abc123", salt, "p", fast_kdf)))
        for index in (0, 12, len(raw) - 1):
            tampered = bytearray(raw)
            tampered[index] ^= 0x01
            with pytest.raises(DecryptionError):
                decrypt(base64.b64encode(bytes(tampered)).decode(), salt, "p", fast_kdf)

    def test_wrong_passphrase(self, salt, fast_kdf):
        from envsecrets.vault.crypto import decrypt, encrypt
        from envsecrets.vault.exceptions import AuthenticationError

        ciphertext = encrypt(b"abc123", salt, "correct-horse", fast_kdf)
        with pytest.raises(AuthenticationError):
            decrypt(ciphertext, salt, "battery-staple", fast_kdf)

    def test_wrong_salt(self, salt, fast_kdf):
        from envsecrets.vault.crypto import KeyDerivation, decrypt, encrypt
        from envsecrets.vault.exceptions import DecryptionError

        ciphertext = encrypt(b"abc123", salt, "p", fast_kdf)
        with pytest.raises(DecryptionError):
            decrypt(ciphertext, KeyDerivation.generate_salt(), "p", fast_kdf)

    def test_truncated_ciphertext(self, salt, fast_kdf):
        from envsecrets.vault.crypto import decrypt
        from envsecrets.vault.exceptions import CiphertextFormatError

        short = base64.b64encode(b"x" * 27).decode()
        with pytest.raises(CiphertextFormatError):
            decrypt(short, salt, "p", fast_kdf)

    def test_invalid_base64(self, salt, fast_kdf):
        from envsecrets.vault.crypto import decrypt
        from envsecrets.vault.exceptions import CiphertextFormatError

        with pytest.raises(CiphertextFormatError):
            decrypt("%%%not-base64%%%", salt, "p", fast_kdf)

    def test_empty_ciphertext(self, salt, fast_kdf):
        from envsecrets.vault.crypto import decrypt
        from envsecrets.vault.exceptions import InvalidInputError

        with pytest.raises(InvalidInputError):
            decrypt("", salt, "p", fast_kdf)


class TestKdfParams:
    """Tests for recorded key derivation parameters."""

    def test_dict_round_trip(self):
        from envsecrets.vault.crypto import KdfParams

        params = KdfParams(time_cost=2, memory_cost=2048, parallelism=2)
        assert KdfParams.from_dict(params.to_dict()) == params

    def test_missing_fields_use_defaults(self):
        from envsecrets.vault.crypto import DEFAULT_KDF_PARAMS, KdfParams

        assert KdfParams.from_dict({}) == DEFAULT_KDF_PARAMS

    def test_unknown_algorithm(self):
        from envsecrets.vault.crypto import KdfParams
        from envsecrets.vault.exceptions import VaultCorruptedError

        with pytest.raises(VaultCorruptedError):
            KdfParams.from_dict({"algorithm": "scrypt"})

    @pytest.mark.parametrize(
        "data",
        [
            {"time_cost": 0},
            {"time_cost": "3"},
            {"time_cost": True},
            {"parallelism": 0},
            {"memory_cost": -1},
            {"memory_cost": 16, "parallelism": 4},
            ["argon2id"],
        ],
    )
    def test_invalid_costs(self, data):
        from envsecrets.vault.crypto import KdfParams
        from envsecrets.vault.exceptions import VaultCorruptedError

        with pytest.raises(VaultCorruptedError):
            KdfParams.from_dict(data)


class TestClearBytes:
    def test_zeroes_mutable_buffers(self):
        from envsecrets.vault.crypto import clear_bytes

        buf = bytearray(b"secret")
        clear_bytes(buf, b"immutable")
        assert buf == bytearray(6)
