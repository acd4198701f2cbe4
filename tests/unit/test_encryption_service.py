"""Tests for encryption service."""

import base64
import re

import pytest
from cryptography.fernet import Fernet

from firetools.services.encryption_service import (
    EncryptionService,
    derive_key,
    get_encryption_service,
)


class TestEncryptionService:
    """Test suite for encryption service."""

    def test_encrypt_decrypt_round_trip(self):
        """Should successfully encrypt and decrypt data."""
        service = get_encryption_service()

        plaintext = '[{"id": "stock-1", "current_value": "14000"}]'

        assert service.decrypt(service.encrypt(plaintext)) == plaintext

    def test_encrypt_returns_versioned_string(self):
        """Should return versioned string in format v{n}:<base64>."""
        service = EncryptionService(version=1)

        encrypted = service.encrypt("payload")

        assert re.match(r"^v1:[A-Za-z0-9+/=]+$", encrypted)
        base64.b64decode(encrypted.split(":", 1)[1], validate=True)

    def test_encrypt_produces_different_output_each_time(self):
        """Should use a fresh IV so the same data encrypts differently."""
        service = get_encryption_service()

        first = service.encrypt("same")
        second = service.encrypt("same")

        assert first != second
        assert service.decrypt(first) == service.decrypt(second) == "same"

    def test_unicode_round_trip(self):
        service = get_encryption_service()

        assert service.decrypt(service.encrypt("Épargne €5 000")) == "Épargne €5 000"

    def test_encrypt_empty_raises(self):
        """Should reject empty plaintext."""
        with pytest.raises(ValueError, match="Data cannot be empty"):
            get_encryption_service().encrypt("")

    def test_decrypt_empty_raises(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            get_encryption_service().decrypt("")

    def test_decrypt_without_prefix_raises(self):
        """Should reject ciphertexts without a version prefix."""
        with pytest.raises(ValueError, match="Missing version prefix"):
            get_encryption_service().decrypt("bm90LWVuY3J5cHRlZA==")

    def test_decrypt_bad_prefix_raises(self):
        with pytest.raises(ValueError, match="Invalid version prefix"):
            get_encryption_service().decrypt("vX:abcd")

    def test_decrypt_other_version_raises(self):
        """Should refuse data written under another key version."""
        encrypted = EncryptionService(version=2).encrypt("data")

        with pytest.raises(ValueError, match="No decryption key configured for version 2"):
            EncryptionService(version=1).decrypt(encrypted)

    def test_decrypt_with_wrong_key_raises(self):
        """Should fail authentication when the key differs."""
        encrypted = EncryptionService(key=Fernet.generate_key().decode()).encrypt("data")

        with pytest.raises(ValueError, match="Failed to decrypt data"):
            EncryptionService(key=Fernet.generate_key().decode()).decrypt(encrypted)

    def test_decrypt_tampered_ciphertext_raises(self):
        service = get_encryption_service()
        encrypted = service.encrypt("data")
        tampered = encrypted[:-6] + ("A" * 4) + encrypted[-2:]

        with pytest.raises(ValueError):
            service.decrypt(tampered)

    def test_decrypt_invalid_base64_raises(self):
        with pytest.raises(ValueError, match="Failed to decrypt data"):
            get_encryption_service().decrypt(f"v{get_encryption_service().version}:not base64!")

    def test_invalid_key_raises(self):
        """Should raise a clear error for malformed keys."""
        with pytest.raises(ValueError, match="Invalid STORAGE_ENCRYPTION_KEY format"):
            EncryptionService(key="not-a-fernet-key")

    def test_singleton(self):
        assert get_encryption_service() is get_encryption_service()


class TestKeyDerivation:
    """Passphrase-derived keys."""

    def test_derived_key_is_stable(self):
        """Should derive the same key from the same passphrase."""
        assert derive_key("secret") == derive_key("secret")
        assert derive_key("secret") != derive_key("other")

    def test_derived_key_is_a_valid_fernet_key(self):
        Fernet(derive_key("secret"))

    def test_passphrase_used_without_configured_key(self, monkeypatch):
        """Should fall back to the passphrase so data survives restarts."""
        monkeypatch.setattr("firetools.config.settings.STORAGE_ENCRYPTION_KEY", None)
        monkeypatch.setattr("firetools.config.settings.STORAGE_PASSPHRASE", "pass-1")

        encrypted = EncryptionService().encrypt("data")

        assert EncryptionService().decrypt(encrypted) == "data"
        assert EncryptionService(key=derive_key("pass-1").decode()).decrypt(encrypted) == "data"
