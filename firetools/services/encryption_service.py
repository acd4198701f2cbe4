"""Encryption service for persisted toolkit state.

Ciphertexts are stored with a version prefix: ``v{n}:<base64ciphertext>``.
New writes always use STORAGE_KEY_VERSION; entries written under another
version cannot be decrypted and are treated as missing by the persistence
layer.

Key selection:
  - STORAGE_ENCRYPTION_KEY when set (a Fernet key)
  - otherwise a key derived from STORAGE_PASSPHRASE with PBKDF2-HMAC-SHA256,
    so data written by one run stays readable by the next

Generate a dedicated key with:
    python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
"""

import base64
import binascii
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from firetools.config import settings

# Fixed salt: the derived key must be reproducible from the passphrase alone
KEY_DERIVATION_SALT = b"firetools-storage-v1"
KEY_DERIVATION_ITERATIONS = 100_000


def derive_key(passphrase: str) -> bytes:
    """Derive a urlsafe-base64 Fernet key from a passphrase."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=KEY_DERIVATION_SALT,
        iterations=KEY_DERIVATION_ITERATIONS,
    )
    return base64.urlsafe_b64encode(kdf.derive(passphrase.encode()))


class EncryptionService:
    """Encrypts and decrypts serialized state with Fernet."""

    def __init__(self, key: Optional[str] = None, version: Optional[int] = None):
        """
        Args:
            key: Fernet key, defaults to STORAGE_ENCRYPTION_KEY or the
                passphrase-derived key
            version: Version written into the ciphertext prefix
        """
        self._version = version if version is not None else settings.STORAGE_KEY_VERSION

        raw_key = key or settings.STORAGE_ENCRYPTION_KEY
        key_bytes = raw_key.encode() if raw_key else derive_key(settings.STORAGE_PASSPHRASE)
        try:
            self._fernet = Fernet(key_bytes)
        except (ValueError, binascii.Error) as e:
            raise ValueError(
                f"Invalid STORAGE_ENCRYPTION_KEY format. Must be a valid Fernet key: {e}"
            ) from e

    @property
    def version(self) -> int:
        return self._version

    def encrypt(self, data: str) -> str:
        """
        Encrypt a string and return a versioned, base64-encoded ciphertext.

        Format: ``v{version}:<base64(fernet_ciphertext)>``
        """
        if not data:
            raise ValueError("Data cannot be empty")

        encrypted_bytes = self._fernet.encrypt(data.encode())
        ciphertext = base64.b64encode(encrypted_bytes).decode("utf-8")
        return f"v{self._version}:{ciphertext}"

    def decrypt(self, encrypted: str) -> str:
        """
        Decrypt a versioned ciphertext string.

        Raises:
            ValueError: If the input is malformed, was written under another
                key version, or fails authentication
        """
        if not encrypted:
            raise ValueError("Encrypted data cannot be empty")

        prefix, sep, ciphertext = encrypted.partition(":")
        if not sep or not prefix.startswith("v"):
            raise ValueError("Missing version prefix")
        try:
            version = int(prefix[1:])
        except ValueError as e:
            raise ValueError(f"Invalid version prefix '{prefix}'") from e

        if version != self._version:
            raise ValueError(
                f"No decryption key configured for version {version} "
                f"(current version is {self._version})"
            )

        try:
            encrypted_bytes = base64.b64decode(ciphertext.encode("utf-8"), validate=True)
            return self._fernet.decrypt(encrypted_bytes).decode()
        except (InvalidToken, binascii.Error, UnicodeDecodeError) as e:
            raise ValueError(f"Failed to decrypt data (version {version}): {e!r}") from e


# Singleton instance
_encryption_service = None


def get_encryption_service() -> EncryptionService:
    """Get or create the encryption service singleton."""
    global _encryption_service
    if _encryption_service is None:
        _encryption_service = EncryptionService()
    return _encryption_service
