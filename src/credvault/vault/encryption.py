# Vault - Encryption Service
#
# Per-entry authenticated encryption (AES-256-GCM) with the session key.
#
# Stored blob layout, base64-encoded for the TEXT column:
#
#     nonce (12) || tag (16) || ciphertext (N)
#
# A fresh random nonce is drawn from os.urandom() on every seal, so nonces
# never depend on a counter that could repeat across process restarts.

import base64
import binascii
import os
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..core.errors import CryptoFailure


class EncryptionService:
    """
    Seals and opens single credential values.

    Flow:
    1. Authenticator derives the 256-bit session key on unlock
    2. seal() encrypts one password with a unique nonce
    3. open_blob() verifies the GCM tag and decrypts
    4. Any tag mismatch is a hard failure (tamper or wrong key)
    """

    KEY_LENGTH = 32    # 256 bits for AES-256
    NONCE_LENGTH = 12  # 96-bit nonce for GCM (recommended)
    TAG_LENGTH = 16    # 128-bit GCM tag
    MIN_BLOB_LENGTH = NONCE_LENGTH + TAG_LENGTH

    @staticmethod
    def _cipher(key: bytes) -> AESGCM:
        if len(key) != EncryptionService.KEY_LENGTH:
            raise CryptoFailure(f"Key must be {EncryptionService.KEY_LENGTH} bytes")
        return AESGCM(bytes(key))

    @staticmethod
    def seal(plaintext: Union[str, bytes], key: bytes) -> str:
        """
        Encrypt one value.

        Args:
            plaintext: Password or secret to encrypt
            key: 256-bit session key

        Returns:
            base64(nonce || tag || ciphertext)

        Raises:
            CryptoFailure: bad key length
        """
        data = plaintext.encode("utf-8") if isinstance(plaintext, str) else bytes(plaintext)
        cipher = EncryptionService._cipher(key)

        nonce = os.urandom(EncryptionService.NONCE_LENGTH)
        # AESGCM returns ciphertext || tag
        sealed = cipher.encrypt(nonce, data, None)
        ciphertext = sealed[:-EncryptionService.TAG_LENGTH]
        tag = sealed[-EncryptionService.TAG_LENGTH:]

        return EncryptionService.encode_for_storage(nonce + tag + ciphertext)

    @staticmethod
    def open_blob(blob: str, key: bytes) -> str:
        """
        Verify and decrypt a stored blob.

        Raises:
            CryptoFailure: malformed blob, wrong key, tampered data, or
                plaintext that is not UTF-8. Never returns garbage.
        """
        cipher = EncryptionService._cipher(key)
        raw = EncryptionService.decode_from_storage(blob)

        if len(raw) < EncryptionService.MIN_BLOB_LENGTH:
            raise CryptoFailure("Invalid encrypted password data")

        nonce = raw[:EncryptionService.NONCE_LENGTH]
        tag = raw[EncryptionService.NONCE_LENGTH:EncryptionService.MIN_BLOB_LENGTH]
        ciphertext = raw[EncryptionService.MIN_BLOB_LENGTH:]

        try:
            plaintext = cipher.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as exc:
            raise CryptoFailure("Decryption failed: authentication tag mismatch") from exc

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CryptoFailure("Decrypted data is not valid UTF-8") from exc

    @staticmethod
    def encode_for_storage(data: bytes) -> str:
        """Encode binary data for the TEXT column (base64)."""
        return base64.b64encode(data).decode("ascii")

    @staticmethod
    def decode_from_storage(data: str) -> bytes:
        """Decode base64 from the TEXT column.

        Raises:
            CryptoFailure: not valid base64.
        """
        try:
            return base64.b64decode(data.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError, AttributeError) as exc:
            raise CryptoFailure(f"Invalid encrypted password encoding: {exc}") from exc


def seal(plaintext: Union[str, bytes], key: bytes) -> str:
    return EncryptionService.seal(plaintext, key)


def open_blob(blob: str, key: bytes) -> str:
    return EncryptionService.open_blob(blob, key)
