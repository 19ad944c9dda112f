"""Symmetric encryption for secrets stored in the database."""

import base64
import binascii
import hashlib
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

IV_SIZE = 16


class DecryptionError(ValueError):
    """Stored ciphertext cannot be decrypted with the configured key."""


class EncryptionService:
    """AES-256-CBC encryption with a random IV per value.

    Ciphertexts are ``base64(iv || ciphertext)``. The AES key is the SHA-256
    digest of the configured secret, so any non-empty secret yields a valid
    256-bit key.
    """

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("Encryption key must not be empty")
        self._key = hashlib.sha256(secret.encode("utf-8")).digest()

    def encrypt(self, plain_text: str) -> str:
        """Encrypt a string. Empty input encrypts to an empty string."""
        if not plain_text:
            return ""

        iv = os.urandom(IV_SIZE)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plain_text.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        cipher_bytes = encryptor.update(padded) + encryptor.finalize()
        return base64.b64encode(iv + cipher_bytes).decode("ascii")

    def decrypt(self, cipher_text: str) -> str:
        """Decrypt a value produced by :meth:`encrypt`."""
        if not cipher_text:
            return ""

        try:
            raw = base64.b64decode(cipher_text, validate=True)
        except binascii.Error as e:
            raise DecryptionError("Stored value is not valid base64") from e

        iv, cipher_bytes = raw[:IV_SIZE], raw[IV_SIZE:]
        if len(iv) != IV_SIZE or not cipher_bytes or len(cipher_bytes) % IV_SIZE:
            raise DecryptionError("Stored value has an invalid length")

        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(cipher_bytes) + decryptor.finalize()

        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        try:
            plain = unpadder.update(padded) + unpadder.finalize()
            return plain.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise DecryptionError("Stored value was encrypted with a different key") from e
