"""AES-256-CBC encryption of short credential strings.

Tokens are stored as ``<hex iv>:<hex ciphertext>``. Every call to
``CryptoBox.encrypt`` draws a fresh 16-byte IV, so equal plaintexts never
produce equal tokens.
"""

from __future__ import annotations

import re
import secrets
import string

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from securevault.config import Settings
from securevault.errors import ConfigurationError, DecryptionError, EncryptionError

KEY_LENGTH = 32
IV_LENGTH = 16

LOWERCASE = string.ascii_lowercase
UPPERCASE = string.ascii_uppercase
NUMBERS = string.digits
SYMBOLS = "!@#$%^&*()_+~`|}{[]:;?><,./-="

_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def derive_key(key_secret: str) -> bytes:
    """Truncate or zero-pad the configured secret to exactly 32 bytes."""
    raw = key_secret.encode("utf-8")[:KEY_LENGTH]
    return raw.ljust(KEY_LENGTH, b"\0")


class CryptoBox:
    """Symmetric encrypt/decrypt bound to one immutable key."""

    __slots__ = ("_key",)

    def __init__(self, key_secret: str) -> None:
        if not key_secret:
            raise ConfigurationError("Encryption key must not be empty")
        self._key = derive_key(key_secret)

    @classmethod
    def from_settings(cls, settings: Settings) -> CryptoBox:
        return cls(settings.encryption_key)

    def _cipher(self, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(iv))

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            # Callers store the "no value" sentinel instead of encrypting nothing.
            raise EncryptionError("Refusing to encrypt an empty value")

        iv = secrets.token_bytes(IV_LENGTH)
        try:
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
            encryptor = self._cipher(iv).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
        except (ValueError, TypeError) as exc:
            raise EncryptionError(detail=str(exc)) from exc
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        if not token:
            raise DecryptionError("Nothing to decrypt")

        parts = token.split(":")
        if len(parts) != 2:
            raise DecryptionError("Invalid encrypted format")
        iv_hex, ct_hex = parts
        if not (_HEX_RE.fullmatch(iv_hex) and _HEX_RE.fullmatch(ct_hex)):
            raise DecryptionError("Invalid encrypted format")

        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ct_hex)
        except ValueError as exc:
            raise DecryptionError("Invalid encrypted format", detail=str(exc)) from exc
        if len(iv) != IV_LENGTH:
            raise DecryptionError(f"IV must be {IV_LENGTH} bytes, got {len(iv)}")

        try:
            decryptor = self._cipher(iv).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            raw = unpadder.update(padded) + unpadder.finalize()
            return raw.decode("utf-8")
        except ValueError as exc:
            # Covers bad block length, bad padding and non-UTF-8 output
            # (UnicodeDecodeError is a ValueError).
            raise DecryptionError(detail=str(exc)) from exc

    @staticmethod
    def generate_random_password(
        length: int = 16,
        *,
        lowercase: bool = True,
        uppercase: bool = True,
        numbers: bool = True,
        symbols: bool = True,
    ) -> str:
        alphabet = ""
        if lowercase:
            alphabet += LOWERCASE
        if uppercase:
            alphabet += UPPERCASE
        if numbers:
            alphabet += NUMBERS
        if symbols:
            alphabet += SYMBOLS

        if not alphabet:
            raise ConfigurationError("At least one character type must be enabled")
        if length < 1:
            raise ConfigurationError("Password length must be positive")

        return "".join(secrets.choice(alphabet) for _ in range(length))
