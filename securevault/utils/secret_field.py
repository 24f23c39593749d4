"""Encode/decode contract for columns that hold secrets.

Columns holding a secret (credential username/password, additional field
values) only ever contain cipher tokens or ``None``. Services call ``seal``
before assigning and ``reveal`` when plaintext is needed, so each
encrypt/decrypt is a visible call site.
"""

from __future__ import annotations

from securevault.utils.crypto import CryptoBox


class SecretField:
    def __init__(self, box: CryptoBox) -> None:
        self.box = box

    def seal(self, value: str | None) -> str | None:
        """Plaintext → stored token. Empty values become the ``None`` sentinel."""
        if not value:
            return None
        return self.box.encrypt(value)

    def reveal(self, stored: str | None) -> str | None:
        """Stored token → plaintext. Raises ``DecryptionError`` on bad data."""
        if not stored:
            return None
        return self.box.decrypt(stored)
