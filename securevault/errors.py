"""Typed errors raised by the vault core and rendered by the API layer.

Every error carries an HTTP status and a stable ``category`` string so the
exception handler in ``securevault.main`` can produce a structured response
without inspecting exception types one by one.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for all vault errors."""

    status_code: int = 500
    category: str = "internal_error"
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.default_message
        # Raw internal detail, only surfaced outside production.
        self.detail = detail
        super().__init__(self.message)


class EncryptionError(VaultError):
    category = "encryption_error"
    default_message = "Failed to encrypt data"


class DecryptionError(VaultError):
    category = "decryption_error"
    default_message = "Failed to decrypt data"


class ConfigurationError(VaultError):
    category = "configuration_error"
    default_message = "Invalid configuration"


class ValidationError(VaultError):
    status_code = 422
    category = "validation_error"
    default_message = "Invalid input"


class MissingReferenceError(VaultError):
    """A client/platform reference points at nothing."""

    status_code = 422
    category = "reference_error"
    default_message = "Referenced entity does not exist"


class NotFoundError(VaultError):
    status_code = 404
    category = "not_found"
    default_message = "Not found"


class EmptyResultError(VaultError):
    """Export requested against zero matching records (user-correctable)."""

    status_code = 404
    category = "empty_result"
    default_message = "No credentials found with the specified filters"


class RenderError(VaultError):
    category = "render_error"
    default_message = "Failed to build export workbook"


class PersistenceError(VaultError):
    category = "persistence_error"
    default_message = "Failed to write export file"


class UnauthenticatedError(VaultError):
    status_code = 401
    category = "unauthenticated"
    default_message = "Not authenticated"


class ConflictError(VaultError):
    status_code = 409
    category = "conflict"
    default_message = "Resource already exists"
