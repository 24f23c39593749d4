"""Credential service — CRUD with sealed secrets.

Plaintext enters through the request schemas and is sealed with
``SecretField.seal`` before it is assigned to a model. Plaintext only leaves
through ``reveal_credential`` (and the export pipeline, which calls it).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from securevault.errors import MissingReferenceError, ValidationError
from securevault.models.client import Client
from securevault.models.credential import Credential, CredentialField
from securevault.models.platform import Platform
from securevault.schemas.activity import RequestContext
from securevault.schemas.credential import (
    CredentialCreate,
    CredentialFieldIn,
    CredentialFieldOut,
    CredentialFilters,
    CredentialSecretResponse,
    CredentialUpdate,
)
from securevault.services import audit_service
from securevault.utils.secret_field import SecretField

logger = logging.getLogger(__name__)

# Fields that may be omitted on update but never explicitly cleared.
_REQUIRED_ON_UPDATE = ("client_id", "platform_id", "account_name", "username", "password")


async def list_credentials(db: AsyncSession, filters: CredentialFilters) -> list[Credential]:
    """Return credentials matching ``filters``, ordered client → platform → account."""
    stmt = (
        select(Credential)
        .join(Credential.client)
        .join(Credential.platform)
        .order_by(Client.name, Platform.name, Credential.account_name, Credential.id)
    )
    if filters.client_id is not None:
        stmt = stmt.where(Credential.client_id == filters.client_id)
    if filters.platform_id is not None:
        stmt = stmt.where(Credential.platform_id == filters.platform_id)
    if filters.platform_category_id is not None:
        stmt = stmt.where(Platform.category_id == filters.platform_category_id)
    if not filters.include_inactive:
        stmt = stmt.where(Credential.is_active.is_(True))
    if filters.search:
        stmt = stmt.where(Credential.account_name.ilike(f"%{filters.search}%"))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_credential(db: AsyncSession, credential_id: int) -> Credential | None:
    stmt = (
        select(Credential)
        .where(Credential.id == credential_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def _check_references(
    db: AsyncSession, client_id: int | None, platform_id: int | None
) -> None:
    if client_id is not None and await db.get(Client, client_id) is None:
        raise MissingReferenceError(f"Client {client_id} does not exist")
    if platform_id is not None and await db.get(Platform, platform_id) is None:
        raise MissingReferenceError(f"Platform {platform_id} does not exist")


def _seal_fields(secret_field: SecretField, fields: list[CredentialFieldIn]) -> list[CredentialField]:
    return [
        CredentialField(field_name=f.field_name, field_value=secret_field.seal(f.field_value))
        for f in fields
    ]


async def create_credential(
    db: AsyncSession,
    secret_field: SecretField,
    data: CredentialCreate,
    context: RequestContext,
) -> Credential:
    # Referential checks happen before anything is encrypted.
    await _check_references(db, data.client_id, data.platform_id)

    credential = Credential(
        client_id=data.client_id,
        platform_id=data.platform_id,
        account_name=data.account_name,
        username=secret_field.seal(data.username),
        password=secret_field.seal(data.password),
        url=data.url,
        notes=data.notes,
        expiry_date=data.expiry_date,
        created_by=context.actor.id,
        additional_fields=_seal_fields(secret_field, data.additional_fields),
    )
    db.add(credential)
    await db.commit()
    credential = await get_credential(db, credential.id)

    await audit_service.record_activity(
        db,
        context,
        "create",
        "credential",
        f"Credential {credential.account_name} created",
        entity_id=credential.id,
    )
    return credential


async def update_credential(
    db: AsyncSession,
    secret_field: SecretField,
    credential_id: int,
    data: CredentialUpdate,
    context: RequestContext,
) -> Credential | None:
    credential = await get_credential(db, credential_id)
    if not credential:
        return None

    updates = data.model_dump(exclude_unset=True, exclude={"additional_fields"})
    for name in _REQUIRED_ON_UPDATE:
        if name in updates and not updates[name]:
            raise ValidationError(f"{name} must not be empty")
    if updates.get("is_active", True) is None:
        del updates["is_active"]

    await _check_references(db, updates.get("client_id"), updates.get("platform_id"))

    for name in ("username", "password"):
        if name in updates:
            updates[name] = secret_field.seal(updates[name])
    for name, value in updates.items():
        setattr(credential, name, value)

    # Replace-all: a non-empty list drops every existing field (delete-orphan)
    # and recreates the supplied set. Fields left out of the list are lost.
    if data.additional_fields:
        credential.additional_fields.clear()
        credential.additional_fields.extend(_seal_fields(secret_field, data.additional_fields))

    await db.commit()
    credential = await get_credential(db, credential_id)

    await audit_service.record_activity(
        db,
        context,
        "update",
        "credential",
        f"Credential {credential.account_name} updated",
        entity_id=credential.id,
    )
    return credential


async def deactivate_credential(
    db: AsyncSession, credential_id: int, context: RequestContext
) -> bool:
    """Soft delete: flip ``is_active``. The row and its ciphertext stay."""
    credential = await db.get(Credential, credential_id)
    if not credential:
        return False

    credential.is_active = False
    await db.commit()

    await audit_service.record_activity(
        db,
        context,
        "delete",
        "credential",
        f"Credential {credential.account_name} deactivated",
        entity_id=credential_id,
    )
    return True


def reveal_credential(secret_field: SecretField, credential: Credential) -> CredentialSecretResponse:
    """Decrypt every secret of ``credential``.

    A single undecryptable value fails the whole read with ``DecryptionError``.
    """
    return CredentialSecretResponse(
        id=credential.id,
        account_name=credential.account_name,
        username=secret_field.reveal(credential.username),
        password=secret_field.reveal(credential.password),
        additional_fields=[
            CredentialFieldOut(field_name=f.field_name, field_value=secret_field.reveal(f.field_value))
            for f in credential.additional_fields
        ],
    )


async def read_secrets(
    db: AsyncSession,
    secret_field: SecretField,
    credential_id: int,
    context: RequestContext,
) -> CredentialSecretResponse | None:
    """Reveal a credential for a caller, stamping ``last_used`` and auditing the read."""
    credential = await get_credential(db, credential_id)
    if not credential:
        return None

    revealed = reveal_credential(secret_field, credential)

    # Naive UTC, matching the CURRENT_TIMESTAMP server defaults.
    credential.last_used = datetime.now(timezone.utc).replace(tzinfo=None)
    await db.commit()
    await audit_service.record_activity(
        db,
        context,
        "read",
        "credential",
        f"Credential {credential.account_name} secrets viewed",
        entity_id=credential_id,
    )
    return revealed
