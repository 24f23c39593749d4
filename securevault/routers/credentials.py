"""Credential CRUD endpoints. Secrets are only returned by ``/{id}/secrets``."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from securevault.database import get_db
from securevault.deps import get_request_context, get_secret_field
from securevault.errors import NotFoundError
from securevault.schemas.activity import RequestContext
from securevault.schemas.credential import (
    CredentialCreate,
    CredentialFilters,
    CredentialResponse,
    CredentialSecretResponse,
    CredentialUpdate,
)
from securevault.services import credential_service
from securevault.utils.secret_field import SecretField

router = APIRouter()


@router.get("/", response_model=list[CredentialResponse])
async def list_credentials(
    filters: CredentialFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    return await credential_service.list_credentials(db, filters)


@router.get("/{credential_id}", response_model=CredentialResponse)
async def get_credential(
    credential_id: int,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    credential = await credential_service.get_credential(db, credential_id)
    if not credential:
        raise NotFoundError("Credential not found")
    return credential


@router.get("/{credential_id}/secrets", response_model=CredentialSecretResponse)
async def get_credential_secrets(
    credential_id: int,
    db: AsyncSession = Depends(get_db),
    secret_field: SecretField = Depends(get_secret_field),
    context: RequestContext = Depends(get_request_context),
):
    revealed = await credential_service.read_secrets(db, secret_field, credential_id, context)
    if not revealed:
        raise NotFoundError("Credential not found")
    return revealed


@router.post("/", response_model=CredentialResponse, status_code=201)
async def create_credential(
    data: CredentialCreate,
    db: AsyncSession = Depends(get_db),
    secret_field: SecretField = Depends(get_secret_field),
    context: RequestContext = Depends(get_request_context),
):
    return await credential_service.create_credential(db, secret_field, data, context)


@router.patch("/{credential_id}", response_model=CredentialResponse)
async def update_credential(
    credential_id: int,
    data: CredentialUpdate,
    db: AsyncSession = Depends(get_db),
    secret_field: SecretField = Depends(get_secret_field),
    context: RequestContext = Depends(get_request_context),
):
    credential = await credential_service.update_credential(
        db, secret_field, credential_id, data, context
    )
    if not credential:
        raise NotFoundError("Credential not found")
    return credential


@router.delete("/{credential_id}", status_code=204)
async def delete_credential(
    credential_id: int,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    deactivated = await credential_service.deactivate_credential(db, credential_id, context)
    if not deactivated:
        raise NotFoundError("Credential not found")
