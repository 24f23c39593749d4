"""Credential request/response schemas.

Request bodies carry plaintext secrets; the service seals them before they
reach the ORM. ``CredentialResponse`` never includes secrets; decrypted values
are only returned by ``CredentialSecretResponse``.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


class CredentialFieldIn(BaseModel):
    field_name: str = Field(..., min_length=1, max_length=50)
    field_value: str | None = None  # plaintext


class CredentialCreate(BaseModel):
    client_id: int
    platform_id: int
    account_name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    url: str | None = Field(None, max_length=255)
    notes: str | None = None
    expiry_date: date | None = None
    additional_fields: list[CredentialFieldIn] = []


class CredentialUpdate(BaseModel):
    """Partial update: only fields present in the payload are applied.

    ``additional_fields`` is replace-all: a non-empty list deletes every
    existing field of the credential and recreates exactly the given set.
    Omitting it (or sending ``[]``) leaves the existing fields untouched.
    """

    client_id: int | None = None
    platform_id: int | None = None
    account_name: str | None = Field(None, min_length=1, max_length=100)
    username: str | None = Field(None, min_length=1)
    password: str | None = Field(None, min_length=1)
    url: str | None = Field(None, max_length=255)
    notes: str | None = None
    expiry_date: date | None = None
    is_active: bool | None = None
    additional_fields: list[CredentialFieldIn] | None = None


class CredentialFieldName(BaseModel):
    id: int
    field_name: str

    model_config = {"from_attributes": True}


class CredentialResponse(BaseModel):
    id: int
    client_id: int
    platform_id: int
    account_name: str
    url: str | None
    notes: str | None
    expiry_date: date | None
    created_by: str
    last_used: datetime | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    additional_fields: list[CredentialFieldName] = []

    model_config = {"from_attributes": True}


class CredentialFieldOut(BaseModel):
    field_name: str
    field_value: str | None


class CredentialSecretResponse(BaseModel):
    id: int
    account_name: str
    username: str | None
    password: str | None
    additional_fields: list[CredentialFieldOut] = []


class CredentialFilters(BaseModel):
    client_id: int | None = None
    platform_id: int | None = None
    platform_category_id: int | None = None
    include_inactive: bool = False
    search: str | None = None
