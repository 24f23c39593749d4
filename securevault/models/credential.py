"""Credential ORM models — one account on one platform for one client.

``username``, ``password`` and ``CredentialField.field_value`` hold cipher
tokens (``<hex iv>:<hex ciphertext>``), never plaintext. Use
``securevault.utils.secret_field.SecretField`` to seal/reveal them.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from securevault.database import Base
from securevault.models.client import Client
from securevault.models.platform import Platform


class Credential(Base):
    __tablename__ = "credentials"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), index=True)
    platform_id: Mapped[int] = mapped_column(ForeignKey("platforms.id"), index=True)
    account_name: Mapped[str] = mapped_column(String(100))
    username: Mapped[str] = mapped_column(Text)  # cipher token
    password: Mapped[str] = mapped_column(Text)  # cipher token
    url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_by: Mapped[str] = mapped_column(String(64))
    last_used: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    client: Mapped[Client] = relationship(lazy="selectin")
    platform: Mapped[Platform] = relationship(lazy="selectin")
    additional_fields: Mapped[list[CredentialField]] = relationship(
        back_populates="credential",
        cascade="all, delete-orphan",
        order_by="CredentialField.id",
        lazy="selectin",
    )


class CredentialField(Base):
    __tablename__ = "credential_fields"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    credential_id: Mapped[int] = mapped_column(
        ForeignKey("credentials.id", ondelete="CASCADE"), index=True
    )
    field_name: Mapped[str] = mapped_column(String(50))
    field_value: Mapped[str | None] = mapped_column(Text, nullable=True)  # cipher token
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    credential: Mapped[Credential] = relationship(back_populates="additional_fields")
