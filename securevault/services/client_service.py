"""Client service."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from securevault.models.client import Client
from securevault.schemas.activity import RequestContext
from securevault.schemas.client import ClientCreate
from securevault.services import audit_service


async def list_clients(db: AsyncSession, search: str | None = None) -> list[Client]:
    stmt = select(Client).order_by(Client.name)
    if search:
        stmt = stmt.where(Client.name.ilike(f"%{search}%"))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_client(db: AsyncSession, client_id: int) -> Client | None:
    return await db.get(Client, client_id)


async def create_client(db: AsyncSession, data: ClientCreate, context: RequestContext) -> Client:
    client = Client(**data.model_dump(), created_by=context.actor.id)
    db.add(client)
    await db.commit()
    await db.refresh(client)

    await audit_service.record_activity(
        db, context, "create", "client", f"Client {client.name} created", entity_id=client.id
    )
    return client
