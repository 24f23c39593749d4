"""Client endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from securevault.database import get_db
from securevault.deps import get_request_context
from securevault.errors import NotFoundError
from securevault.schemas.activity import RequestContext
from securevault.schemas.client import ClientCreate, ClientResponse
from securevault.services import client_service

router = APIRouter()


@router.get("/", response_model=list[ClientResponse])
async def list_clients(search: str | None = None, db: AsyncSession = Depends(get_db)):
    return await client_service.list_clients(db, search=search)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, db: AsyncSession = Depends(get_db)):
    client = await client_service.get_client(db, client_id)
    if not client:
        raise NotFoundError("Client not found")
    return client


@router.post("/", response_model=ClientResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    return await client_service.create_client(db, data, context)
