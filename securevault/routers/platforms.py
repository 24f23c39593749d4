"""Platform and platform-category endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from securevault.database import get_db
from securevault.deps import get_request_context
from securevault.errors import ConflictError, NotFoundError
from securevault.schemas.activity import RequestContext
from securevault.schemas.platform import (
    PlatformCategoryCreate,
    PlatformCategoryResponse,
    PlatformCreate,
    PlatformResponse,
)
from securevault.services import platform_service

router = APIRouter()


@router.get("/categories", response_model=list[PlatformCategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return await platform_service.list_categories(db)


@router.post("/categories", response_model=PlatformCategoryResponse, status_code=201)
async def create_category(
    data: PlatformCategoryCreate,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    return await platform_service.create_category(db, data)


@router.get("/", response_model=list[PlatformResponse])
async def list_platforms(category_id: int | None = None, db: AsyncSession = Depends(get_db)):
    return await platform_service.list_platforms(db, category_id=category_id)


@router.get("/{platform_id}", response_model=PlatformResponse)
async def get_platform(platform_id: int, db: AsyncSession = Depends(get_db)):
    platform = await platform_service.get_platform(db, platform_id)
    if not platform:
        raise NotFoundError("Platform not found")
    return platform


@router.post("/", response_model=PlatformResponse, status_code=201)
async def create_platform(
    data: PlatformCreate,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    if await platform_service.get_platform_by_name(db, data.name):
        raise ConflictError("Platform already exists")
    return await platform_service.create_platform(db, data, context)
