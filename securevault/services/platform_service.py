"""Platform and platform-category service."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from securevault.errors import MissingReferenceError
from securevault.models.platform import Platform, PlatformCategory
from securevault.schemas.activity import RequestContext
from securevault.schemas.platform import PlatformCategoryCreate, PlatformCreate
from securevault.services import audit_service


async def list_categories(db: AsyncSession) -> list[PlatformCategory]:
    result = await db.execute(select(PlatformCategory).order_by(PlatformCategory.name))
    return list(result.scalars().all())


async def create_category(db: AsyncSession, data: PlatformCategoryCreate) -> PlatformCategory:
    category = PlatformCategory(**data.model_dump())
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


async def list_platforms(db: AsyncSession, category_id: int | None = None) -> list[Platform]:
    stmt = select(Platform).order_by(Platform.name)
    if category_id is not None:
        stmt = stmt.where(Platform.category_id == category_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_platform(db: AsyncSession, platform_id: int) -> Platform | None:
    return await db.get(Platform, platform_id)


async def get_platform_by_name(db: AsyncSession, name: str) -> Platform | None:
    result = await db.execute(select(Platform).where(Platform.name == name))
    return result.scalar_one_or_none()


async def create_platform(
    db: AsyncSession, data: PlatformCreate, context: RequestContext
) -> Platform:
    if data.category_id is not None and await db.get(PlatformCategory, data.category_id) is None:
        raise MissingReferenceError(f"Platform category {data.category_id} does not exist")

    platform = Platform(**data.model_dump())
    db.add(platform)
    await db.commit()
    await db.refresh(platform)

    await audit_service.record_activity(
        db, context, "create", "platform", f"Platform {platform.name} created", entity_id=platform.id
    )
    return platform
