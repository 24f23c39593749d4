"""Audit service — append-only activity and export logs.

Writes are best effort: failures are logged and swallowed so an unavailable
audit table never blocks a credential read, write or export. Call these after
the primary operation has been committed.
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from securevault.errors import ValidationError
from securevault.models.activity import ActionType, ActivityLog, EntityType, ExportLog
from securevault.schemas.activity import RequestContext

logger = logging.getLogger(__name__)


async def record_activity(
    db: AsyncSession,
    context: RequestContext,
    action_type: ActionType | str,
    entity_type: EntityType | str,
    description: str,
    entity_id: int | None = None,
) -> ActivityLog | None:
    """Append one activity entry.

    An unknown action or entity type is a caller bug and raises
    ``ValidationError``; only database failures are swallowed.
    """
    try:
        action = ActionType(action_type)
        entity = EntityType(entity_type)
    except ValueError as exc:
        raise ValidationError("Unknown audit action or entity type", detail=str(exc)) from exc

    entry = ActivityLog(
        user_id=context.actor.id,
        action_type=action.value,
        entity_type=entity.value,
        entity_id=entity_id,
        description=description,
        ip_address=context.ip,
        user_agent=context.user_agent,
    )
    try:
        db.add(entry)
        await db.commit()
    except SQLAlchemyError as exc:
        logger.warning("Audit record_activity failed (%s %s): %s", action.value, entity.value, exc)
        await db.rollback()
        return None
    return entry


async def record_export(
    db: AsyncSession,
    context: RequestContext,
    export_type: str,
    file_name: str,
    record_count: int,
    filters: dict | None = None,
) -> ExportLog | None:
    entry = ExportLog(
        user_id=context.actor.id,
        export_type=export_type,
        file_name=file_name,
        record_count=record_count,
        filters=json.dumps(filters or {}, sort_keys=True, default=str),
        ip_address=context.ip,
    )
    try:
        db.add(entry)
        await db.commit()
    except SQLAlchemyError as exc:
        logger.warning("Audit record_export failed for %s: %s", file_name, exc)
        await db.rollback()
        return None
    return entry


async def list_activity(
    db: AsyncSession,
    entity_type: EntityType | None = None,
    action_type: ActionType | None = None,
    limit: int = 50,
) -> list[ActivityLog]:
    stmt = select(ActivityLog).order_by(ActivityLog.id.desc()).limit(limit)
    if entity_type:
        stmt = stmt.where(ActivityLog.entity_type == EntityType(entity_type).value)
    if action_type:
        stmt = stmt.where(ActivityLog.action_type == ActionType(action_type).value)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_exports(
    db: AsyncSession, limit: int = 10, offset: int = 0
) -> tuple[list[ExportLog], int]:
    total = await db.scalar(select(func.count()).select_from(ExportLog))
    stmt = select(ExportLog).order_by(ExportLog.id.desc()).limit(limit).offset(offset)
    result = await db.execute(stmt)
    return list(result.scalars().all()), total or 0
