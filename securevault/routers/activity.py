"""Audit trail endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from securevault.database import get_db
from securevault.deps import get_request_context
from securevault.models.activity import ActionType, EntityType
from securevault.schemas.activity import ActivityResponse, RequestContext
from securevault.services import audit_service

router = APIRouter()


@router.get("/", response_model=list[ActivityResponse])
async def list_activity(
    entity_type: EntityType | None = None,
    action_type: ActionType | None = None,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    return await audit_service.list_activity(
        db, entity_type=entity_type, action_type=action_type, limit=min(max(limit, 1), 500)
    )
