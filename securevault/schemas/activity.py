"""Audit trail schemas."""

from datetime import datetime

from pydantic import BaseModel


class Actor(BaseModel):
    id: str
    display_name: str


class RequestContext(BaseModel):
    """Who is calling and from where, as supplied by the upstream auth layer."""

    actor: Actor
    ip: str | None = None
    user_agent: str | None = None


class ActivityResponse(BaseModel):
    id: int
    user_id: str
    action_type: str
    entity_type: str
    entity_id: int | None
    description: str | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
