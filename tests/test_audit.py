"""Audit trail tests."""

import json
import logging

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError

from securevault.errors import ValidationError
from securevault.models.activity import ActionType, ActivityLog, EntityType, ExportLog
from securevault.services import audit_service


class _BrokenSession:
    """Stands in for an AsyncSession whose database has gone away."""

    def __init__(self):
        self.rolled_back = False

    def add(self, obj):
        pass

    async def commit(self):
        raise OperationalError("INSERT INTO activity_logs", {}, Exception("database is locked"))

    async def rollback(self):
        self.rolled_back = True


@pytest.mark.asyncio
async def test_record_activity(db, context):
    entry = await audit_service.record_activity(
        db, context, "create", "credential", "Credential x created", entity_id=7
    )
    assert entry is not None

    row = (await db.execute(select(ActivityLog))).scalar_one()
    assert row.user_id == "tester"
    assert row.action_type == "create"
    assert row.entity_id == 7
    assert row.ip_address == "127.0.0.1"
    assert row.user_agent == "pytest"


@pytest.mark.asyncio
async def test_record_export_serializes_filters(db, context):
    await audit_service.record_export(
        db, context, "credentials", "f.xlsx", 3, filters={"client_id": 1, "mode": "single"}
    )
    row = (await db.execute(select(ExportLog))).scalar_one()
    assert json.loads(row.filters) == {"client_id": 1, "mode": "single"}
    assert row.record_count == 3


@pytest.mark.asyncio
async def test_audit_failure_does_not_raise(context, caplog):
    session = _BrokenSession()
    with caplog.at_level(logging.WARNING, logger="securevault.services.audit_service"):
        result = await audit_service.record_activity(
            session, context, "export", "credential", "Exported 1 credentials to Excel"
        )
        export = await audit_service.record_export(session, context, "credentials", "f.xlsx", 1)

    assert result is None
    assert export is None
    assert session.rolled_back
    assert "Audit record_activity failed" in caplog.text


@pytest.mark.asyncio
async def test_list_exports_pagination(db, context):
    for i in range(3):
        await audit_service.record_export(db, context, "credentials", f"f{i}.xlsx", i + 1)

    page, total = await audit_service.list_exports(db, limit=2, offset=0)
    assert total == 3
    assert [e.file_name for e in page] == ["f2.xlsx", "f1.xlsx"]
    page, _ = await audit_service.list_exports(db, limit=2, offset=2)
    assert [e.file_name for e in page] == ["f0.xlsx"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("action", "entity"), [("frobnicate", "credential"), ("create", "spaceship")]
)
async def test_record_activity_rejects_unknown_types(db, context, action, entity):
    with pytest.raises(ValidationError):
        await audit_service.record_activity(db, context, action, entity, "nope")
    assert (await db.execute(select(ActivityLog))).scalars().all() == []


@pytest.mark.asyncio
async def test_record_activity_accepts_enum_members(db, context):
    entry = await audit_service.record_activity(
        db, context, ActionType.LOGIN, EntityType.USER, "Signed in"
    )
    assert entry.action_type == "login"
    assert entry.entity_type == "user"


@pytest.mark.asyncio
async def test_activity_table_enforces_action_set(db):
    db.add(ActivityLog(user_id="tester", action_type="frobnicate", entity_type="credential"))
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()
