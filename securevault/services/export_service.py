"""Export service — decrypt credentials into a password-locked workbook.

The caller supplies an already filtered and ordered list of credentials (see
``credential_service.list_credentials``); this module does no filtering. The
flow is: decrypt every record, render the workbook, lock each sheet with a
one-time password, stage the file, then write the audit rows.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from openpyxl import Workbook
from openpyxl.utils.exceptions import IllegalCharacterError
from sqlalchemy.ext.asyncio import AsyncSession

from securevault.errors import EmptyResultError, PersistenceError, RenderError
from securevault.models.activity import ActionType, EntityType
from securevault.models.credential import Credential
from securevault.schemas.activity import RequestContext
from securevault.schemas.export import ExportMode
from securevault.services import audit_service
from securevault.services.credential_service import reveal_credential
from securevault.services.export_staging import ExportStaging
from securevault.utils import excel_export
from securevault.utils.excel_export import ClientGroup, ExportRow
from securevault.utils.secret_field import SecretField

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

_FILE_PREFIX = {
    ExportMode.SINGLE: "credentials_export",
    ExportMode.GROUPED: "client_credentials_export",
}
_EXPORT_TYPE = {
    ExportMode.SINGLE: "credentials",
    ExportMode.GROUPED: "client_credentials",
}


@dataclass(frozen=True, slots=True)
class ExportArtifact:
    filename: str
    path: Path
    password: str
    record_count: int
    group_count: int
    sheet_names: tuple[str, ...]
    # Id of the "export" activity entry; None when the audit write failed.
    activity_id: int | None = None


def _format_date(value: date | None) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _format_datetime(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


def build_row(secret_field: SecretField, credential: Credential) -> ExportRow:
    """Decrypt one credential into a worksheet row."""
    revealed = reveal_credential(secret_field, credential)
    fields = [(f.field_name, f.field_value) for f in revealed.additional_fields]
    return ExportRow(
        client=credential.client.name if credential.client else "",
        platform=credential.platform.name if credential.platform else "",
        account_name=credential.account_name,
        url=credential.url or "",
        username=revealed.username or "",
        password=revealed.password or "",
        notes=excel_export.format_notes(credential.notes, fields),
        expiry_date=_format_date(credential.expiry_date),
        created_at=_format_datetime(credential.created_at),
        updated_at=_format_datetime(credential.updated_at),
    )


def group_by_client(
    records: Sequence[Credential], rows: Sequence[ExportRow]
) -> list[ClientGroup]:
    """Group rows by client, keeping first-seen client order."""
    groups: dict[int, ClientGroup] = {}
    for credential, row in zip(records, rows):
        group = groups.get(credential.client_id)
        if group is None:
            client = credential.client
            group = ClientGroup(
                name=client.name if client else "",
                contact_person=(client.contact_person or "") if client else "",
                email=(client.email or "") if client else "",
                phone=(client.phone or "") if client else "",
            )
            groups[credential.client_id] = group
        group.rows.append(row)
    return list(groups.values())


def render_workbook(
    secret_field: SecretField,
    records: Sequence[Credential],
    mode: ExportMode,
    password: str,
) -> tuple[Workbook, int]:
    """Build and lock the workbook. Returns it with the number of groups."""
    # DecryptionError propagates: a credential that cannot be read fails the export.
    rows = [build_row(secret_field, credential) for credential in records]
    try:
        if mode is ExportMode.GROUPED:
            groups = group_by_client(records, rows)
            wb = excel_export.build_grouped_workbook(groups)
            group_count = len(groups)
        else:
            wb = excel_export.build_single_workbook(rows)
            group_count = 1
        excel_export.protect_workbook(wb, password)
    except (IllegalCharacterError, ValueError) as exc:
        raise RenderError(detail=str(exc)) from exc
    return wb, group_count


async def _save(wb: Workbook, path: Path) -> None:
    try:
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(wb.save, path)
    except OSError as exc:
        # Don't leave a half-written file behind.
        with contextlib.suppress(OSError):
            path.unlink(missing_ok=True)
        raise PersistenceError(detail=str(exc)) from exc


async def export_credentials(
    db: AsyncSession,
    secret_field: SecretField,
    staging: ExportStaging,
    records: Sequence[Credential],
    context: RequestContext,
    filters: dict | None = None,
    mode: ExportMode = ExportMode.SINGLE,
    password_length: int = 12,
) -> ExportArtifact:
    if not records:
        raise EmptyResultError()

    password = secret_field.box.generate_random_password(
        max(password_length, MIN_PASSWORD_LENGTH), symbols=False
    )
    wb, group_count = render_workbook(secret_field, records, mode, password)

    filename = staging.new_filename(_FILE_PREFIX[mode])
    path = staging.directory / filename
    await _save(wb, path)
    staging.schedule_purge(path)

    record_count = len(records)
    logger.info(
        "Export %s written by %s: %d credential(s), mode=%s",
        filename,
        context.actor.id,
        record_count,
        mode.value,
    )

    if mode is ExportMode.GROUPED:
        description = f"Exported credentials for {group_count} clients to Excel"
        entity_type = EntityType.CLIENT
    else:
        description = f"Exported {record_count} credentials to Excel"
        entity_type = EntityType.CREDENTIAL
    activity = await audit_service.record_activity(
        db, context, ActionType.EXPORT, entity_type, description
    )
    activity_id = activity.id if activity is not None else None
    await audit_service.record_export(
        db, context, _EXPORT_TYPE[mode], filename, record_count, filters=filters
    )

    return ExportArtifact(
        filename=filename,
        path=path,
        password=password,
        record_count=record_count,
        group_count=group_count,
        sheet_names=tuple(wb.sheetnames),
        activity_id=activity_id,
    )
