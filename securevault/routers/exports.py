"""Export endpoints.

``POST /credentials`` builds the workbook and returns its one-time password in
the JSON body; the file itself is fetched separately from ``/download`` so the
password never travels with it.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.background import BackgroundTask

from securevault.config import settings
from securevault.database import get_db
from securevault.deps import get_request_context, get_secret_field, get_staging
from securevault.errors import NotFoundError
from securevault.schemas.activity import RequestContext
from securevault.schemas.export import (
    ExportHistoryResponse,
    ExportLogResponse,
    ExportRequest,
    ExportResponse,
)
from securevault.services import audit_service, credential_service, export_service
from securevault.services.export_staging import ExportStaging
from securevault.utils.secret_field import SecretField

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("/credentials", response_model=ExportResponse, status_code=201)
async def export_credentials(
    body: ExportRequest,
    db: AsyncSession = Depends(get_db),
    secret_field: SecretField = Depends(get_secret_field),
    staging: ExportStaging = Depends(get_staging),
    context: RequestContext = Depends(get_request_context),
):
    records = await credential_service.list_credentials(db, body)
    artifact = await export_service.export_credentials(
        db,
        secret_field,
        staging,
        records,
        context,
        filters=body.model_dump(mode="json", exclude_none=True),
        mode=body.mode,
        password_length=settings.export_password_length,
    )
    return ExportResponse(
        filename=artifact.filename,
        password=artifact.password,
        record_count=artifact.record_count,
        group_count=artifact.group_count,
        download_url=f"/api/export/download/{artifact.filename}",
    )


@router.get("/download/{filename}")
async def download_export(
    filename: str,
    staging: ExportStaging = Depends(get_staging),
    context: RequestContext = Depends(get_request_context),
):
    path = staging.path_for(filename)
    if path is None or not path.is_file():
        raise NotFoundError("Export not found or expired")
    return FileResponse(
        path,
        media_type=XLSX_MEDIA_TYPE,
        filename=filename,
        background=BackgroundTask(staging.release, path),
    )


@router.get("/history", response_model=ExportHistoryResponse)
async def export_history(
    limit: int = 10,
    offset: int = 0,
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    limit = min(max(limit, 1), 100)
    offset = max(offset, 0)
    exports, total = await audit_service.list_exports(db, limit=limit, offset=offset)
    return ExportHistoryResponse(
        exports=[ExportLogResponse.model_validate(e) for e in exports],
        total=total,
        limit=limit,
        offset=offset,
    )
