"""Export request/response schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from securevault.schemas.credential import CredentialFilters


class ExportMode(str, Enum):
    SINGLE = "single"
    GROUPED = "grouped"


class ExportRequest(CredentialFilters):
    mode: ExportMode = ExportMode.SINGLE


class ExportResponse(BaseModel):
    filename: str
    # One-time workbook password; delivered here, never inside the file.
    password: str
    record_count: int
    group_count: int
    download_url: str


class ExportLogResponse(BaseModel):
    id: int
    user_id: str
    export_type: str
    file_name: str
    record_count: int
    filters: str | None
    ip_address: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ExportHistoryResponse(BaseModel):
    exports: list[ExportLogResponse]
    total: int
    limit: int = Field(..., ge=1)
    offset: int = Field(..., ge=0)
