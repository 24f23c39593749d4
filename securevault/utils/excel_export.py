"""Workbook rendering for credential exports.

Builds openpyxl workbooks from already-decrypted rows. Nothing here touches the
database or the filesystem; ``securevault.services.export_service`` does that.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from securevault.errors import RenderError

MAX_SHEET_NAME = 31
DEFAULT_SHEET_NAME = "Sheet"
SINGLE_SHEET_NAME = "Credentials"
SUMMARY_SHEET_NAME = "Summary"
WORKBOOK_CREATOR = "SecureVault Credential Manager"

_FORBIDDEN_SHEET_CHARS = re.compile(r"[\[\]*?/\\:]")

_HEADER_FONT = Font(bold=True)
_HEADER_FILL = PatternFill(fill_type="solid", fgColor="FFD3D3D3")
_BANNER_FONT = Font(bold=True, size=14, color="FFFFFFFF")
_BANNER_FILL = PatternFill(fill_type="solid", fgColor="FF4F81BD")
_WRAP = Alignment(wrap_text=True, vertical="top")

# (header, row attribute, width)
CREDENTIAL_COLUMNS: tuple[tuple[str, str, int], ...] = (
    ("Client", "client", 20),
    ("Platform", "platform", 20),
    ("Account Name", "account_name", 25),
    ("URL", "url", 30),
    ("Username", "username", 25),
    ("Password", "password", 25),
    ("Notes", "notes", 40),
    ("Expiry Date", "expiry_date", 15),
    ("Created At", "created_at", 20),
    ("Last Updated", "updated_at", 20),
)
# Per-client sheets drop the Client column; the banner names the client.
GROUP_COLUMNS = CREDENTIAL_COLUMNS[1:]

SUMMARY_COLUMNS: tuple[tuple[str, int], ...] = (
    ("Client Name", 30),
    ("Number of Credentials", 20),
    ("Contact Person", 25),
    ("Email", 30),
)


@dataclass(frozen=True, slots=True)
class ExportRow:
    """One credential, decrypted and formatted for a worksheet."""

    client: str
    platform: str
    account_name: str
    url: str
    username: str
    password: str
    notes: str
    expiry_date: str
    created_at: str
    updated_at: str


@dataclass(slots=True)
class ClientGroup:
    name: str
    contact_person: str = ""
    email: str = ""
    phone: str = ""
    rows: list[ExportRow] = field(default_factory=list)


def sanitize_sheet_name(name: str | None) -> str:
    """Replace characters Excel forbids in sheet names and cap the length at 31."""
    sanitized = _FORBIDDEN_SHEET_CHARS.sub("_", name or "")
    sanitized = ILLEGAL_CHARACTERS_RE.sub("_", sanitized)[:MAX_SHEET_NAME]
    return sanitized or DEFAULT_SHEET_NAME


def unique_sheet_name(name: str | None, taken: set[str], max_attempts: int = 99) -> str:
    """Sanitize ``name`` and disambiguate it against ``taken`` (case-insensitive).

    The chosen name is added to ``taken``. Raises ``RenderError`` when no free
    name exists within ``max_attempts`` numeric suffixes.
    """
    base = sanitize_sheet_name(name)
    candidate = base
    attempt = 1
    while candidate.casefold() in taken:
        attempt += 1
        if attempt > max_attempts + 1:
            raise RenderError(f"Cannot find a unique worksheet name for {base!r}")
        suffix = f"_{attempt}"
        candidate = base[: MAX_SHEET_NAME - len(suffix)] + suffix
    taken.add(candidate.casefold())
    return candidate


def format_notes(notes: str | None, fields: Iterable[tuple[str, str | None]]) -> str:
    """Append additional fields to the notes as labelled lines."""
    text = notes or ""
    fields = list(fields)
    if fields:
        text += "\n\nAdditional Fields:"
        for name, value in fields:
            text += f"\n{name}: {value or ''}"
    return text


def create_workbook() -> Workbook:
    wb = Workbook()
    wb.remove(wb.active)
    wb.properties.creator = WORKBOOK_CREATOR
    wb.properties.lastModifiedBy = WORKBOOK_CREATOR
    return wb


def escape_control_chars(value: str) -> str:
    """Spell out control characters worksheets cannot hold as ``_xHHHH_``.

    Tab, newline and carriage return are allowed and kept as they are.
    """
    return ILLEGAL_CHARACTERS_RE.sub(lambda m: f"_x{ord(m.group()):04X}_", value)


def _set_text(ws: Worksheet, row: int, column: int, value: str) -> None:
    if not value:
        return
    cell = ws.cell(row=row, column=column, value=escape_control_chars(value))
    # Store as literal text so values like "=1+1" are not written as formulas.
    cell.data_type = "s"


def _write_header(ws: Worksheet, row: int, headers: Sequence[str], widths: Sequence[int]) -> None:
    for col, (header, width) in enumerate(zip(headers, widths), start=1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        ws.column_dimensions[get_column_letter(col)].width = width


def _write_table(
    ws: Worksheet,
    columns: Sequence[tuple[str, str, int]],
    rows: Sequence[ExportRow],
    header_row: int = 1,
) -> None:
    _write_header(ws, header_row, [c[0] for c in columns], [c[2] for c in columns])
    for offset, export_row in enumerate(rows, start=1):
        for col, (header, attr, _width) in enumerate(columns, start=1):
            _set_text(ws, header_row + offset, col, getattr(export_row, attr))
            if attr == "notes":
                ws.cell(row=header_row + offset, column=col).alignment = _WRAP

    last_col = get_column_letter(len(columns))
    ws.auto_filter.ref = f"A{header_row}:{last_col}{header_row + max(len(rows), 1)}"
    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)


def _write_client_banner(ws: Worksheet, group: ClientGroup) -> int:
    """Write the CLIENT INFORMATION block; returns the row for the table header."""
    ws.cell(row=1, column=1, value="CLIENT INFORMATION")
    ws.cell(row=1, column=1).font = _BANNER_FONT
    ws.cell(row=1, column=1).fill = _BANNER_FILL
    info = (
        ("Client:", group.name),
        ("Phone:", group.phone),
        ("Email:", group.email),
        ("Contact Person:", group.contact_person),
    )
    for row, (label, value) in enumerate(info, start=2):
        ws.cell(row=row, column=1, value=label).font = _HEADER_FONT
        _set_text(ws, row, 2, value or "")
    # One blank spacer row after the block.
    return len(info) + 3


def build_single_workbook(rows: Sequence[ExportRow]) -> Workbook:
    wb = create_workbook()
    ws = wb.create_sheet(SINGLE_SHEET_NAME)
    _write_table(ws, CREDENTIAL_COLUMNS, rows)
    return wb


def build_grouped_workbook(groups: Sequence[ClientGroup]) -> Workbook:
    """One sheet per client plus a Summary sheet placed first."""
    wb = create_workbook()
    taken = {SUMMARY_SHEET_NAME.casefold()}

    for group in groups:
        ws = wb.create_sheet(unique_sheet_name(group.name, taken))
        header_row = _write_client_banner(ws, group)
        _write_table(ws, GROUP_COLUMNS, group.rows, header_row=header_row)

    summary = wb.create_sheet(SUMMARY_SHEET_NAME)
    summary.sheet_properties.tabColor = "4F81BD"
    _write_header(summary, 1, [c[0] for c in SUMMARY_COLUMNS], [c[1] for c in SUMMARY_COLUMNS])
    total = 0
    for row, group in enumerate(groups, start=2):
        _set_text(summary, row, 1, group.name)
        summary.cell(row=row, column=2, value=len(group.rows))
        _set_text(summary, row, 3, group.contact_person or "")
        _set_text(summary, row, 4, group.email or "")
        total += len(group.rows)

    total_row = len(groups) + 2
    summary.cell(row=total_row, column=1, value="TOTAL")
    summary.cell(row=total_row, column=2, value=total)
    for col in range(1, len(SUMMARY_COLUMNS) + 1):
        summary.cell(row=total_row, column=col).font = _HEADER_FONT
    for col in (1, 2):
        summary.cell(row=total_row, column=col).fill = _HEADER_FILL

    wb.move_sheet(summary, offset=-(len(wb.sheetnames) - 1))
    wb.active = 0
    return wb


def protect_workbook(wb: Workbook, password: str) -> None:
    """Lock every sheet with ``password``.

    Sorting, filtering and selecting stay allowed; formatting, inserting and
    deleting rows/columns, hyperlinks and pivot tables are denied. This is an
    edit lock, not encryption of the file contents.
    """
    for ws in wb.worksheets:
        protection = ws.protection
        protection.sheet = True
        protection.password = password
        protection.sort = False
        protection.autoFilter = False
        protection.selectLockedCells = False
        protection.selectUnlockedCells = False
        protection.formatCells = True
        protection.formatColumns = True
        protection.formatRows = True
        protection.insertColumns = True
        protection.insertRows = True
        protection.insertHyperlinks = True
        protection.deleteColumns = True
        protection.deleteRows = True
        protection.pivotTables = True
