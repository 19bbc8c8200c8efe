"""
Snapshot I/O - JSON snapshots and spreadsheet import/export

JSON is the engine's own exchange format: snapshot_to_json() output is
canonical (sorted keys, formatting entries ordered by cell), so
snapshot_to_json(snapshot_from_json(text)) == text for any text it produced.

Spreadsheet exchange:
- export_xlsx() writes a "Data" sheet (header row of column titles) and a
  "ColumnMetadata" sheet (ColumnId, Title, Type, Key) so types survive a
  round trip. Cell formatting is carried over as fonts and fills.
- import_xlsx() uses ColumnMetadata when present and validates its types,
  otherwise derives text columns from the header row.
- export_csv()/import_csv() carry values only.
"""

import csv
import io
import json
import re
import uuid
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

from task_grid.models import (
    RESERVED_KEYS,
    CellFormatting,
    CellIdentifier,
    Column,
    ColumnType,
    EditorSnapshot,
    Priority,
    Status,
    Task,
)
from task_grid.utils.exceptions import MissingDependencyError, SnapshotError
from task_grid.utils.logger import get_logger

logger = get_logger(__name__)

DATA_SHEET = "Data"
METADATA_SHEET = "ColumnMetadata"
METADATA_HEADERS = ("ColumnId", "Title", "Type", "Key")

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")

PathLike = Union[str, Path]


@dataclass
class ImportResult:
    """
    Outcome of a spreadsheet import.

    Attributes:
        is_valid: True when no errors were found
        errors: Human-readable problems
        snapshot: Imported document (None when nothing could be read)
    """
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    snapshot: Optional[EditorSnapshot] = None


# ============================================================================
# JSON
# ============================================================================

def snapshot_to_json(snapshot: EditorSnapshot, indent: Optional[int] = None) -> str:
    data = snapshot.to_dict()
    data["formatting"] = sorted(data["formatting"], key=lambda e: (e["taskId"], e["columnId"]))
    return json.dumps(data, sort_keys=True, indent=indent, ensure_ascii=False)


def snapshot_from_json(text: str) -> EditorSnapshot:
    """
    Raises:
        SnapshotError: text is not a snapshot document
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"invalid JSON ({e.msg})", source="json", original_error=e) from e
    if not isinstance(data, dict):
        raise SnapshotError("snapshot document must be a JSON object", source="json")
    try:
        return EditorSnapshot.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotError(f"malformed snapshot ({e})", source="json", original_error=e) from e


def save_snapshot(snapshot: EditorSnapshot, path: PathLike) -> Path:
    path = Path(path)
    try:
        path.write_text(snapshot_to_json(snapshot, indent=2), encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"cannot write {path}", source=str(path), original_error=e) from e
    logger.info(f"Saved snapshot to {path}")
    return path


def load_snapshot(path: PathLike) -> EditorSnapshot:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"cannot read {path}", source=str(path), original_error=e) from e
    return snapshot_from_json(text)


# ============================================================================
# Shared import helpers
# ============================================================================

def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def columns_from_headers(headers: Sequence[str]) -> List[Column]:
    """Text columns for a header row; ids are lower-cased titles with spaces as "_"."""
    columns: List[Column] = []
    seen = set(RESERVED_KEYS)
    for title in headers:
        column_id = re.sub(r"\s+", "_", title.strip().lower()) or f"column_{len(columns) + 1}"
        base, suffix = column_id, 2
        while column_id in seen:
            column_id = f"{base}_{suffix}"
            suffix += 1
        seen.add(column_id)
        columns.append(Column(id=column_id, title=title, type=ColumnType.TEXT))
    return columns


def _rows_to_tasks(
    records: Sequence[Sequence[str]],
    columns: Sequence[Column],
    positions: Sequence[int],
) -> List[Task]:
    """Column i takes its values from record position ``positions[i]`` (-1: no cell)."""
    tasks = []
    for record in records:
        task = Task(
            id=str(uuid.uuid4()),
            status=Status.TO_DO.value,
            priority=Priority.MEDIUM.value,
        )
        tasks.append(task.with_values({
            column.key: record[position] if 0 <= position < len(record) else ""
            for column, position in zip(columns, positions)
        }))
    return tasks


def _records(width: int, rows: Sequence[Sequence[Any]]) -> List[List[str]]:
    """Non-blank data rows as text, padded to ``width`` cells."""
    records = []
    for row in rows:
        values = [_cell_text(v) for v in row]
        if not any(v.strip() for v in values):
            continue
        values += [""] * (width - len(values))
        records.append(values)
    return records


def _header_positions(headers: Sequence[str]) -> List[int]:
    return [i for i, header in enumerate(headers) if header]


# ============================================================================
# Excel
# ============================================================================

def _require_openpyxl():
    try:
        import openpyxl
    except ImportError:
        raise MissingDependencyError(
            package_name="openpyxl",
            install_command="pip install openpyxl",
            purpose="Excel import/export"
        )
    return openpyxl


def _excel_color(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    match = _HEX_COLOR.match(value.strip())
    return f"FF{match.group(1).upper()}" if match else None


def _apply_cell_style(cell, formatting: CellFormatting) -> None:
    from openpyxl.styles import Alignment, Font, PatternFill

    font_color = _excel_color(formatting.text_color)
    bold = formatting.font_weight == "bold" or bool(formatting.is_header)
    italic = formatting.font_style == "italic"
    underline = "single" if formatting.text_decoration == "underline" else None
    if bold or italic or underline or font_color:
        cell.font = Font(bold=bold, italic=italic, underline=underline, color=font_color)

    fill_color = _excel_color(formatting.background_color)
    if fill_color:
        cell.fill = PatternFill(start_color=fill_color, end_color=fill_color, fill_type="solid")

    if formatting.text_align in ("left", "center", "right", "justify"):
        cell.alignment = Alignment(horizontal=formatting.text_align)


def export_xlsx(snapshot: EditorSnapshot, path: PathLike) -> Path:
    """
    Write the document to an .xlsx workbook.

    Raises:
        MissingDependencyError: openpyxl is not installed
        SnapshotError: the file cannot be written
    """
    openpyxl = _require_openpyxl()
    from openpyxl.styles import Font

    path = Path(path)
    workbook = openpyxl.Workbook()
    data_sheet = workbook.active
    data_sheet.title = DATA_SHEET

    columns = snapshot.columns
    for col_idx, column in enumerate(columns, 1):
        data_sheet.cell(row=1, column=col_idx, value=column.title).font = Font(bold=True)

    formatting = snapshot.formatting
    for row_idx, task in enumerate(snapshot.tasks, 2):
        for col_idx, column in enumerate(columns, 1):
            cell = data_sheet.cell(row=row_idx, column=col_idx, value=task.get(column.key))
            style = formatting.get(CellIdentifier(task.id, column.id))
            if style is not None:
                _apply_cell_style(cell, style)

    metadata_sheet = workbook.create_sheet(title=METADATA_SHEET)
    metadata_sheet.append(list(METADATA_HEADERS))
    for column in columns:
        metadata_sheet.append([column.id, column.title, column.type.value, column.key])

    try:
        workbook.save(path)
    except OSError as e:
        raise SnapshotError(f"cannot write {path}", source=str(path), original_error=e) from e

    logger.info(f"Exported {len(snapshot.tasks)} rows x {len(columns)} columns to {path}")
    return path


def _metadata_columns(rows: Sequence[Sequence[Any]], errors: List[str]) -> List[Tuple[Column, int]]:
    """Columns described by the metadata sheet, each with its data-sheet ordinal."""
    header = [_cell_text(v) for v in rows[0]] if rows else []
    entries = [dict(zip(header, (_cell_text(v) for v in row))) for row in rows[1:]]
    entries = [e for e in entries if any(e.values())]

    if not all(e.get("ColumnId") and e.get("Title") and e.get("Type") for e in entries):
        errors.append("Column metadata is missing required fields (ColumnId, Title, or Type)")

    valid_types = {t.value for t in ColumnType}
    invalid = [e.get("Title", "?") for e in entries if e.get("Type", "").lower() not in valid_types]
    if invalid:
        errors.append(f"Invalid column types found: {', '.join(invalid)}")

    columns: List[Tuple[Column, int]] = []
    seen_ids, seen_keys = set(), set(RESERVED_KEYS)
    for ordinal, entry in enumerate(entries):
        if not entry.get("ColumnId") or entry.get("Type", "").lower() not in valid_types:
            continue
        key = entry.get("Key") or entry["ColumnId"]
        if key in RESERVED_KEYS:
            errors.append(f"Column key '{key}' is reserved for the row id")
            continue
        if entry["ColumnId"] in seen_ids or key in seen_keys:
            errors.append(f"Duplicate column in metadata: {entry['ColumnId']}")
            continue
        seen_ids.add(entry["ColumnId"])
        seen_keys.add(key)
        columns.append((Column(
            id=entry["ColumnId"],
            title=entry.get("Title") or entry["ColumnId"],
            key=key,
            type=ColumnType(entry["Type"].lower()),
        ), ordinal))
    return columns


def import_xlsx(path: PathLike) -> ImportResult:
    """
    Read a workbook written by export_xlsx() or any single-sheet table.

    Values are matched to columns by position, so repeated header titles
    keep their own values.

    Raises:
        MissingDependencyError: openpyxl is not installed
        SnapshotError: the file cannot be opened as a workbook
    """
    openpyxl = _require_openpyxl()
    from openpyxl.utils.exceptions import InvalidFileException

    path = Path(path)
    try:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except (OSError, ValueError, KeyError, zipfile.BadZipFile, InvalidFileException) as e:
        raise SnapshotError(f"cannot open workbook {path}", source=str(path), original_error=e) from e

    try:
        sheet_names = workbook.sheetnames
        data_rows = list(workbook[sheet_names[0]].iter_rows(values_only=True))
        metadata_rows = []
        if len(sheet_names) > 1 and sheet_names[1] == METADATA_SHEET:
            metadata_rows = list(workbook[sheet_names[1]].iter_rows(values_only=True))
    finally:
        workbook.close()

    errors: List[str] = []
    headers = [_cell_text(v) for v in data_rows[0]] if data_rows else []
    records = _records(len(headers), data_rows[1:])
    if not records:
        return ImportResult(is_valid=False, errors=["No data found in the Excel file"])

    header_positions = _header_positions(headers)
    if metadata_rows:
        described = _metadata_columns(metadata_rows, errors)
        columns = [column for column, _ in described]
        positions = [
            header_positions[ordinal] if ordinal < len(header_positions) else -1
            for _, ordinal in described
        ]
    else:
        columns = columns_from_headers([headers[i] for i in header_positions])
        positions = header_positions

    tasks = _rows_to_tasks(records, columns, positions)
    logger.info(f"Imported {len(tasks)} rows x {len(columns)} columns from {path}")
    return ImportResult(
        is_valid=not errors,
        errors=errors,
        snapshot=EditorSnapshot(tasks=tuple(tasks), columns=tuple(columns)),
    )


# ============================================================================
# CSV
# ============================================================================

def export_csv(snapshot: EditorSnapshot, path: Optional[PathLike] = None) -> str:
    """Values only, header row of column titles. Written to ``path`` when given."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([column.title for column in snapshot.columns])
    for task in snapshot.tasks:
        writer.writerow([task.get(column.key) for column in snapshot.columns])
    text = buffer.getvalue()

    if path is not None:
        try:
            Path(path).write_text(text, encoding="utf-8", newline="")
        except OSError as e:
            raise SnapshotError(f"cannot write {path}", source=str(path), original_error=e) from e
        logger.info(f"Exported {len(snapshot.tasks)} rows to {path}")
    return text


def import_csv_text(text: str) -> ImportResult:
    rows = list(csv.reader(io.StringIO(text.lstrip("\ufeff"))))
    headers = [h.strip() for h in rows[0]] if rows else []
    records = _records(len(headers), rows[1:])
    if not records:
        return ImportResult(is_valid=False, errors=["No data found in the CSV file"])

    positions = _header_positions(headers)
    columns = columns_from_headers([headers[i] for i in positions])
    tasks = _rows_to_tasks(records, columns, positions)
    return ImportResult(
        is_valid=True,
        snapshot=EditorSnapshot(tasks=tuple(tasks), columns=tuple(columns)),
    )


def import_csv(path: PathLike) -> ImportResult:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotError(f"cannot read {path}", source=str(path), original_error=e) from e
    return import_csv_text(text)
