"""Spreadsheet export of the patent list."""

import io
import logging
from datetime import date
from enum import Enum

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from .models import Patent

logger = logging.getLogger(__name__)

SHEET_TITLE = "專利清單"

# (header label, Patent attribute, column width)
EXPORT_COLUMNS = [
    ("專利名稱", "name", 30),
    ("專利權人", "patentee", 20),
    ("申請國家", "country", 10),
    ("狀態", "status", 10),
    ("類型", "type", 10),
    ("申請號", "app_number", 20),
    ("公開/公告號", "pub_number", 20),
    ("申請日", "app_date", 12),
    ("公開/公告日", "pub_date", 12),
    ("專利期間", "duration", 25),
    ("年費到期日", "annuity_date", 12),
    ("年費有效年次", "annuity_year", 12),
    ("通知信箱", "notification_emails", 30),
    ("發明人", "inventor", 20),
    ("連結", "link", 30),
]


def export_value(value) -> str | int:
    """Normalize a field for the sheet: never None, enums as labels, dates as ISO."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return value


def export_rows(patents: list[Patent]) -> list[dict]:
    """One flat row per patent, keyed by header label in column order."""
    return [
        {label: export_value(getattr(p, attr, None)) for label, attr, _ in EXPORT_COLUMNS}
        for p in patents
    ]


def export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"PatentVault_Export_{today.isoformat()}.xlsx"


def write_workbook(patents: list[Patent], file_path: str | None = None) -> io.BytesIO | str:
    """Write patents to an .xlsx workbook.

    Args:
        patents: Records to export, in display order.
        file_path: Optional path to save to. If None, returns an in-memory buffer.

    Returns:
        BytesIO positioned at the start if no file_path, otherwise the path written to.
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    sheet.append([label for label, _, _ in EXPORT_COLUMNS])
    for row in export_rows(patents):
        sheet.append(list(row.values()))

    for index, (_, _, width) in enumerate(EXPORT_COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    if file_path is not None:
        workbook.save(file_path)
        logger.info(f"Exported {len(patents)} patents to {file_path}")
        return file_path

    output = io.BytesIO()
    workbook.save(output)
    output.seek(0)
    logger.info(f"Exported {len(patents)} patents")
    return output
