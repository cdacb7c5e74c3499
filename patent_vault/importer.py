"""Importing patents: duplicate filtering and spreadsheet parsing."""

import logging
import zipfile
from dataclasses import dataclass, field, replace
from typing import BinaryIO

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .exporter import EXPORT_COLUMNS
from .models import FIELD_ALIASES, Patent, new_patent_id
from .store import PatentStore

logger = logging.getLogger(__name__)


class SpreadsheetImportError(ValueError):
    """Raised when an uploaded file cannot be read as a patent sheet."""


@dataclass
class ImportResult:
    accepted: list[Patent] = field(default_factory=list)
    duplicate_count: int = 0

    @property
    def added_count(self) -> int:
        return len(self.accepted)

    @property
    def total(self) -> int:
        return self.added_count + self.duplicate_count

    @property
    def message(self) -> str:
        """User-facing summary of the import."""
        if not self.accepted:
            if self.total == 1:
                return "此專利已存在 (申請號或名稱重複)。"
            return "所有匯入的資料均已存在，未新增任何項目。"
        if self.duplicate_count:
            return (
                f"系統已自動過濾 {self.duplicate_count} 筆重複資料，"
                f"並成功匯入 {self.added_count} 筆新資料。"
            )
        return f"成功匯入 {self.added_count} 筆新資料。"


def _key(value) -> str:
    return str(value or "").strip()


def deduplicate(existing: list[Patent], incoming: list[Patent]) -> ImportResult:
    """Split an import batch into accepted records and a duplicate count.

    Records are identified by trimmed application number when they have one,
    otherwise by trimmed name. Keys are checked against the stored records and
    against records accepted earlier in the same batch. A record with neither
    key is always accepted.
    """
    app_numbers = {_key(p.app_number) for p in existing if _key(p.app_number)}
    names = {_key(p.name) for p in existing if _key(p.name)}

    result = ImportResult()
    for patent in incoming:
        app_number = _key(patent.app_number)
        name = _key(patent.name)

        if app_number:
            if app_number in app_numbers:
                logger.debug(f"Skipping duplicate application number {app_number}")
                result.duplicate_count += 1
                continue
            app_numbers.add(app_number)
        elif name:
            if name in names:
                logger.debug(f"Skipping duplicate name {name!r}")
                result.duplicate_count += 1
                continue
            names.add(name)

        result.accepted.append(patent)

    return result


def import_patents(store: PatentStore, incoming: Patent | list[Patent]) -> ImportResult:
    """Deduplicate a record or batch against the store and prepend the survivors.

    The duplicate check and the insert run in one store transaction. The store
    is left untouched when every record is a duplicate.
    """
    batch = incoming if isinstance(incoming, list) else [incoming]

    with store.transaction():
        existing = store.list()
        result = deduplicate(existing, batch)

        if not result.accepted:
            logger.info(f"Import rejected: all {result.duplicate_count} records already exist")
            return result

        # Imported ids come from outside; keep store ids unique
        taken = {str(p.id) for p in existing}
        unique = []
        for patent in result.accepted:
            if str(patent.id) in taken:
                patent = replace(patent, id=new_patent_id())
            taken.add(str(patent.id))
            unique.append(patent)
        result.accepted = unique

        store.prepend_many(result.accepted)

    logger.info(
        f"Imported {result.added_count} patents, skipped {result.duplicate_count} duplicates"
    )
    return result


def _header_map() -> dict[str, str]:
    headers = {label: attr for label, attr, _ in EXPORT_COLUMNS}
    for alias, attr in FIELD_ALIASES.items():
        headers[alias] = attr
        headers[attr] = attr
    return headers


HEADER_MAP = _header_map()


def read_spreadsheet(stream: BinaryIO, warnings: list[str] | None = None) -> list[Patent]:
    """Read patents from the first sheet of an .xlsx workbook.

    The first row holds headers; export labels, camelCase API keys and field
    names are all recognised. Each non-blank row becomes one record. A row
    whose annuity date cannot be read is kept without that date, and a note
    is appended to ``warnings`` when a list is given.

    Raises:
        SpreadsheetImportError: If the file is not a readable workbook.
    """
    try:
        workbook = load_workbook(stream, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise SpreadsheetImportError(f"Could not read spreadsheet: {e}") from e

    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return []

        columns = [HEADER_MAP.get(str(h).strip()) if h is not None else None for h in header_row]
        if not any(columns):
            raise SpreadsheetImportError("No recognised patent columns in header row")

        patents = []
        for row_number, row in enumerate(rows, start=2):
            data = {}
            for attr, value in zip(columns, row):
                if attr and value not in (None, ""):
                    data[attr] = value
            if not data:
                continue
            try:
                patent = Patent.from_dict(data, require_name=False)
            except ValueError as e:
                message = f"Row {row_number}: {e}"
                logger.warning(f"Spreadsheet import: {message}")
                if warnings is not None:
                    warnings.append(message)
                data.pop("annuity_date", None)
                patent = Patent.from_dict(data, require_name=False)
            patents.append(patent)
    finally:
        workbook.close()

    logger.info(f"Read {len(patents)} patents from spreadsheet")
    return patents
