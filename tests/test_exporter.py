"""Tests for spreadsheet export."""

from datetime import date

from openpyxl import load_workbook

from patent_vault.exporter import (
    EXPORT_COLUMNS,
    SHEET_TITLE,
    export_filename,
    export_rows,
    write_workbook,
)
from patent_vault.models import Patent, PatentStatus, PatentType


def make_patent(**kwargs) -> Patent:
    defaults = {
        "name": "無線充電裝置",
        "patentee": "Acme",
        "country": "TW",
        "status": PatentStatus.Active,
        "type": PatentType.Design,
        "app_number": "112001",
        "annuity_date": date(2026, 6, 30),
        "annuity_year": 4,
    }
    defaults.update(kwargs)
    return Patent(**defaults)


def test_column_order_is_fixed():
    labels = [label for label, _, _ in EXPORT_COLUMNS]
    assert labels[0] == "專利名稱"
    assert labels[-1] == "連結"
    assert len(labels) == 15
    row = export_rows([make_patent()])[0]
    assert list(row.keys()) == labels


def test_row_values():
    row = export_rows([make_patent(notification_emails=["a@x.com", "b@x.com"])])[0]
    assert row["專利名稱"] == "無線充電裝置"
    assert row["狀態"] == "存續中"
    assert row["類型"] == "設計"
    assert row["年費到期日"] == "2026-06-30"
    assert row["年費有效年次"] == 4
    assert row["通知信箱"] == "a@x.com, b@x.com"


def test_missing_optional_fields_become_empty_strings():
    rows = export_rows([Patent(name="Bare", annuity_date=None)])
    for value in rows[0].values():
        assert value is not None
    assert rows[0]["年費到期日"] == ""
    assert rows[0]["通知信箱"] == ""
    assert rows[0]["連結"] == ""


def test_row_count_matches_input():
    patents = [make_patent(app_number=str(i)) for i in range(5)]
    assert len(export_rows(patents)) == 5
    assert export_rows([]) == []


def test_export_filename():
    assert export_filename(date(2026, 2, 24)) == "PatentVault_Export_2026-02-24.xlsx"


def test_write_workbook_in_memory():
    output = write_workbook([make_patent(), make_patent(name="散熱模組", app_number="112002")])
    wb = load_workbook(output)
    ws = wb.active

    assert ws.title == SHEET_TITLE
    assert [c.value for c in ws[1]] == [label for label, _, _ in EXPORT_COLUMNS]
    assert ws.max_row == 3
    assert ws["A3"].value == "散熱模組"
    assert ws.column_dimensions["A"].width == 30
    assert ws.column_dimensions["C"].width == 10


def test_write_workbook_to_file(tmp_path):
    path = tmp_path / "out.xlsx"
    result = write_workbook([make_patent()], str(path))
    assert result == str(path)
    assert path.exists()
