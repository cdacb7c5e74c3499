"""Tests for the service layer."""

from datetime import date, timedelta

import pytest

from patent_vault.models import Patent, PatentStatus, PatentType
from patent_vault.service import current_view, get_dashboard_stats
from patent_vault.store import PatentStore

TODAY = date(2026, 2, 24)


def make_patents() -> list[Patent]:
    return [
        Patent(id="1", name="Charger", country="TW", status=PatentStatus.Active,
               type=PatentType.Invention, annuity_date=TODAY + timedelta(days=10)),
        Patent(id="2", name="Heat Sink", country="TW", status=PatentStatus.Expired,
               type=PatentType.Utility, annuity_date=TODAY + timedelta(days=10)),
        Patent(id="3", name="Hinge", country="JP", status=PatentStatus.Active,
               type=PatentType.Design, annuity_date=TODAY + timedelta(days=120)),
        Patent(id="4", name="Lamp", country="", status=PatentStatus.UnderExamination),
    ]


def test_dashboard_stats():
    stats = get_dashboard_stats(make_patents(), TODAY)

    assert stats.total == 4
    assert stats.by_status == {"Active": 2, "Expired": 1, "UnderExamination": 1}
    assert stats.by_type == {"Invention": 2, "Utility": 1, "Design": 1}
    assert stats.by_country == {"TW": 2, "JP": 1, "未填": 1}
    assert stats.alert_count == 1
    assert [p.id for p in stats.upcoming] == ["1"]


def test_dashboard_stats_empty():
    stats = get_dashboard_stats([], TODAY)
    assert stats.total == 0
    assert stats.alert_count == 0
    assert stats.by_status["Active"] == 0


def test_stats_to_dict():
    data = get_dashboard_stats(make_patents(), TODAY).to_dict()
    assert data["alert_count"] == 1
    assert data["upcoming"][0]["id"] == "1"


def test_current_view():
    store = PatentStore(make_patents())
    assert [p.id for p in current_view(store, "", "ALL")] == ["1", "2", "3", "4"]
    assert [p.id for p in current_view(store, "TW", None)] == ["1", "2"]
    assert [p.id for p in current_view(store, "", "Active")] == ["1", "3"]


def test_current_view_invalid_status():
    with pytest.raises(ValueError):
        current_view(PatentStore(), "", "Sleeping")
