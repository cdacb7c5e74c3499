"""Tests for annuity deadline alerts."""

from datetime import date, timedelta

from freezegun import freeze_time

from patent_vault.alerts import count_annuity_alerts, is_annuity_alert, upcoming_annuities
from patent_vault.models import Patent, PatentStatus

TODAY = date(2026, 2, 24)


def make_patent(days_ahead=None, status=PatentStatus.Active, **kwargs) -> Patent:
    annuity = TODAY + timedelta(days=days_ahead) if days_ahead is not None else None
    return Patent(name=kwargs.pop("name", "P"), status=status, annuity_date=annuity, **kwargs)


def test_window_boundaries():
    assert is_annuity_alert(make_patent(0), TODAY) is False
    assert is_annuity_alert(make_patent(1), TODAY) is True
    assert is_annuity_alert(make_patent(90), TODAY) is True
    assert is_annuity_alert(make_patent(91), TODAY) is False


def test_past_deadline_never_alerts():
    assert is_annuity_alert(make_patent(-5), TODAY) is False


def test_inactive_statuses_never_alert():
    for status in (PatentStatus.Expired, PatentStatus.UnderExamination):
        for days in (1, 30, 90):
            assert is_annuity_alert(make_patent(days, status=status), TODAY) is False


def test_missing_annuity_date_excluded():
    assert is_annuity_alert(make_patent(None), TODAY) is False


def test_count():
    patents = [
        make_patent(30),
        make_patent(0),
        make_patent(91),
        make_patent(45, status=PatentStatus.Expired),
        make_patent(None),
        make_patent(90),
    ]
    assert count_annuity_alerts(patents, TODAY) == 2


def test_custom_window():
    patents = [make_patent(10), make_patent(40)]
    assert count_annuity_alerts(patents, TODAY, window_days=30) == 1


def test_upcoming_sorted_by_deadline():
    patents = [make_patent(60, name="late"), make_patent(5, name="soon"), make_patent(200, name="far")]
    assert [p.name for p in upcoming_annuities(patents, TODAY)] == ["soon", "late"]


@freeze_time("2026-02-24")
def test_defaults_to_today():
    patents = [make_patent(30), make_patent(0)]
    assert count_annuity_alerts(patents) == 1
