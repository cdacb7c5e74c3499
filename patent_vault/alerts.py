"""Annuity deadline alerts."""

from datetime import date

from .models import Patent, PatentStatus

ALERT_WINDOW_DAYS = 90


def is_annuity_alert(patent: Patent, today: date, window_days: int = ALERT_WINDOW_DAYS) -> bool:
    """True if an active patent's annuity falls due within the window.

    A deadline of today (or earlier) does not count; a deadline exactly
    ``window_days`` ahead does.
    """
    if patent.status != PatentStatus.Active:
        return False
    days = patent.days_until_annuity(today)
    if days is None:
        return False
    return 0 < days <= window_days


def upcoming_annuities(
    patents: list[Patent],
    today: date | None = None,
    window_days: int = ALERT_WINDOW_DAYS,
) -> list[Patent]:
    """Patents with an alert, soonest deadline first."""
    today = today or date.today()
    due = [p for p in patents if is_annuity_alert(p, today, window_days)]
    due.sort(key=lambda p: p.annuity_date)
    return due


def count_annuity_alerts(
    patents: list[Patent],
    today: date | None = None,
    window_days: int = ALERT_WINDOW_DAYS,
) -> int:
    today = today or date.today()
    return sum(1 for p in patents if is_annuity_alert(p, today, window_days))
