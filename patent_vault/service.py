"""Service layer — portfolio logic shared by the dashboard page and the JSON API."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date

from .alerts import ALERT_WINDOW_DAYS, upcoming_annuities
from .filters import filter_patents, parse_status_filter
from .models import Patent, PatentStatus, PatentType
from .store import PatentStore

logger = logging.getLogger(__name__)


@dataclass
class DashboardStats:
    """Counts shown on the dashboard, computed over the current view."""
    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_type: dict[str, int] = field(default_factory=dict)
    by_country: dict[str, int] = field(default_factory=dict)
    alert_count: int = 0
    upcoming: list[Patent] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "by_status": self.by_status,
            "by_type": self.by_type,
            "by_country": self.by_country,
            "alert_count": self.alert_count,
            "upcoming": [p.to_dict() for p in self.upcoming],
        }


def get_dashboard_stats(
    patents: list[Patent],
    today: date | None = None,
    window_days: int = ALERT_WINDOW_DAYS,
) -> DashboardStats:
    """Aggregate counts by status, type and country plus upcoming annuities."""
    today = today or date.today()
    status_counts = Counter(p.status for p in patents)
    type_counts = Counter(p.type for p in patents)
    country_counts = Counter(p.country or "未填" for p in patents)
    upcoming = upcoming_annuities(patents, today, window_days)

    return DashboardStats(
        total=len(patents),
        by_status={s.name: status_counts.get(s, 0) for s in PatentStatus},
        by_type={t.name: type_counts.get(t, 0) for t in PatentType},
        by_country=dict(country_counts.most_common()),
        alert_count=len(upcoming),
        upcoming=upcoming,
    )


def current_view(store: PatentStore, search_term: str = "", status: str | None = None) -> list[Patent]:
    """The filtered list for request parameters (status as query-string value).

    Raises:
        ValueError: If the status is not a known status or "ALL".
    """
    return filter_patents(store.list(), search_term or "", parse_status_filter(status))
