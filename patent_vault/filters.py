"""Search and status filtering for the patent list."""

from .models import Patent, PatentStatus

# Query-string value meaning "no status filter"
ALL_STATUSES = "ALL"

SEARCH_FIELDS = ("name", "app_number", "pub_number", "country", "patentee")


def parse_status_filter(value) -> PatentStatus | None:
    """Turn a query-string status into a filter value. Blank or ALL means no filter."""
    if value is None or str(value).strip() in ("", ALL_STATUSES):
        return None
    return PatentStatus.parse(value)


def matches_search(patent: Patent, search_term: str) -> bool:
    """Case-sensitive substring match against the searchable fields.

    An empty term matches every record.
    """
    if not search_term:
        return True
    for attr in SEARCH_FIELDS:
        value = getattr(patent, attr) or ""
        if search_term in value:
            return True
    return False


def filter_patents(
    patents: list[Patent],
    search_term: str = "",
    status: PatentStatus | None = None,
) -> list[Patent]:
    """Return the records matching both the status filter and the search term.

    Args:
        patents: Records in store order.
        search_term: Literal substring looked up in name, application number,
            publication number, country and patentee.
        status: Status to keep, or None for all statuses.

    Returns:
        Matching records, in the same order as ``patents``.
    """
    return [
        p for p in patents
        if (status is None or p.status == status) and matches_search(p, search_term)
    ]
