"""Data models for the patent portfolio."""

import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from dateutil import parser as date_parser

# Spreadsheet serial day 0 (Excel / Google Sheets convention)
SERIAL_EPOCH = date(1899, 12, 30)


class _LabelledEnum(str, Enum):
    """Enum whose value is the display label shown in the UI and exports."""

    @classmethod
    def parse(cls, value):
        """Accept a member, its name (any case) or its display label."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip()
        for member in cls:
            if text == member.value or text.lower() == member.name.lower():
                return member
        raise ValueError(f"Unknown {cls.__name__}: {value!r}")

    def __str__(self) -> str:
        return self.value


class PatentStatus(_LabelledEnum):
    Active = "存續中"
    Expired = "已屆期"
    UnderExamination = "審查中"


class PatentType(_LabelledEnum):
    Invention = "發明"
    Utility = "新型"
    Design = "設計"


def new_patent_id() -> str:
    return uuid.uuid4().hex[:12]


def parse_date(value) -> date | None:
    """Best-effort conversion of user, spreadsheet or AI input to a date.

    Accepts dates, datetimes, ISO or slash-separated strings and spreadsheet
    serial numbers. Blank input gives None; unparseable text raises ValueError.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a date: {value!r}")
    if isinstance(value, (int, float)):
        return SERIAL_EPOCH + timedelta(days=int(value))

    text = str(value).strip()
    if not text:
        return None
    if text.isdigit() and len(text) <= 6:
        return SERIAL_EPOCH + timedelta(days=int(text))
    try:
        return date_parser.parse(text, yearfirst=True).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Not a date: {value!r}") from e


# camelCase keys used by the JSON API and the AI extraction schema
FIELD_ALIASES = {
    "id": "id",
    "name": "name",
    "patentee": "patentee",
    "country": "country",
    "status": "status",
    "type": "type",
    "appNumber": "app_number",
    "pubNumber": "pub_number",
    "appDate": "app_date",
    "pubDate": "pub_date",
    "duration": "duration",
    "annuityDate": "annuity_date",
    "annuityYear": "annuity_year",
    "inventor": "inventor",
    "abstract": "abstract",
    "link": "link",
    "notificationEmails": "notification_emails",
}


@dataclass
class Patent:
    name: str
    id: str = field(default_factory=new_patent_id)
    patentee: str = ""
    country: str = ""
    status: PatentStatus = PatentStatus.Active
    type: PatentType = PatentType.Invention
    app_number: str = ""
    pub_number: str = ""
    app_date: str = ""
    pub_date: str = ""
    duration: str = ""
    annuity_date: date | None = None
    annuity_year: int = 1
    inventor: str = ""
    abstract: str = ""
    link: str = ""
    notification_emails: list[str] = field(default_factory=list)

    def days_until_annuity(self, today: date | None = None) -> int | None:
        """Whole days until the annuity deadline, rounded up. None without a date."""
        if self.annuity_date is None:
            return None
        today = today or date.today()
        return math.ceil((self.annuity_date - today) / timedelta(days=1))

    @classmethod
    def from_dict(cls, data: dict, require_name: bool = True) -> "Patent":
        """Build a record from an API or AI payload (camelCase or snake_case keys).

        Raises ValueError for a blank name (unless require_name is False) or
        an unparseable annuity date.
        """
        values = {}
        for key, value in data.items():
            attr = FIELD_ALIASES.get(key, key)
            if attr in cls.__dataclass_fields__:
                values[attr] = value

        name = str(values.get("name") or "").strip()
        if require_name and not name:
            raise ValueError("Patent name is required")
        values["name"] = name

        if values.get("id") in (None, ""):
            values.pop("id", None)
        else:
            values["id"] = str(values["id"])

        try:
            values["status"] = PatentStatus.parse(values.get("status"))
        except ValueError:
            values["status"] = PatentStatus.Active
        try:
            values["type"] = PatentType.parse(values.get("type"))
        except ValueError:
            values["type"] = PatentType.Invention

        values["annuity_date"] = parse_date(values.get("annuity_date"))
        values["annuity_year"] = _to_int(values.get("annuity_year"), default=1)
        values["notification_emails"] = split_emails(values.get("notification_emails"))

        for attr in ("patentee", "country", "app_number", "pub_number", "app_date",
                     "pub_date", "duration", "inventor", "abstract", "link"):
            if attr in values:
                values[attr] = _to_text(values[attr])

        return cls(**values)

    def to_dict(self) -> dict:
        """Serialize to the camelCase JSON shape used by the API."""
        result = {}
        for key, attr in FIELD_ALIASES.items():
            value = getattr(self, attr)
            if isinstance(value, Enum):
                value = value.name
            elif isinstance(value, date):
                value = value.isoformat()
            elif isinstance(value, list):
                value = list(value)
            result[key] = value
        return result


def split_emails(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.replace(";", ",").split(",")
    return [str(v).strip() for v in value if str(v).strip()]


def _to_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _to_int(value, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default
