from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

SORT_OPTIONS = (
    "created",
    "-created",
    "updated",
    "-updated",
    "alphabetical",
    "-alphabetical",
    "relevance",
)
FALSE_VALUES = {"false", "0", "no", "off"}


@dataclass
class TimeRange:
    before: datetime | None = None
    after: datetime | None = None


@dataclass
class RevisionRange:
    min: int | None = None
    max: int | None = None


@dataclass
class PageQuery:
    created: TimeRange | None = None
    updated: TimeRange | None = None
    revisions: RevisionRange | None = None
    text: str | None = None
    trashed: bool = False
    limit: int | None = None
    offset: int | None = None
    sort: str | None = None


def _first(params: Mapping[str, Any], key: str) -> Any:
    getlist = getattr(params, "getlist", None)
    if getlist is not None:
        values = getlist(key)
        return values[0] if values else None
    value = params.get(key)
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def parse_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_instant(value: Any) -> datetime | None:
    """Epoch milliseconds or an ISO 8601 string; anything else is None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    millis = parse_int(value)
    if millis is not None:
        try:
            return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _time_range(params: Mapping[str, Any], field: str) -> TimeRange | None:
    before = parse_instant(_first(params, f"{field}-before"))
    after = parse_instant(_first(params, f"{field}-after"))
    if before is None and after is None:
        return None
    return TimeRange(before=before, after=after)


def _revision_range(params: Mapping[str, Any]) -> RevisionRange | None:
    low = parse_int(_first(params, "revisions-minimum"))
    high = parse_int(_first(params, "revisions-maximum"))
    if low is None and high is None:
        return None
    return RevisionRange(min=low, max=high)


def parse_trashed(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in FALSE_VALUES


def parse_sort(value: Any) -> str | None:
    raw = str(value or "").strip()
    return raw if raw in SORT_OPTIONS else None


def parse_page_query(params: Mapping[str, Any]) -> PageQuery:
    """Turn caller-supplied query parameters into a PageQuery.

    Malformed numbers, dates and sort values are dropped rather than
    reported; parameters this function does not know are ignored here and
    survive only in the pagination links.
    """
    query = PageQuery(trashed=parse_trashed(_first(params, "trashed")))
    query.created = _time_range(params, "created")
    query.updated = _time_range(params, "updated")
    query.revisions = _revision_range(params)

    limit = parse_int(_first(params, "limit"))
    if limit is not None and limit > 0:
        query.limit = limit
    offset = parse_int(_first(params, "offset"))
    if offset is not None and offset >= 0:
        query.offset = offset

    query.sort = parse_sort(_first(params, "sort"))

    text = _first(params, "text")
    if text is not None and str(text).strip():
        query.text = str(text).strip()
    return query
