from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from pymongo import ASCENDING, DESCENDING

from pagebook.src.modules.page_query import PageQuery
from pagebook.src.modules.pagination import Window, compute_window
from pagebook.src.objects.pages import Page
from pagebook.src.objects.permissions import is_admin, level_for, readable_levels
from settings import settings

logger = logging.getLogger(__name__)

CURRENT_READ_FIELD = "revisions.0.permissions.read"
CURRENT_TITLE_FIELD = "revisions.0.content.title"
RELEVANCE = "relevance"
DEFAULT_SORT = [("created", ASCENDING)]

SORT_FIELDS = {
    "created": "created",
    "updated": "updated",
    "alphabetical": CURRENT_TITLE_FIELD,
}


class PageStorage(Protocol):
    def find(
        self,
        filter: dict[str, Any],
        sort: list[tuple[str, int]] | str,
        offset: int,
        limit: int,
    ) -> tuple[list[Page], int]: ...

    def count_trashed(self) -> int: ...

    def load_by_id(self, page_id: str) -> Page | None: ...

    def load_by_path(self, path: str) -> Page | None: ...

    def save(self, page: Page) -> str: ...


@dataclass
class PageSearchResult:
    total: int
    start: int
    end: int
    limit: int
    pages: list[Page] = field(default_factory=list)

    @property
    def window(self) -> Window:
        return Window(start=self.start, end=self.end, limit=self.limit, total=self.total)


def get_limit(query: PageQuery | None = None) -> int:
    requested = query.limit if query is not None and query.limit is not None else settings.default_query_limit
    return max(1, min(int(requested), int(settings.max_query_limit)))


def get_offset(query: PageQuery | None = None) -> int:
    if query is None or query.offset is None:
        return 0
    return max(0, int(query.offset))


def get_revisions_subquery(query: PageQuery) -> dict[str, Any]:
    bounds = query.revisions
    if bounds is None or (bounds.min is None and bounds.max is None):
        return {}
    subquery: dict[str, Any] = {}
    if bounds.max is not None:
        subquery[f"revisions.{max(bounds.max, 0)}"] = {"$exists": False}
    if bounds.min is not None and bounds.min > 0:
        subquery[f"revisions.{bounds.min - 1}"] = {"$exists": True}
    return subquery


def get_time_subquery(query: PageQuery, name: str) -> dict[str, Any]:
    bounds = getattr(query, name)
    if bounds is None:
        return {}
    clause: dict[str, Any] = {}
    if bounds.before is not None:
        clause["$lte"] = bounds.before
    if bounds.after is not None:
        clause["$gte"] = bounds.after
    return {name: clause} if clause else {}


def get_text_subquery(query: PageQuery) -> dict[str, Any]:
    if query.text is None:
        return {}
    return {"$text": {"$search": query.text, "$caseSensitive": False, "$diacriticSensitive": False}}


def get_permission_subquery(requester: Any = None) -> dict[str, Any]:
    if is_admin(requester):
        return {}
    levels = [level.value for level in readable_levels(level_for(requester))]
    if len(levels) == 1:
        return {CURRENT_READ_FIELD: levels[0]}
    return {CURRENT_READ_FIELD: {"$in": levels}}


def get_trashed_subquery(query: PageQuery, requester: Any = None) -> dict[str, Any]:
    # non-admins asking for trashed pages get the untrashed scope, not an error
    if query.trashed and is_admin(requester):
        return {"trashed": {"$exists": True, "$ne": None}}
    return {"trashed": {"$exists": False}}


def build_query(query: PageQuery, requester: Any = None) -> dict[str, Any]:
    subqueries = [
        get_revisions_subquery(query),
        get_permission_subquery(requester),
        get_trashed_subquery(query, requester),
        get_text_subquery(query),
        get_time_subquery(query, "created"),
        get_time_subquery(query, "updated"),
    ]
    built: dict[str, Any] = {}
    for subquery in subqueries:
        built.update(subquery)
    return built


def resolve_sort(query: PageQuery) -> list[tuple[str, int]] | str:
    """Storage sort order for a query, or ``RELEVANCE`` for text-score ordering."""
    sort = query.sort
    if query.text is not None and sort in (None, RELEVANCE):
        return RELEVANCE
    if sort == RELEVANCE:
        sort = "alphabetical"
    if sort is None:
        return list(DEFAULT_SORT)
    direction = DESCENDING if sort.startswith("-") else ASCENDING
    return [(SORT_FIELDS[sort.lstrip("-")], direction)]


def search(query: PageQuery, storage: PageStorage, requester: Any = None) -> PageSearchResult:
    offset = get_offset(query)
    limit = get_limit(query)
    built = build_query(query, requester)
    sort = resolve_sort(query)
    logger.debug("page search filter=%s sort=%s offset=%s limit=%s", built, sort, offset, limit)
    pages, total = storage.find(built, sort, offset, limit)
    window = compute_window(offset, limit, total)
    return PageSearchResult(total=total, start=window.start, end=window.end, limit=limit, pages=pages)
