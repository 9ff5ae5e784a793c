from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping
from urllib.parse import urlencode


@dataclass(frozen=True)
class Window:
    start: int
    end: int
    limit: int
    total: int

    @property
    def at_start(self) -> bool:
        return self.start == 0

    @property
    def at_end(self) -> bool:
        return self.end >= self.total - 1


def compute_window(offset: int | None, limit: int | None, total: int) -> Window:
    start = offset or 0
    if limit is None:
        return Window(start=start, end=total - 1, limit=total, total=total)
    return Window(start=start, end=min(start + limit, total) - 1, limit=limit, total=total)


def relation_offsets(window: Window) -> dict[str, int]:
    """Offset of every link relation that applies to ``window``."""
    per = max(window.limit, 1)
    offsets: dict[str, int] = {}
    if not window.at_start:
        offsets["first"] = 0
        offsets["previous"] = max(window.start - per, 0)
    if not window.at_end:
        offsets["next"] = window.end + 1
        offsets["last"] = max(window.total - per, 0)
    return offsets


def _pairs(params: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> list[tuple[str, str]]:
    multi_items = getattr(params, "multi_items", None)
    if multi_items is not None:
        items = multi_items()
    elif isinstance(params, Mapping):
        items = list(params.items())
    else:
        items = list(params)
    return [(str(key), "" if value is None else str(value)) for key, value in items]


def rewrite_query(params: Mapping[str, Any] | Iterable[tuple[str, Any]], offset: int, limit: int) -> str:
    """Caller's query string with offset and limit replaced in place.

    Parameter order and unknown parameters survive untouched; offset and
    limit are appended when the caller did not send them.
    """
    rewritten: list[tuple[str, str]] = []
    seen: set[str] = set()
    for key, value in _pairs(params):
        if key in ("offset", "limit"):
            if key in seen:
                continue
            seen.add(key)
            value = str(offset if key == "offset" else limit)
        rewritten.append((key, value))
    if "offset" not in seen:
        rewritten.append(("offset", str(offset)))
    if "limit" not in seen:
        rewritten.append(("limit", str(limit)))
    return urlencode(rewritten)


def build_link_relations(
    endpoint: str,
    params: Mapping[str, Any] | Iterable[tuple[str, Any]],
    window: Window,
) -> dict[str, str]:
    pairs = _pairs(params)
    return {
        rel: f"{endpoint}?{rewrite_query(pairs, offset, window.limit)}"
        for rel, offset in relation_offsets(window).items()
    }
