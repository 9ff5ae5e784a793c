from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fastapi import HTTPException

from pagebook.src.objects.attachments import Attachment
from pagebook.src.objects.content import Content, slugify
from pagebook.src.objects.pages import Page
from pagebook.src.objects.permissions import PermissionRule, parse_level
from pagebook.src.objects.revisions import Revision
from pagebook.src.objects.users import EditorRef
from settings import settings


# suffixes the page routes use after a page path
ROUTE_SEGMENTS = ("revisions", "restore")


@dataclass(frozen=True)
class PathValidation:
    is_valid: bool
    reason: str | None = None
    conflict: bool = False


def iso_utc(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value or "")


def normalize_slug(value: str) -> str:
    return slugify(value)


def default_path(title: str) -> str:
    return f"/{normalize_slug(title)}"


def normalize_path(value: Any) -> str:
    """Leading slash, no trailing slash, each segment slugged."""
    raw = str(value or "").strip()
    segments = [normalize_slug(part) for part in raw.split("/")]
    segments = [part for part in segments if part]
    return "/" + "/".join(segments) if segments else ""


def validate_path(path: str, repo: Any, exclude_id: str | None = None) -> PathValidation:
    clean = normalize_path(path)
    if not clean:
        return PathValidation(False, "Path cannot be empty")
    first = clean.lstrip("/").split("/", 1)[0]
    if first in settings.reserved_path_list():
        return PathValidation(False, f"Paths cannot start with /{first}")
    clashing = [part for part in clean.split("/") if part in ROUTE_SEGMENTS]
    if clashing:
        return PathValidation(False, f"Paths cannot contain a /{clashing[0]} segment")
    if repo.path_exists(clean, exclude_id or ""):
        return PathValidation(False, f"The path {clean} is already in use", conflict=True)
    return PathValidation(True)


def resolve_revision(page: Page, raw: Any) -> tuple[int, Revision]:
    total = len(page.revisions)
    if total == 0:
        raise HTTPException(status_code=404, detail="Page has no revisions")
    message = f"Please provide a number between 1 and {total}."
    try:
        number = int(str(raw).strip())
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"{raw} is not a revision number. {message}")
    revision = page.revision_by_number(number)
    if revision is None:
        raise HTTPException(status_code=400, detail=f"This page has no revision #{number}. {message}")
    return number, revision


def _attachment(value: Any, fallback: Attachment | None) -> Attachment | None:
    if value is None:
        return fallback
    if isinstance(value, Attachment):
        return value
    if not isinstance(value, dict):
        raise ValueError("Attachments must be objects")
    return Attachment.from_dict(value)


def revision_from_body(
    body: dict[str, Any],
    editor: EditorRef | None = None,
    base: Revision | None = None,
) -> Revision:
    """Build a revision from a request body.

    Fields the body leaves out carry over from ``base`` when one is given
    (appending to an existing page), otherwise from configured defaults.
    """
    data = body or {}
    try:
        title = data.get("title") if data.get("title") is not None else (base.content.title if base else "")
        text = data.get("body") if data.get("body") is not None else (base.content.body if base else "")
        if data.get("path"):
            path = normalize_path(data.get("path"))
        elif base is not None and data.get("title") is None:
            path = base.content.path
        else:
            path = default_path(title)
        read_default = base.permissions.read if base else parse_level(settings.default_read_permissions)
        write_default = base.permissions.write if base else parse_level(settings.default_write_permissions)
        permissions = PermissionRule(
            read=parse_level(data.get("read"), read_default),
            write=parse_level(data.get("write"), write_default),
        )
        return Revision(
            content=Content(title=str(title), body=str(text), path=path),
            permissions=permissions,
            file=_attachment(data.get("file"), base.file if base else None),
            thumbnail=_attachment(data.get("thumbnail"), base.thumbnail if base else None),
            editor=editor,
            msg=str(data.get("msg") or ""),
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def revision_public(revision: Revision, number: int) -> dict[str, Any]:
    return {
        "number": number,
        "content": revision.content.to_dict(),
        "permissions": revision.permissions.to_dict(),
        "file": revision.file.public_view() if revision.file else None,
        "thumbnail": revision.thumbnail.public_view() if revision.thumbnail else None,
        "editor": revision.editor.public_view() if revision.editor is not None else None,
        "msg": revision.msg,
        "timestamp": iso_utc(revision.timestamp),
    }


def page_public(page: Page) -> dict[str, Any]:
    current = page.current()
    return {
        "id": page.id,
        "path": page.path,
        "revisions": len(page.revisions),
        "created": iso_utc(page.created),
        "updated": iso_utc(page.updated),
        "trashed": iso_utc(page.trashed) if page.trashed else None,
        "current": revision_public(current, len(page.revisions)) if current else None,
    }
