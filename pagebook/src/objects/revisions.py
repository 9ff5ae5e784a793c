from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from pagebook.src.objects.attachments import Attachment
from pagebook.src.objects.content import Content
from pagebook.src.objects.permissions import PermissionRule
from pagebook.src.objects.users import EditorRef, parse_editor


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Any) -> datetime | None:
    """Normalize stored instants: naive values are read as UTC, strings as ISO 8601."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        raise ValueError(f"Not a timestamp: {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Revision:
    """One immutable snapshot of a page.

    Build a new Revision for every change; use ``evolve`` to derive one from
    another with a few fields replaced.
    """

    content: Content
    permissions: PermissionRule = field(default_factory=PermissionRule)
    file: Attachment | None = None
    thumbnail: Attachment | None = None
    editor: EditorRef | None = None
    msg: str = ""
    timestamp: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if isinstance(self.content, dict):
            object.__setattr__(self, "content", Content.from_dict(self.content))
        if self.permissions is None or isinstance(self.permissions, dict):
            object.__setattr__(self, "permissions", PermissionRule.from_dict(self.permissions))
        for name in ("file", "thumbnail"):
            value = getattr(self, name)
            if isinstance(value, dict):
                object.__setattr__(self, name, Attachment.from_dict(value))
        object.__setattr__(self, "editor", parse_editor(self.editor))
        object.__setattr__(self, "msg", str(self.msg or ""))
        object.__setattr__(self, "timestamp", as_utc(self.timestamp) or utc_now())

    def evolve(self, **changes: Any) -> "Revision":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "content": self.content.to_dict(),
            "permissions": self.permissions.to_dict(),
            "msg": self.msg,
            "timestamp": self.timestamp,
        }
        if self.editor is not None:
            doc["editor"] = self.editor.to_dict()
        if self.file is not None:
            doc["file"] = self.file.to_dict()
        if self.thumbnail is not None:
            doc["thumbnail"] = self.thumbnail.to_dict()
        return doc

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Revision":
        return cls(
            content=Content.from_dict(data.get("content") or {}),
            permissions=PermissionRule.from_dict(data.get("permissions")),
            file=Attachment.from_dict(data.get("file")),
            thumbnail=Attachment.from_dict(data.get("thumbnail")),
            editor=data.get("editor"),
            msg=data.get("msg") or "",
            timestamp=data.get("timestamp"),
        )
