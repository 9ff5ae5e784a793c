from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class UserSnapshot:
    """Denormalized copy of an editor, stored by value on a revision."""

    id: str
    name: str = ""
    editor: bool = False
    admin: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "editor": self.editor, "admin": self.admin}

    def public_view(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserSnapshot":
        return cls(
            id=str(data.get("id") or "").strip(),
            name=str(data.get("name") or "").strip(),
            editor=bool(data.get("editor")),
            admin=bool(data.get("admin")),
        )


@dataclass(frozen=True)
class UserId:
    """Opaque reference to an editor; never resolved by the engine."""

    id: str

    def to_dict(self) -> str:
        return self.id

    def public_view(self) -> str:
        return self.id


EditorRef = Union[UserSnapshot, UserId]


def parse_editor(value: Any) -> EditorRef | None:
    if value is None or isinstance(value, (UserSnapshot, UserId)):
        return value
    if isinstance(value, dict):
        return UserSnapshot.from_dict(value)
    raw = str(value).strip()
    return UserId(raw) if raw else None


def editor_id(ref: EditorRef | None) -> str | None:
    return ref.id if ref is not None else None
