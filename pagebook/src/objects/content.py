from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any


def slugify(value: str) -> str:
    slug = (value or "").strip().lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    return re.sub(r"-{2,}", "-", slug).strip("-")


@dataclass(frozen=True)
class Content:
    title: str
    body: str
    path: str | None = None

    def __post_init__(self):
        title = str(self.title or "").strip()
        if not title:
            raise ValueError("Title is required")
        if self.body is None:
            raise ValueError("Body is required")
        object.__setattr__(self, "title", title)
        object.__setattr__(self, "body", str(self.body))
        if not self.path:
            object.__setattr__(self, "path", f"/{slugify(title)}")

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "path": self.path, "body": self.body}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Content":
        return cls(title=data.get("title"), body=data.get("body"), path=data.get("path"))
