from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from pagebook.src.objects.revisions import Revision, as_utc, utc_now
from pagebook.src.objects.users import EditorRef


def rollback_message(number: int, msg: str = "") -> str:
    base = f"Rolling back to revision #{number}"
    return f"{base}: {msg}" if msg else base


class Page:
    """A page and its linear history.

    ``revisions`` is stored newest first. Revisions are addressed by
    chronological number, 1 being the oldest, through an index transform on
    the stored list.
    """

    def __init__(
        self,
        revisions: Iterable[Revision | dict[str, Any]] | None = None,
        created: datetime | None = None,
        updated: datetime | None = None,
        trashed: datetime | None = None,
        id: str | None = None,
    ):
        self.id = id
        self.revisions: list[Revision] = [
            rev if isinstance(rev, Revision) else Revision.from_dict(rev)
            for rev in (revisions or [])
        ]
        self._created = as_utc(created) or utc_now()
        if self.revisions:
            self.updated = self.revisions[0].timestamp
        else:
            self.updated = as_utc(updated) or self._created
        self.trashed = as_utc(trashed)

    @property
    def created(self) -> datetime:
        return self._created

    @property
    def path(self) -> str | None:
        current = self.current()
        return current.content.path if current else None

    @property
    def is_trashed(self) -> bool:
        return self.trashed is not None

    def current(self) -> Revision | None:
        return self.revisions[0] if self.revisions else None

    def revision_by_number(self, n: int) -> Revision | None:
        total = len(self.revisions)
        if isinstance(n, bool) or not isinstance(n, int) or n < 1 or n > total:
            return None
        return self.revisions[total - n]

    def number_of(self, index: int) -> int:
        """Chronological number of the revision stored at ``index``."""
        return len(self.revisions) - index

    def add_revision(self, revision: Revision) -> None:
        self.revisions.insert(0, revision)
        self.updated = revision.timestamp

    def rollback(self, n: int, editor: EditorRef | None = None) -> bool:
        target = self.revision_by_number(n)
        if target is None:
            return False
        self.add_revision(
            Revision(
                content=target.content,
                permissions=target.permissions,
                file=target.file,
                thumbnail=target.thumbnail,
                editor=editor,
                msg=rollback_message(n, target.msg),
                timestamp=utc_now(),
            )
        )
        return True

    def trash(self, when: datetime | None = None) -> None:
        self.trashed = as_utc(when) or utc_now()

    def restore(self) -> None:
        self.trashed = None

    def to_dict(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "id": self.id,
            "path": self.path,
            "revisions": [rev.to_dict() for rev in self.revisions],
            "created": self.created,
            "updated": self.updated,
        }
        if self.trashed is not None:
            doc["trashed"] = self.trashed
        return doc

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Page":
        return cls(
            revisions=[Revision.from_dict(rev) for rev in data.get("revisions") or []],
            created=data.get("created"),
            updated=data.get("updated"),
            trashed=data.get("trashed"),
            id=(str(data["id"]) if data.get("id") else None),
        )
