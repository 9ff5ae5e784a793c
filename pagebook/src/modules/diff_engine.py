"""Word-level diffing of revisions.

Text is split into maximal runs of word characters and maximal runs of
everything else, so ``"the end."`` becomes ``["the", " ", "end", "."]``.
Two token lists are compared through their longest common subsequence and
the result is reported as change segments in document order.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Sequence

from pagebook.src.objects.attachments import Attachment
from pagebook.src.objects.revisions import Revision

TOKEN_RE = re.compile(r"\w+|\W+")


@dataclass(frozen=True)
class ChangeSegment:
    value: str
    count: int
    added: bool | None = None
    removed: bool | None = None

    @property
    def kind(self) -> str:
        if self.added:
            return "added"
        if self.removed:
            return "removed"
        return "common"

    def to_dict(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"value": self.value, "count": self.count}
        if self.added:
            doc["added"] = True
        if self.removed:
            doc["removed"] = True
        return doc


@dataclass(frozen=True)
class AttachmentDiff:
    before: Attachment | None
    after: Attachment | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "before": self.before.public_view() if self.before else None,
            "after": self.after.public_view() if self.after else None,
        }


@dataclass(frozen=True)
class RevisionDiff:
    title: list[ChangeSegment]
    path: list[ChangeSegment]
    body: list[ChangeSegment]
    read: list[ChangeSegment]
    write: list[ChangeSegment]
    file: AttachmentDiff
    thumbnail: AttachmentDiff

    def to_dict(self) -> dict[str, Any]:
        def dump(segments: list[ChangeSegment]) -> list[dict[str, Any]]:
            return [seg.to_dict() for seg in segments]

        return {
            "content": {"title": dump(self.title), "path": dump(self.path), "body": dump(self.body)},
            "permissions": {"read": dump(self.read), "write": dump(self.write)},
            "file": self.file.to_dict(),
            "thumbnail": self.thumbnail.to_dict(),
        }


def tokenize(text: str | None) -> list[str]:
    return TOKEN_RE.findall(text or "")


def _lcs_table(a: Sequence[str], b: Sequence[str]) -> list[list[int]]:
    # table[i][j] is the LCS length of a[i:] and b[j:]
    table = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(len(a) - 1, -1, -1):
        row, below = table[i], table[i + 1]
        for j in range(len(b) - 1, -1, -1):
            if a[i] == b[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])
    return table


def _push(segments: list[list[Any]], kind: str, token: str) -> None:
    if segments and segments[-1][0] == kind:
        segments[-1][1].append(token)
    else:
        segments.append([kind, [token]])


def _walk(a: Sequence[str], b: Sequence[str]) -> list[list[Any]]:
    table = _lcs_table(a, b)
    runs: list[list[Any]] = []
    i = j = 0
    while i < len(a) and j < len(b):
        if a[i] == b[j]:
            _push(runs, "common", a[i])
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            _push(runs, "removed", a[i])
            i += 1
        else:
            _push(runs, "added", b[j])
            j += 1
    for token in a[i:]:
        _push(runs, "removed", token)
    for token in b[j:]:
        _push(runs, "added", token)
    return runs


FLIPPED = {"added": "removed", "removed": "added", "common": "common"}


def diff_tokens(a: Sequence[str], b: Sequence[str]) -> list[ChangeSegment]:
    # one fixed walk order: swapping the arguments only swaps the flags
    if list(b) < list(a):
        runs = [[FLIPPED[kind], tokens] for kind, tokens in _walk(b, a)]
    else:
        runs = _walk(a, b)

    # a replaced stretch reads removed-then-added even when the walk
    # interleaved them; common runs are never moved
    ordered: list[list[Any]] = []
    for kind, tokens in runs:
        if kind == "removed" and ordered and ordered[-1][0] == "added":
            pending = ordered.pop()
            if ordered and ordered[-1][0] == "removed":
                ordered[-1][1].extend(tokens)
            else:
                ordered.append([kind, tokens])
            ordered.append(pending)
            continue
        if ordered and ordered[-1][0] == kind:
            ordered[-1][1].extend(tokens)
        else:
            ordered.append([kind, tokens])

    if not ordered:
        return [ChangeSegment(value="", count=0)]
    return [
        ChangeSegment(
            value="".join(tokens),
            count=len(tokens),
            added=True if kind == "added" else None,
            removed=True if kind == "removed" else None,
        )
        for kind, tokens in ordered
    ]


def diff_text(a: str | None, b: str | None) -> list[ChangeSegment]:
    return diff_tokens(tokenize(a), tokenize(b))


def diff_values(a: Any, b: Any) -> list[ChangeSegment]:
    """Diff two enumeration values, each taken as a single token."""
    left = [] if a is None else [str(a.value if hasattr(a, "value") else a)]
    right = [] if b is None else [str(b.value if hasattr(b, "value") else b)]
    return diff_tokens(left, right)


def diff_attachments(a: Attachment | None, b: Attachment | None) -> AttachmentDiff:
    # raw sides, no equality check: an unchanged file shows up on both sides
    return AttachmentDiff(before=a, after=b)


def diff_revisions(a: Revision, b: Revision) -> RevisionDiff:
    return RevisionDiff(
        title=diff_text(a.content.title, b.content.title),
        path=diff_text(a.content.path, b.content.path),
        body=diff_text(a.content.body, b.content.body),
        read=diff_values(a.permissions.read, b.permissions.read),
        write=diff_values(a.permissions.write, b.permissions.write),
        file=diff_attachments(a.file, b.file),
        thumbnail=diff_attachments(a.thumbnail, b.thumbnail),
    )
