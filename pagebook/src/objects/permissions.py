from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class PermissionLevel(str, Enum):
    ANYONE = "anyone"
    AUTHENTICATED = "authenticated"
    EDITOR = "editor"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value


PERMISSION_LEVELS: tuple[PermissionLevel, ...] = (
    PermissionLevel.ANYONE,
    PermissionLevel.AUTHENTICATED,
    PermissionLevel.EDITOR,
    PermissionLevel.ADMIN,
)
PERMISSION_RANK = {level: rank for rank, level in enumerate(PERMISSION_LEVELS)}
DEFAULT_PERMISSION_LEVEL = PermissionLevel.ANYONE


def parse_level(value: Any, default: PermissionLevel | None = None) -> PermissionLevel:
    """Coerce a level name (or an existing level) into a PermissionLevel.

    ``None`` and blank strings fall back to ``default`` when one is given;
    anything else that is not a known level name raises ``ValueError``.
    """
    if isinstance(value, PermissionLevel):
        return value
    raw = str(value or "").strip().lower()
    if not raw:
        if default is not None:
            return default
        raise ValueError("A permission level is required")
    try:
        return PermissionLevel(raw)
    except ValueError:
        raise ValueError(f"Unknown permission level: {value}") from None


def can_access(required: PermissionLevel, requester_level: PermissionLevel) -> bool:
    return PERMISSION_RANK[parse_level(requester_level)] >= PERMISSION_RANK[parse_level(required)]


def readable_levels(requester_level: PermissionLevel) -> list[PermissionLevel]:
    """Every level a requester at ``requester_level`` satisfies, lowest first."""
    rank = PERMISSION_RANK[parse_level(requester_level)]
    return [level for level in PERMISSION_LEVELS if PERMISSION_RANK[level] <= rank]


def level_for(user: Any) -> PermissionLevel:
    """Effective level of a requester. ``None`` is an anonymous requester."""
    if user is None:
        return PermissionLevel.ANYONE
    if getattr(user, "admin", False):
        return PermissionLevel.ADMIN
    if getattr(user, "editor", False):
        return PermissionLevel.EDITOR
    return PermissionLevel.AUTHENTICATED


def is_admin(user: Any) -> bool:
    return bool(getattr(user, "admin", False))


@dataclass(frozen=True)
class PermissionRule:
    read: PermissionLevel = DEFAULT_PERMISSION_LEVEL
    write: PermissionLevel = DEFAULT_PERMISSION_LEVEL

    def __post_init__(self):
        object.__setattr__(self, "read", parse_level(self.read, DEFAULT_PERMISSION_LEVEL))
        object.__setattr__(self, "write", parse_level(self.write, DEFAULT_PERMISSION_LEVEL))

    def check(self, kind: str, user: Any = None) -> bool:
        required = self.write if kind == "write" else self.read
        # admins pass every check regardless of the computed level
        return can_access(required, level_for(user)) or is_admin(user)

    def can_read(self, user: Any = None) -> bool:
        return self.check("read", user)

    def can_write(self, user: Any = None) -> bool:
        return self.check("write", user)

    def to_dict(self) -> dict[str, str]:
        return {"read": self.read.value, "write": self.write.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "PermissionRule":
        if not isinstance(data, dict):
            return cls()
        return cls(read=data.get("read"), write=data.get("write"))


def can_read(rule: PermissionRule, user: Any = None) -> bool:
    return rule.can_read(user)


def can_write(rule: PermissionRule, user: Any = None) -> bool:
    return rule.can_write(user)
