from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any

SIZE_UNITS = ((10**9, "GB"), (10**6, "MB"), (10**3, "kB"))


def _round1(value: float) -> str:
    # half-up, so 1250 bytes reads as 1.3 kB
    rounded = math.floor(value * 10 + 0.5) / 10
    return str(int(rounded)) if rounded == int(rounded) else str(rounded)


def report_size(size: int) -> str:
    """Human-readable size: ``999 B``, ``1.5 kB``, ``2 MB``, ``1.2 GB``."""
    for threshold, unit in SIZE_UNITS:
        if size >= threshold:
            return f"{_round1(size / threshold)} {unit}"
    return f"{size} B"


@dataclass(frozen=True)
class Attachment:
    location: str
    key: str
    mime: str
    size: int

    def __post_init__(self):
        for name in ("location", "key", "mime"):
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"Attachment {name} must be a string")
        if isinstance(self.size, bool) or not isinstance(self.size, int) or self.size < 0:
            raise ValueError("Attachment size must be a non-negative integer")

    def report_size(self) -> str:
        return report_size(self.size)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def public_view(self) -> dict[str, Any]:
        return {
            "location": self.location,
            "key": self.key,
            "mime": self.mime,
            "size": {"bytes": self.size, "str": self.report_size()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Attachment | None":
        if not isinstance(data, dict):
            return None
        size = data.get("size")
        if isinstance(size, dict):
            size = size.get("bytes")
        return cls(
            location=data.get("location"),
            key=data.get("key"),
            mime=data.get("mime"),
            size=size,
        )
