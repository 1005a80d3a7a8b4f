from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional, Union

# 예약 키 – 루트 객체에서만 사용 불가
RESERVED_KEY = "$x"

# ===== 타입 태그 =====
TAG_BUFFER = "B"
TAG_DATE   = "D"
TAG_SET    = "S"
TAG_MAP    = "M"
TAG_BIGINT = "n"

CONTAINER_TAGS = (TAG_SET, TAG_MAP)   # 항상 마지막, 긴 경로부터 복원

Segment = Union[str, int]
Path = List[Segment]


@dataclass(eq=False)
class Frame:
    """One step of the encoder's ancestry stack.

    ``node`` is the container whose children are visited while this frame is
    on top (for sets and maps that is the materialized list, not the original
    value). ``value`` is the original value found at ``key``.
    """
    node: Any
    value: Any
    key: Optional[Segment]
    parent: Optional["Frame"] = None

    def path(self) -> Path:
        """Root-relative path; the root-selection segment is dropped."""
        segments: Path = []
        frame = self
        while frame.parent is not None:
            segments.append(frame.key)
            frame = frame.parent
        segments.reverse()
        return segments


class InvalidDate:
    """Date-time that could not be parsed.

    A singleton (``INVALID_DATE``) so decoded documents compare equal.
    """
    _instance: Optional["InvalidDate"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __reduce__(self):
        return (InvalidDate, ())

    def __repr__(self) -> str:
        return "INVALID_DATE"

    def __str__(self) -> str:
        return "Invalid Date"

    def isoformat(self) -> str:
        return str(self)


INVALID_DATE = InvalidDate()
