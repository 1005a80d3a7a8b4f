"""xjson core - lossless JSON round trip for bytes, datetimes, sets, maps and big ints."""

__version__ = "0.1.0"
__author__ = "YC Math"

from typing import Any, Optional

from .models import (
    RESERVED_KEY,
    TAG_BUFFER,
    TAG_DATE,
    TAG_SET,
    TAG_MAP,
    TAG_BIGINT,
    INVALID_DATE,
    InvalidDate,
)
from .errors import (
    XJSONError,
    XJSONEncodeError,
    XJSONDecodeError,
    ConflictingTagError,
    InvalidBase64Error,
    BigIntConversionError,
    BigIntRangeError,
    ReviverTypeError,
)
from .encoder import XJSONEncoder
from .decoder import XJSONDecoder


def stringify(value: Any, *, bigint: Optional[bool] = None) -> str:
    """Encode ``value`` as JSON text, adding a ``"$x"`` registry when needed."""
    return XJSONEncoder(bigint=bigint).encode(value)


def parse(text: Any, *, bigint: Optional[bool] = None) -> Any:
    """Decode JSON text produced by :func:`stringify` (or any plain JSON)."""
    return XJSONDecoder(bigint=bigint).decode(text)


__all__ = [
    "stringify",
    "parse",
    "XJSONEncoder",
    "XJSONDecoder",
    "RESERVED_KEY",
    "TAG_BUFFER",
    "TAG_DATE",
    "TAG_SET",
    "TAG_MAP",
    "TAG_BIGINT",
    "INVALID_DATE",
    "InvalidDate",
    "XJSONError",
    "XJSONEncodeError",
    "XJSONDecodeError",
    "ConflictingTagError",
    "InvalidBase64Error",
    "BigIntConversionError",
    "BigIntRangeError",
    "ReviverTypeError",
]
