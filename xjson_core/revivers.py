"""Per-tag revivers: rebuild an extended value from its JSON stand-in."""
from __future__ import annotations

import base64, re
import datetime as dt
from typing import Any, Callable, Dict

from .errors import (
    BigIntConversionError, BigIntRangeError, InvalidBase64Error, ReviverTypeError,
)
from .models import (
    INVALID_DATE, TAG_BIGINT, TAG_BUFFER, TAG_DATE, TAG_MAP, TAG_SET,
)

_BASE64 = re.compile(r"(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}(?:==)?|[A-Za-z0-9+/]{3}=?)?")
_DECIMAL = re.compile(r"[+-]?[0-9]+")
_PREFIXED = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")

EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)


def _hashable(value: Any) -> Any:
    """JSON arrays become tuples and rebuilt sets become frozensets."""
    if isinstance(value, list):
        return tuple(_hashable(v) for v in value)
    if isinstance(value, set):
        return frozenset(value)
    if isinstance(value, dict):
        raise ReviverTypeError("unhashable type: 'dict'")
    return value


def revive_buffer(coded: Any) -> bytes:
    if isinstance(coded, str):
        if not _BASE64.fullmatch(coded):
            raise InvalidBase64Error("Invalid base64 buffer encoding")
        return base64.b64decode(coded + "=" * (-len(coded) % 4))
    if isinstance(coded, list):
        try:
            return bytes(coded)
        except (TypeError, ValueError) as e:
            raise ReviverTypeError(f"Invalid byte array: {e}") from e
    raise ReviverTypeError(f"Cannot create a buffer from {type(coded).__name__}")


def revive_date(coded: Any):
    """ISO-8601 text or epoch milliseconds; anything else is ``INVALID_DATE``."""
    if isinstance(coded, str):
        text = coded.strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            return dt.datetime.fromisoformat(text)
        except ValueError:
            return INVALID_DATE
    if isinstance(coded, (int, float)) and not isinstance(coded, bool):
        try:
            return EPOCH + dt.timedelta(milliseconds=coded)
        except (OverflowError, ValueError):
            return INVALID_DATE
    return INVALID_DATE


def revive_set(coded: Any) -> set:
    if not isinstance(coded, (str, list)):
        raise ReviverTypeError(f"{type(coded).__name__} object is not iterable")
    return {_hashable(v) for v in coded}


def revive_map(coded: Any) -> dict:
    if not isinstance(coded, list):
        raise ReviverTypeError(f"{type(coded).__name__} object is not a list of entries")
    out = {}
    for entry in coded:
        if not isinstance(entry, list) or len(entry) != 2:
            raise ReviverTypeError(f"Iterator value {entry!r} is not an entry object")
        key, value = entry
        out[_hashable(key)] = value
    return out


def revive_bigint(coded: Any) -> int:
    if isinstance(coded, bool):
        return int(coded)
    if isinstance(coded, int):
        return coded
    if isinstance(coded, float):
        if not coded.is_integer():
            raise BigIntRangeError(
                f"The number {coded} cannot be converted to a BigInt because it is not a safe integer"
            )
        return int(coded)
    if isinstance(coded, str):
        text = coded.strip()
        if not text:
            return 0
        try:
            if _DECIMAL.fullmatch(text):
                return int(text)
            if _PREFIXED.fullmatch(text):
                return int(text, 0)
        except ValueError as e:      # str→int 자릿수 한도 초과
            raise BigIntConversionError(f"Cannot convert {coded} to a BigInt") from e
        raise BigIntConversionError(f"Cannot convert {coded} to a BigInt")
    raise ReviverTypeError(f"Cannot convert {type(coded).__name__} to a BigInt")


REVIVERS: Dict[str, Callable[[Any], Any]] = {
    TAG_BUFFER: revive_buffer,
    TAG_DATE:   revive_date,
    TAG_SET:    revive_set,
    TAG_MAP:    revive_map,
    TAG_BIGINT: revive_bigint,
}
