"""Extended-JSON encoder.

The tree is walked pre-order with an explicit work-list, in the order the
serializer emits fields. Every node goes through :meth:`_Walk.replace`, which
only sees ``(holder, key, value)``; the node's position is recovered by
re-syncing the ancestry stack against ``holder`` on each call.
"""
from __future__ import annotations

import base64, logging
import datetime as dt
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import numpy as np
import orjson

from .config import CODEC_CONFIG
from .errors import XJSONEncodeError
from .json_util import dumps
from .models import (
    CONTAINER_TAGS, RESERVED_KEY,
    TAG_BIGINT, TAG_BUFFER, TAG_DATE, TAG_MAP, TAG_SET,
    Frame, InvalidDate, Path,
)

LOGGER = logging.getLogger("xjson.encoder")
LOGGER.addHandler(logging.NullHandler())

_BUFFER_TYPES = (bytes, bytearray, memoryview)
_SET_TYPES    = (set, frozenset)
_DATE_TYPES   = (dt.datetime, InvalidDate)
_INT_TYPES    = (int, np.integer)


def is_object(value: Any) -> bool:
    """True for values the serializer writes as a JSON object."""
    return isinstance(value, dict) and all(isinstance(k, str) for k in value)


def classify(value: Any, *, bigint: bool = True,
             max_safe_integer: int = CODEC_CONFIG["max_safe_integer"]) -> Optional[str]:
    """Return the type tag for ``value`` or ``None`` for plain JSON data."""
    if isinstance(value, _BUFFER_TYPES):
        return TAG_BUFFER
    if isinstance(value, _SET_TYPES):
        return TAG_SET
    if isinstance(value, Mapping) and not is_object(value):
        return TAG_MAP
    if isinstance(value, _DATE_TYPES):
        return TAG_DATE
    if bigint and isinstance(value, _INT_TYPES) and not isinstance(value, bool):
        # numpy 정수는 범위와 무관하게 태그 → 디코딩 시 int 로 복원
        if not isinstance(value, int) or abs(value) > max_safe_integer:
            return TAG_BIGINT
    return None


def _substitute_bigint(value: Any) -> Any:
    value = int(value)
    if abs(value) <= CODEC_CONFIG["max_safe_integer"]:
        return value
    try:
        return str(value)
    except ValueError as e:          # str→int 자릿수 한도 초과 (3.11+)
        raise XJSONEncodeError(f"Integer too large to encode: {e}") from e


# JSON-expressible stand-ins, one per tag returned by classify()
SUBSTITUTERS: Dict[str, Callable[[Any], Any]] = {
    TAG_BUFFER: lambda v: base64.b64encode(bytes(v)).decode("ascii"),
    TAG_SET:    list,
    TAG_MAP:    lambda v: [[k, x] for k, x in v.items()],
    TAG_DATE:   lambda v: v.isoformat(),
    TAG_BIGINT: _substitute_bigint,
}


class _Walk:
    """State of a single encode call."""

    def __init__(self, bigint: bool, max_safe_integer: int):
        self.bigint = bigint
        self.max_safe_integer = max_safe_integer
        self.active: Optional[Frame] = None
        self.records: List[Tuple[str, Frame]] = []
        self._open: Set[int] = set()     # id() of originals on the stack

    def run(self, value: Any) -> Any:
        holder = {"": value}
        out: Dict[str, Any] = {}
        work: List[Tuple[Any, Any, Any, Any]] = [(holder, "", out, "")]
        while work:
            src, key, dst, dst_key = work.pop()
            node = self.replace(src, key, src[key])
            if isinstance(node, dict):
                copy: Any = {}
                work.extend((node, k, copy, k) for k in reversed(list(node)))
            elif isinstance(node, (list, tuple)):
                copy = [None] * len(node)
                work.extend((node, i, copy, i) for i in reversed(range(len(node))))
            else:
                copy = node
            dst[dst_key] = copy
        return out[""]

    def replace(self, holder: Any, key: Any, value: Any) -> Any:
        # sibling 방문 시 명시적 pop 신호가 없으므로 holder 기준으로 재동기화
        while self.active is not None and self.active.node is not holder:
            self._open.discard(id(self.active.value))
            self.active = self.active.parent

        tag = classify(value, bigint=self.bigint, max_safe_integer=self.max_safe_integer)
        if tag is None:
            if isinstance(value, (dict, list, tuple)):
                self._push(Frame(node=value, value=value, key=key, parent=self.active))
            return value

        sub = SUBSTITUTERS[tag](value)
        if tag in CONTAINER_TAGS:
            frame = Frame(node=sub, value=value, key=key, parent=self.active)
            self._push(frame)
        else:
            frame = Frame(node=None, value=value, key=key, parent=self.active)
        self.records.append((tag, frame))
        return sub

    def _push(self, frame: Frame):
        if id(frame.value) in self._open:
            raise XJSONEncodeError("Circular reference detected")
        self._open.add(id(frame.value))
        self.active = frame


class XJSONEncoder:
    def __init__(self, bigint: Optional[bool] = None):
        self.bigint = CODEC_CONFIG["bigint"] if bigint is None else bigint
        self.max_safe_integer = CODEC_CONFIG["max_safe_integer"]

    def encode(self, value: Any) -> str:
        if is_object(value) and RESERVED_KEY in value:
            raise XJSONEncodeError(
                f'encode() input object cannot have a top-level "{RESERVED_KEY}" property.'
            )

        walk = _Walk(self.bigint, self.max_safe_integer)
        tree = walk.run(value)
        try:
            text = dumps(tree)
        except orjson.JSONEncodeError as e:
            raise XJSONEncodeError(f"Serialization failed: {e}") from e

        if not walk.records:
            return text
        if not isinstance(tree, dict):
            raise XJSONEncodeError(
                'encode() input must convert to an "object" when extended types are encoded.'
            )

        LOGGER.debug("recorded %d extended value(s)", len(walk.records))
        registry: Dict[str, List[Path]] = {}
        for tag, frame in walk.records:
            registry.setdefault(tag, []).append(frame.path())
        # tree 는 최소 1개 필드를 가짐 → "{" 뒤에 바로 이어 붙임
        return f'{{"{RESERVED_KEY}":{dumps(registry)},{text[1:]}'
