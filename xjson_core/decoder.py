"""Extended-JSON decoder.

* Parses the text with orjson and re-hydrates every path listed under the
  reserved ``"$x"`` registry.
* ``B`` / ``D`` / ``n`` (and unknown tags) are applied first; ``S`` / ``M`` last,
  longest path first, so nested containers are rebuilt inside-out.
* Unresolvable paths are skipped; a path listed twice raises
  :class:`ConflictingTagError`.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import orjson

from .config import CODEC_CONFIG
from .errors import ConflictingTagError, XJSONDecodeError
from .json_util import loads
from .models import CONTAINER_TAGS, RESERVED_KEY, TAG_BIGINT
from .revivers import REVIVERS

LOGGER = logging.getLogger("xjson.decoder")
LOGGER.addHandler(logging.NullHandler())

Reviver = Optional[Callable[[Any], Any]]


def is_extended(parsed: Any) -> bool:
    """Only a plain-object registry marks an extended document."""
    return isinstance(parsed, dict) and isinstance(parsed.get(RESERVED_KEY), dict)


def _has(container: Any, segment: Any) -> bool:
    if isinstance(container, dict):
        return isinstance(segment, str) and segment in container
    if isinstance(container, list):
        return (isinstance(segment, int) and not isinstance(segment, bool)
                and 0 <= segment < len(container))
    return False


def resolve(doc: Any, path: Any) -> Optional[Tuple[Any, Any]]:
    """Return ``(parent, last_segment)`` for ``path`` or ``None`` if it does not exist."""
    if not isinstance(path, list) or not path:
        return None
    ref = doc
    for segment in path[:-1]:
        if not _has(ref, segment):
            return None
        ref = ref[segment]
        if not isinstance(ref, (dict, list)):
            return None
    last = path[-1]
    return (ref, last) if _has(ref, last) else None


def _check_conflicts(types: Dict[str, Any]):
    seen: Dict[tuple, str] = {}
    for tag, paths in types.items():
        if not isinstance(paths, list):
            continue
        for path in paths:
            if not isinstance(path, list) or not all(isinstance(s, (str, int)) for s in path):
                continue
            key = tuple((type(s), s) for s in path)
            if key in seen:
                raise ConflictingTagError(
                    f"Path {path!r} is tagged more than once ({seen[key]!r}, {tag!r})"
                )
            seen[key] = tag


class XJSONDecoder:
    def __init__(self, bigint: Optional[bool] = None):
        self.bigint = CODEC_CONFIG["bigint"] if bigint is None else bigint
        self.revivers: Dict[str, Callable[[Any], Any]] = dict(REVIVERS)
        if not self.bigint:
            # big-int 미지원 → "n" 은 unknown tag 와 동일하게 값 제거
            del self.revivers[TAG_BIGINT]

    def decode(self, text: Any) -> Any:
        try:
            parsed = loads(text)
        except orjson.JSONDecodeError as e:
            raise XJSONDecodeError(f"JSON parsing failed: {e}") from e

        if not is_extended(parsed):
            return parsed

        # 레지스트리를 먼저 분리 → 레지스트리 내부를 가리키는 경로는 해석 불가로 무시
        types: Dict[str, Any] = parsed.pop(RESERVED_KEY)
        _check_conflicts(types)

        for tag in list(types):
            if tag in CONTAINER_TAGS:
                continue
            paths = types.pop(tag)
            if not isinstance(paths, list):
                LOGGER.debug("discarding non-list registry entry for tag %r", tag)
                continue
            reviver = self.revivers.get(tag)
            if reviver is None:
                LOGGER.debug("unknown tag %r; removing %d value(s)", tag, len(paths))
            for path in paths:
                self._apply(parsed, path, reviver)

        # Set / Map 는 마지막, 긴 경로부터
        entries: List[Tuple[Any, str]] = []
        for tag, paths in types.items():
            if isinstance(paths, list):
                entries.extend((path, tag) for path in paths)
            else:
                LOGGER.debug("discarding non-list registry entry for tag %r", tag)
        entries.sort(key=lambda e: len(e[0]) if isinstance(e[0], list) else 0, reverse=True)
        for path, tag in entries:
            self._apply(parsed, path, self.revivers[tag])

        return parsed

    def _apply(self, doc: Any, path: Any, reviver: Reviver):
        target = resolve(doc, path)
        if target is None:
            LOGGER.debug("skipping unresolvable path %r", path)
            return
        parent, last = target
        if reviver is not None:
            parent[last] = reviver(parent[last])
        elif isinstance(parent, dict):
            del parent[last]
        else:
            parent[last] = None     # 인덱스 유지
