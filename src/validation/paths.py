"""
Field paths over in-memory document trees.

Paths are dotted, with list elements addressed by index: ``items[0].quantity``.
Normalized paths replace indices with ``[]`` (``items[].quantity``) and are
used as keys for defaults, the partial-accept allow-list and advisory rules.
"""
import re
from typing import Any, Iterator, List, Tuple, Union

Segment = Union[str, int]

_SEGMENT_RE = re.compile(r"([^.\[\]]+)|\[(\d*)\]")
_INDEX_RE = re.compile(r"\[\d+\]")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def split_path(path: str) -> List[Segment]:
    """``"items[0].quantity"`` → ``["items", 0, "quantity"]``; ``[]`` → ``-1``."""
    segments: List[Segment] = []
    for name, index in _SEGMENT_RE.findall(path):
        if name:
            segments.append(name)
        else:
            segments.append(int(index) if index else -1)
    return segments


def join_path(prefix: str, path: str) -> str:
    if not prefix:
        return path
    if path.startswith("["):
        return f"{prefix}{path}"
    return f"{prefix}.{path}"


def normalize_path(path: str) -> str:
    return _INDEX_RE.sub("[]", path)


def resolve(document: Any, path: str) -> Any:
    """Return the value at *path*, or ``MISSING`` when any segment is absent."""
    current = document
    for segment in split_path(path):
        if isinstance(segment, int):
            if not isinstance(current, list) or not 0 <= segment < len(current):
                return MISSING
            current = current[segment]
        elif isinstance(current, dict):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return MISSING
    return current


def assign(document: Any, path: str, value: Any) -> bool:
    """
    Set *value* at *path* in place.

    Intermediate containers are never created: returns False when the parent
    of the target does not exist.
    """
    segments = split_path(path)
    if not segments:
        return False
    parent = resolve(document, _parent_path(segments)) if len(segments) > 1 else document
    last = segments[-1]
    if isinstance(last, int):
        if isinstance(parent, list) and 0 <= last < len(parent):
            parent[last] = value
            return True
        return False
    if isinstance(parent, dict):
        parent[last] = value
        return True
    return False


def expand(document: Any, pattern: str) -> Iterator[Tuple[str, Any]]:
    """Yield ``(concrete_path, value)`` for every match of a normalized path."""
    yield from _expand(document, split_path(pattern), "")


def exceeds_depth(document: Any, limit: int) -> bool:
    """True when objects/arrays nest more than *limit* levels (scalars are depth 0)."""
    stack = [(document, 0)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, dict):
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        if depth + 1 > limit:
            return True
        stack.extend((child, depth + 1) for child in children)
    return False


def _expand(current: Any, segments: List[Segment], prefix: str) -> Iterator[Tuple[str, Any]]:
    if not segments:
        yield prefix, current
        return
    head, rest = segments[0], segments[1:]
    if head == -1:
        if isinstance(current, list):
            for i, item in enumerate(current):
                yield from _expand(item, rest, f"{prefix}[{i}]")
        return
    if isinstance(head, int):
        if isinstance(current, list) and 0 <= head < len(current):
            yield from _expand(current[head], rest, f"{prefix}[{head}]")
        return
    if isinstance(current, dict) and head in current:
        yield from _expand(current[head], rest, join_path(prefix, head))


def _parent_path(segments: List[Segment]) -> str:
    parts = ""
    for segment in segments[:-1]:
        if isinstance(segment, int):
            parts += f"[{segment}]"
        else:
            parts = join_path(parts, segment)
    return parts
