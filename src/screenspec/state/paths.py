"""State path parsing and tree access.

Paths address the state tree with dots and brackets: `cartItems[0].price`.
A purely numeric dot segment is an index too, so `items.0` equals `items[0]`.
"""

import re
from typing import Any

from ..core.validate import ScreenSpecError

Segment = str | int

# Largest jump past the end of a list that a write may pad with None.
MAX_INDEX_GAP = 1024

_SEGMENT = re.compile(r"([^.\[\]]+)|\[(\s*-?\d+\s*)\]|\[\s*(['\"])(.*?)\3\s*\]")


class StatePathError(ScreenSpecError):
    """Path text cannot be parsed."""

    pass


def parse_path(path: str) -> tuple[Segment, ...]:
    """
    Split a path into key and index segments.

    Examples:
        >>> parse_path("cartItems[0].price")
        ('cartItems', 0, 'price')
        >>> parse_path("items.0")
        ('items', 0)

    Raises:
        StatePathError: On empty paths or malformed brackets
    """
    text = path.strip()
    if not text:
        raise StatePathError("empty state path")

    segments: list[Segment] = []
    pos = 0
    while pos < len(text):
        if text[pos] == ".":
            if pos == 0 or pos == len(text) - 1 or text[pos + 1] == ".":
                raise StatePathError(f"empty segment in path {path!r}")
            pos += 1
            continue
        match = _SEGMENT.match(text, pos)
        if match is None:
            raise StatePathError(f"malformed path {path!r} at {pos}")
        name, index, _, quoted = match.groups()
        if name is not None:
            segments.append(int(name) if name.isdigit() and segments else name)
        elif index is not None:
            segments.append(int(index))
        else:
            segments.append(quoted)
        pos = match.end()
    return tuple(segments)


def format_path(segments: tuple[Segment, ...] | list[Segment]) -> str:
    """Canonical spelling: keys joined by dots, indices in brackets."""
    out = ""
    for segment in segments:
        if isinstance(segment, int):
            out += f"[{segment}]"
        else:
            out += f".{segment}" if out else segment
    return out


def normalize_path(path: str) -> str:
    return format_path(parse_path(path))


def paths_overlap(a: str, b: str) -> bool:
    """
    True when two canonical paths can observe each other's writes.

    That is the case when they are equal or one lies inside the other, so
    `items` overlaps `items.count` and `items[0].title` but not `itemsOld`.
    The empty path stands for the whole tree and overlaps everything.
    """
    if not a or not b or a == b:
        return True
    return _is_inside(a, b) or _is_inside(b, a)


def _is_inside(prefix: str, path: str) -> bool:
    return len(path) > len(prefix) and path.startswith(prefix) and path[len(prefix)] in ".["


def ancestor_paths(segments: tuple[Segment, ...]) -> list[str]:
    """Every proper prefix, shortest first: `a.b[0]` gives `a`, `a.b`."""
    return [format_path(segments[:i]) for i in range(1, len(segments))]


def descendant_paths(value: Any, prefix: tuple[Segment, ...]) -> list[str]:
    """Every path below `prefix` reachable inside `value`."""
    paths: list[str] = []
    stack: list[tuple[tuple[Segment, ...], Any]] = [(prefix, value)]
    while stack:
        base, current = stack.pop()
        if isinstance(current, dict):
            children = list(current.items())
        elif isinstance(current, list):
            children = list(enumerate(current))
        else:
            continue
        for key, child in children:
            child_path = base + (key,)
            paths.append(format_path(child_path))
            stack.append((child_path, child))
    return paths


def get_in(tree: Any, segments: tuple[Segment, ...]) -> Any:
    """Read a value, returning None for any missing step."""
    current = tree
    for segment in segments:
        if isinstance(segment, int):
            if not isinstance(current, list) or not 0 <= segment < len(current):
                return None
            current = current[segment]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(segment)
            if current is None:
                return None
    return current


def set_in(tree: dict[str, Any], segments: tuple[Segment, ...], value: Any) -> None:
    """
    Write a value, creating intermediate containers.

    The container created for a missing step is a list when the next segment
    is an index and a dict otherwise. Lists are padded with None up to the
    target index, which may lie at most `MAX_INDEX_GAP` past the end. A scalar
    in the way is replaced.
    """
    if not segments:
        raise StatePathError("empty state path")
    if isinstance(segments[0], int):
        raise StatePathError("state root is an object; path cannot start with an index")

    current: Any = tree
    for position, segment in enumerate(segments):
        last = position == len(segments) - 1
        if last:
            _assign(current, segment, value)
            return
        next_segment = segments[position + 1]
        child = _read(current, segment)
        wanted = list if isinstance(next_segment, int) else dict
        if not isinstance(child, wanted):
            child = wanted()
            _assign(current, segment, child)
        current = child


def _read(container: Any, segment: Segment) -> Any:
    if isinstance(segment, int):
        return container[segment] if 0 <= segment < len(container) else None
    return container.get(segment)


def _assign(container: Any, segment: Segment, value: Any) -> None:
    if isinstance(segment, int):
        if segment < 0:
            raise StatePathError(f"negative index {segment}")
        if segment > len(container) + MAX_INDEX_GAP:
            raise StatePathError(f"index {segment} is too far past the end of a list of {len(container)}")
        while len(container) <= segment:
            container.append(None)
        container[segment] = value
    else:
        container[segment] = value
