"""Dotted-path access to nested mappings ("gift.note", "size")."""
from typing import Any, List, MutableMapping

from shopcart.errors import InvalidPathError, ERROR_PATH_INVALID

SEPARATOR = "."


def split_path(path: str) -> List[str]:
    """
    Split and validate a dotted path.

    Raises:
        InvalidPathError: path is not a string, is empty, or has an empty segment
    """
    if not isinstance(path, str) or not path.strip():
        raise InvalidPathError(f"{ERROR_PATH_INVALID}: {path!r}")

    segments = path.split(SEPARATOR)
    for segment in segments:
        if not segment or segment != segment.strip():
            raise InvalidPathError(f"{ERROR_PATH_INVALID}: {path!r}")
    return segments


def get_path(data: MutableMapping, path: str, default: Any = None) -> Any:
    """Read a nested value, returning `default` when any segment is missing."""
    current: Any = data
    for segment in split_path(path):
        if not isinstance(current, MutableMapping) or segment not in current:
            return default
        current = current[segment]
    return current


def set_path(data: MutableMapping, path: str, value: Any) -> None:
    """Write a nested value, creating (or replacing non-mapping) parents."""
    segments = split_path(path)
    current = data
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, MutableMapping):
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = value


def forget_path(data: MutableMapping, path: str) -> bool:
    """Remove a nested value. Returns False if it was not present."""
    segments = split_path(path)
    current: Any = data
    for segment in segments[:-1]:
        current = current.get(segment) if isinstance(current, MutableMapping) else None
        if current is None:
            return False
    if isinstance(current, MutableMapping) and segments[-1] in current:
        del current[segments[-1]]
        return True
    return False
