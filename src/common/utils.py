"""Common utility functions."""

from typing import Any


def get_value(obj: Any, key: str) -> Any:
    """Get value from dict or object attribute."""
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def get_path(obj: Any, path: str, default: Any = None) -> Any:
    """Follow a dotted path (``data.children``) through nested dicts, objects and lists."""
    current = obj
    for key in filter(None, path.split(".")):
        if current is None:
            return default
        if isinstance(current, list):
            try:
                current = current[int(key)]
            except (ValueError, IndexError):
                return default
        else:
            current = get_value(current, key)
    return default if current is None else current
