"""Dotted-path access into JSON-like values (core).

`get_path(obj, "body.user.name")` walks dicts (and list indices); `set_path`
writes copy-on-write so callers never mutate a context another node already
logged.
"""

from __future__ import annotations

from typing import Any, List


def _split(path: str) -> List[str]:
    return [part for part in str(path).split(".")]


def get_path(data: Any, path: str | None) -> Any:
    if not path:
        return data
    cur = data
    for part in _split(path):
        if isinstance(cur, dict):
            if part not in cur:
                return None
            cur = cur[part]
        elif isinstance(cur, list):
            if not part.isdigit():
                return None
            idx = int(part)
            if idx >= len(cur):
                return None
            cur = cur[idx]
        else:
            return None
    return cur


def _copy_container(value: Any) -> Any:
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    return {}


def _assign(container: Any, part: str, value: Any) -> None:
    if isinstance(container, list) and part.isdigit():
        idx = int(part)
        if idx >= len(container):
            container.extend([None] * (idx + 1 - len(container)))
        container[idx] = value
    elif isinstance(container, list):
        # non-index keys on a list are dropped
        return
    else:
        container[part] = value


def _child(container: Any, part: str) -> Any:
    if isinstance(container, list):
        if part.isdigit() and int(part) < len(container):
            return container[int(part)]
        return None
    return container.get(part)


def set_path(data: Any, path: str | None, value: Any) -> Any:
    """Return a copy of `data` with `value` stored at `path`.

    An empty path replaces the root. Lists are indexed by numeric segments and
    padded with None when the index is past the end. Missing or scalar
    intermediates are replaced by empty dicts. Containers along the path are
    shallow-copied; untouched siblings are shared with the input.
    """
    if not path:
        return value
    parts = _split(path)
    root = _copy_container(data)
    cur = root
    for part in parts[:-1]:
        nxt = _copy_container(_child(cur, part))
        _assign(cur, part, nxt)
        cur = nxt
    _assign(cur, parts[-1], value)
    return root


__all__ = ["get_path", "set_path"]
