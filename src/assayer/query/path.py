"""Builtin dot/bracket path resolver for nested structures.

Used by the JSON adapter when no richer query engine can be loaded.

    >>> search({'a': [{'b': 1}]}, 'a[0].b')
    1

A path that runs off the structure does not fail: the walk stops at the
first missing segment and returns the deepest value it reached. So
``a[0].c`` against the document above yields ``{'b': 1}``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

_SEPARATORS = re.compile(r'[\[\] ]')
_QUOTES = re.compile(r'[\'"]')
_DOT_RUNS = re.compile(r'\.{2,}')

_MISSING = object()


def normalize_path(path: str) -> list[str]:
    """Split a selector such as ``a[0].b["c"]`` into lookup segments."""
    path = _SEPARATORS.sub('.', path)
    path = _QUOTES.sub('', path)
    path = _DOT_RUNS.sub('.', path)
    return [part for part in path.split('.') if part]


def _lookup(container: Any, segment: str) -> Any:
    if isinstance(container, Mapping):
        if segment in container:
            return container[segment]
        if segment.isdigit() and int(segment) in container:
            return container[int(segment)]
        return _MISSING
    if isinstance(container, Sequence) and segment.isdigit():
        index = int(segment)
        if index < len(container):
            return container[index]
    return _MISSING


def search(document: Any, path: str) -> Any:
    """Resolve *path* against *document*.

    Returns the root for an empty path and the deepest defined prefix
    when a segment is missing.
    """
    selection = document if document is not None else {}
    for segment in normalize_path(path):
        found = _lookup(selection, segment)
        if found is _MISSING:
            break
        selection = found
    return selection


class PathQuery:
    """Query engine facade over :func:`search`."""

    name = 'builtin'

    def search(self, document: Any, path: str) -> Any:
        return search(document, path)
