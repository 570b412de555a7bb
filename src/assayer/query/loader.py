"""One-shot loader for the optional JMESPath query engine.

The loader never raises. It returns an :class:`EngineLoad` that either
carries a ready engine or the reason one could not be loaded; the caller
decides what to fall back to.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, Protocol


class QueryEngine(Protocol):
    """Anything that can resolve a path expression against a document."""

    name: str

    def search(self, document: Any, path: str) -> Any: ...


class JmesPathEngine:
    """Adapts the ``jmespath`` module to the :class:`QueryEngine` shape."""

    name = 'jmespath'

    def __init__(self, module: Any) -> None:
        self._module = module

    def search(self, document: Any, path: str) -> Any:
        return self._module.search(path, document)


@dataclass(frozen=True, slots=True)
class EngineLoad:
    """Outcome of a query engine load attempt."""

    engine: QueryEngine | None
    reason: str = ''

    @property
    def available(self) -> bool:
        return self.engine is not None

    @classmethod
    def unavailable(cls, reason: str) -> EngineLoad:
        return cls(engine=None, reason=reason)


def load_query_engine(module_name: str = 'jmespath') -> EngineLoad:
    """Try to import and wrap the richer query engine."""
    try:
        module = importlib.import_module(module_name)
    except Exception as exc:
        return EngineLoad.unavailable(f'{type(exc).__name__}: {exc}')
    if not callable(getattr(module, 'search', None)):
        return EngineLoad.unavailable(f'{module_name} has no search()')
    return EngineLoad(engine=JmesPathEngine(module))
