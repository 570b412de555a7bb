"""Path query engines for structured documents."""

from .loader import EngineLoad, JmesPathEngine, QueryEngine, load_query_engine
from .path import PathQuery, normalize_path, search

__all__ = [
    'EngineLoad',
    'JmesPathEngine',
    'PathQuery',
    'QueryEngine',
    'load_query_engine',
    'normalize_path',
    'search',
]
