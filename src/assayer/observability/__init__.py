"""Observability helpers for assayer.

Quick start::

    from assayer.observability import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
"""

from .logging import configure_logging, get_logger, scenario_ctx

__all__ = [
    'configure_logging',
    'get_logger',
    'scenario_ctx',
]
