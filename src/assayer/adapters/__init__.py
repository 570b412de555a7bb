"""Content adapters, one per kind of retrieved content.

Usage::

    adapter = create_adapter('json', context, http=HttpBundle.from_httpx(resp))
    adapter = create_adapter(ResponseType.BROWSER, context, page=page)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import (
    DEFAULT_WAIT_TIMEOUT_MS,
    Capability,
    ContentAdapter,
    FindOptions,
    FindParams,
    ResponseType,
    get_find_params,
)
from .browser import BrowserPageAdapter, DomElement
from .component import COMPONENT_TYPES, ComponentNode, ComponentTreeAdapter
from .http_bundle import HttpBundle
from .json_document import JsonDocumentAdapter
from .raw_http import RawHttpAdapter

if TYPE_CHECKING:
    from playwright.async_api import Page

    from ..context import ScenarioContext

ADAPTERS: dict[ResponseType, type[ContentAdapter]] = {
    ResponseType.HTTP: RawHttpAdapter,
    ResponseType.JSON: JsonDocumentAdapter,
    ResponseType.BROWSER: BrowserPageAdapter,
    ResponseType.COMPONENT: ComponentTreeAdapter,
}


def create_adapter(
    response_type: ResponseType | str,
    context: ScenarioContext,
    *,
    http: HttpBundle | None = None,
    page: Page | None = None,
    **kwargs: Any,
) -> ContentAdapter:
    """Build the adapter for *response_type*.

    Live variants need *page*; the others ignore it. Unknown tags raise
    ``ValueError``.
    """
    adapter_cls = ADAPTERS[ResponseType(response_type)]
    if issubclass(adapter_cls, (BrowserPageAdapter, ComponentTreeAdapter)):
        if page is None:
            raise ValueError(
                f'{adapter_cls.display_name} content needs a live page',
            )
        return adapter_cls(context, page, http, **kwargs)
    return adapter_cls(context, http, **kwargs)


__all__ = [
    'ADAPTERS',
    'BrowserPageAdapter',
    'COMPONENT_TYPES',
    'Capability',
    'ComponentNode',
    'ComponentTreeAdapter',
    'ContentAdapter',
    'DEFAULT_WAIT_TIMEOUT_MS',
    'DomElement',
    'FindOptions',
    'FindParams',
    'HttpBundle',
    'JsonDocumentAdapter',
    'RawHttpAdapter',
    'ResponseType',
    'create_adapter',
    'get_find_params',
]
