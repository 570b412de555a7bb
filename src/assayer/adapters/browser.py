"""Rendered DOM content in a live Playwright page.

Selectors are CSS. Matches come back as Values wrapping a
:class:`DomElement`, which can be queried further:

    nav = await adapter.find('nav')
    links = await nav.find_all('a', 'Docs')
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from playwright.async_api import ElementHandle

from ..value import Value
from .base import (
    DEFAULT_WAIT_TIMEOUT_MS,
    Capability,
    FindArg,
    FindOptions,
    FindParams,
    ResponseType,
)
from .page import LivePageAdapter

if TYPE_CHECKING:
    from ..context import ScenarioContext

_HAVING_TEXT_JS = '''([selector, text]) => {
    const el = document.querySelector(selector);
    return el && el.innerText.includes(text) ? el : null;
}'''


class DomElement:
    """Live handle to one DOM element."""

    value_type = 'element'

    def __init__(
        self,
        handle: ElementHandle,
        context: ScenarioContext,
        name: str,
    ) -> None:
        self.handle = handle
        self._context = context
        self.name = name

    def __repr__(self) -> str:
        return f'<DomElement {self.name}>'

    # Equal when wrapping the same handle, whatever name it was found by.
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DomElement):
            return NotImplemented
        return self.handle == other.handle

    def __hash__(self) -> int:
        return hash(self.handle)

    def _wrap(self, raw: Any, name: str) -> Value:
        return Value(raw, name, self.name, self._context)

    async def get_text(self) -> Value:
        return self._wrap(await self.handle.inner_text(), f'Text of {self.name}')

    async def get_inner_html(self) -> Value:
        return self._wrap(
            await self.handle.inner_html(), f'Inner HTML of {self.name}',
        )

    async def get_attribute(self, key: str) -> Value:
        return self._wrap(
            await self.handle.get_attribute(key), f'{key} of {self.name}',
        )

    async def get_tag_name(self) -> Value:
        tag = await self.handle.evaluate('el => el.tagName.toLowerCase()')
        return self._wrap(tag, f'Tag name of {self.name}')

    async def has_class_name(self, class_name: str) -> Value:
        found = await self.handle.evaluate(
            '(el, name) => el.classList.contains(name)', class_name,
        )
        return self._wrap(found, f'{self.name} has class {class_name}')

    async def is_visible(self) -> Value:
        return self._wrap(
            await self.handle.is_visible(), f'Is {self.name} visible?',
        )

    async def click(self) -> None:
        await self.handle.click()


class BrowserPageAdapter(LivePageAdapter):
    """DOM of a rendered page."""

    response_type = ResponseType.BROWSER
    display_name = 'Browser'
    capabilities = frozenset({
        Capability.FIND,
        Capability.FIND_ALL,
        Capability.EVAL,
        Capability.WAIT,
        Capability.XPATH,
        Capability.INPUT,
        Capability.SCREENSHOT,
    })

    def can_query(self, raw: Any) -> bool:
        return isinstance(raw, DomElement)

    def _element(self, handle: ElementHandle | None, name: str, path: str) -> Value:
        if handle is None:
            return self._wrap(None, name, path)
        return self._wrap(DomElement(handle, self.context, name), name, path)

    def _scope(self, parent: Any) -> Any:
        return parent.handle if isinstance(parent, DomElement) else self._page

    async def _query(
        self,
        parent: Any,
        selector: str,
        params: FindParams,
    ) -> list[Value]:
        handles = await self._scope(parent).query_selector_all(selector)
        return [
            self._element(h, params.name_for(selector, i), selector)
            for i, h in enumerate(handles)
        ]

    async def _query_one(self, parent: Any, selector: str) -> Value:
        handle = await self._scope(parent).query_selector(selector)
        return self._element(handle, selector, selector)

    async def _text_of(self, raw: Any) -> str:
        if isinstance(raw, DomElement):
            return await raw.handle.inner_text()
        return await super()._text_of(raw)

    # ── XPath ─────────────────────────────────────────────────────────

    async def find_xpath(self, xpath: str) -> Value:
        self._require(Capability.XPATH, 'findXPath')
        handle = await self._page.query_selector(f'xpath={xpath}')
        return self._element(handle, xpath, xpath)

    async def find_all_xpath(self, xpath: str) -> list[Value]:
        self._require(Capability.XPATH, 'findAllXPath')
        handles = await self._page.query_selector_all(f'xpath={xpath}')
        return [
            self._element(h, f'{xpath} [{i}]', xpath)
            for i, h in enumerate(handles)
        ]

    # ── Waits ─────────────────────────────────────────────────────────

    async def wait_for_xpath(
        self, xpath: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        self._require(Capability.XPATH, 'waitForXPath')
        handle = await self._wait(
            xpath, 'exists', timeout_ms,
            self._page.wait_for_selector(
                f'xpath={xpath}', state='attached', timeout=timeout_ms,
            ),
        )
        return self._element(handle, xpath, xpath)

    async def wait_for_exists(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        handle = await self._wait(
            selector, 'exists', timeout_ms,
            self._page.wait_for_selector(
                selector, state='attached', timeout=timeout_ms,
            ),
        )
        return self._element(handle, selector, selector)

    async def wait_for_visible(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        handle = await self._wait(
            selector, 'is visible', timeout_ms,
            self._page.wait_for_selector(
                selector, state='visible', timeout=timeout_ms,
            ),
        )
        return self._element(handle, selector, selector)

    async def wait_for_hidden(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        """Wait until *selector* is hidden or detached.

        Playwright resolves hidden waits without an element, so the
        returned Value is empty either way; a timeout is logged.
        """
        handle = await self._wait(
            selector, 'is hidden', timeout_ms,
            self._page.wait_for_selector(
                selector, state='hidden', timeout=timeout_ms,
            ),
        )
        return self._element(handle, selector, selector)

    async def wait_for_having_text(
        self,
        selector: str,
        text: str,
        timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        js_handle = await self._wait(
            selector, f'has text "{text}"', timeout_ms,
            self._page.wait_for_function(
                _HAVING_TEXT_JS, arg=[selector, text], timeout=timeout_ms,
            ),
        )
        handle = js_handle.as_element() if js_handle is not None else None
        return self._element(handle, selector, selector)

    # ── Input ─────────────────────────────────────────────────────────

    async def type_text(self, selector: str, text: str) -> Value:
        self._require(Capability.INPUT, 'type')
        element = await self._query_one(None, selector)
        if element.exists:
            await element.raw.handle.type(text)
        return element

    async def clear(self, selector: str) -> Value:
        self._require(Capability.INPUT, 'clear')
        element = await self._query_one(None, selector)
        if element.exists:
            await element.raw.handle.fill('')
        return element

    async def select_option(self, selector: str, *values: str) -> list[str]:
        self._require(Capability.INPUT, 'selectOption')
        return await self._page.select_option(selector, list(values))

    async def click(
        self,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> Value:
        self._require(Capability.INPUT, 'click')
        element = await self.find(selector, contains_or_matches, opts)
        if element.exists:
            await element.raw.click()
        return element
