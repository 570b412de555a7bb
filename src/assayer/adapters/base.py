"""Common contract for every kind of retrieved content.

A :class:`ContentAdapter` variant wraps one scenario's content and answers
``find`` / ``find_all`` / ``eval`` / ``get_root`` plus the live-page waits.
Each variant declares its capability table up front; anything outside the
table raises :class:`~assayer.errors.UnsupportedOperationError` naming the
operation and the variant, instead of quietly returning nothing.

Selector filtering is shared: an optional contains-string or regex narrows
the candidates before the first one is picked.

    await adapter.find('li.item')                       # first match
    await adapter.find('li.item', 'Results')            # containing text
    await adapter.find('li.item', re.compile(r'^Up'))   # matching pattern
    await adapter.find_all('li', 'results', FindOptions(case_sensitive=False))
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Union
from urllib.parse import urljoin

from ..errors import UnsupportedOperationError
from ..value import Value
from .http_bundle import HttpBundle

if TYPE_CHECKING:
    from ..context import ScenarioContext


class ResponseType(str, Enum):
    """Content variant tag."""

    HTTP = 'http'
    JSON = 'json'
    BROWSER = 'browser'
    COMPONENT = 'component'


class Capability(str, Enum):
    """Operations an adapter may advertise."""

    FIND = 'find'
    FIND_ALL = 'findAll'
    EVAL = 'eval'
    WAIT = 'wait'
    XPATH = 'xpath'
    INPUT = 'input'
    SCREENSHOT = 'screenshot'


DEFAULT_WAIT_TIMEOUT_MS = 30000
NAVIGATION_TIMEOUT_MS = 10000


@dataclass(frozen=True, slots=True)
class FindOptions:
    """Text filter settings for ``find`` / ``find_all``."""

    case_sensitive: bool = True
    exact: bool = False


FindArg = Union[str, re.Pattern[str], FindOptions, None]


@dataclass(frozen=True, slots=True)
class FindParams:
    """Resolved filter arguments of one find call."""

    contains: str | None = None
    matches: re.Pattern[str] | None = None
    opts: FindOptions = field(default_factory=FindOptions)

    @property
    def filtering(self) -> bool:
        return self.contains is not None or self.matches is not None

    def accepts(self, text: str) -> bool:
        """True if *text* passes the contains/matches filter."""
        if self.contains is not None:
            needle, haystack = self.contains, text
            if not self.opts.case_sensitive:
                needle, haystack = needle.lower(), haystack.lower()
            if self.opts.exact:
                return haystack == needle
            return needle in haystack
        if self.matches is not None:
            pattern = self.matches
            if not self.opts.case_sensitive:
                pattern = re.compile(pattern.pattern, pattern.flags | re.IGNORECASE)
            if self.opts.exact:
                return pattern.fullmatch(text) is not None
            return pattern.search(text) is not None
        return True

    def name_for(self, selector: str, index: int | None = None) -> str:
        if self.contains is not None:
            name = f'{selector} containing "{self.contains}"'
        elif self.matches is not None:
            name = f'{selector} matching {self.matches.pattern}'
        else:
            name = selector
        return name if index is None else f'{name} [{index}]'


def get_find_params(a: FindArg = None, b: FindOptions | None = None) -> FindParams:
    """Sort the overloaded find arguments into a :class:`FindParams`."""
    if isinstance(a, FindOptions):
        return FindParams(opts=a)
    opts = b or FindOptions()
    if isinstance(a, str):
        return FindParams(contains=a, opts=opts)
    if isinstance(a, re.Pattern):
        return FindParams(matches=a, opts=opts)
    return FindParams(opts=opts)


class ContentAdapter(ABC):
    """Uniform query surface over one scenario's content."""

    response_type: ClassVar[ResponseType]
    display_name: ClassVar[str]
    capabilities: ClassVar[frozenset[Capability]] = frozenset()

    def __init__(
        self,
        context: ScenarioContext,
        http: HttpBundle | None = None,
    ) -> None:
        self.context = context
        self.http = http or HttpBundle.empty()

    # ── Capability table ──────────────────────────────────────────────

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def _require(self, capability: Capability, operation: str) -> None:
        if capability not in self.capabilities:
            raise UnsupportedOperationError(operation, self.display_name)

    @property
    def is_live(self) -> bool:
        return Capability.WAIT in self.capabilities

    # ── Content ───────────────────────────────────────────────────────

    @abstractmethod
    def get_root(self) -> Any:
        """Underlying content of this adapter."""

    def can_query(self, raw: Any) -> bool:
        """True if *raw* can serve as the root of a sub-query."""
        return False

    def _wrap(self, raw: Any, name: str, path: str = '') -> Value:
        return Value(raw, name, path, self.context)

    def _not_found(self, selector: str) -> Value:
        return self._wrap(None, selector, selector)

    # ── Query ─────────────────────────────────────────────────────────

    async def find(
        self,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> Value:
        return await self.find_within(None, selector, contains_or_matches, opts)

    async def find_all(
        self,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> list[Value]:
        return await self.find_all_within(
            None, selector, contains_or_matches, opts,
        )

    async def find_within(
        self,
        parent: Any,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> Value:
        """First match under *parent* (``None`` means the root)."""
        self._require(Capability.FIND, 'find')
        params = get_find_params(contains_or_matches, opts)
        if not params.filtering:
            return await self._query_one(parent, selector)
        for candidate in await self._query(parent, selector, params):
            if params.accepts(await self._text_of(candidate.raw)):
                return candidate.derive(candidate.raw, params.name_for(selector))
        return self._wrap(None, params.name_for(selector), selector)

    async def find_all_within(
        self,
        parent: Any,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> list[Value]:
        """All matches under *parent*, in document order."""
        self._require(Capability.FIND_ALL, 'findAll')
        params = get_find_params(contains_or_matches, opts)
        candidates = await self._query(parent, selector, params)
        if not params.filtering:
            return candidates
        return [
            c for c in candidates
            if params.accepts(await self._text_of(c.raw))
        ]

    async def _query(
        self,
        parent: Any,
        selector: str,
        params: FindParams,
    ) -> list[Value]:
        """Unfiltered candidates for *selector* under *parent*."""
        raise UnsupportedOperationError('findAll', self.display_name)

    async def _query_one(self, parent: Any, selector: str) -> Value:
        candidates = await self._query(parent, selector, FindParams())
        if not candidates:
            return self._not_found(selector)
        first = candidates[0]
        return first.derive(first.raw, selector)

    async def _text_of(self, raw: Any) -> str:
        return '' if raw is None else str(raw)

    async def eval(self, code: str, *args: Any) -> Any:
        raise UnsupportedOperationError('eval', self.display_name)

    # ── Waits ─────────────────────────────────────────────────────────

    async def wait_for_exists(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        await self.context.pause(1)
        return self._not_found(selector)

    async def wait_for_visible(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        await self.context.pause(1)
        return self._not_found(selector)

    async def wait_for_hidden(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        await self.context.pause(1)
        return self._not_found(selector)

    async def wait_for_having_text(
        self,
        selector: str,
        text: str,
        timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        await self.context.pause(1)
        return self._not_found(selector)

    async def wait_for_navigation(
        self,
        timeout_ms: int = NAVIGATION_TIMEOUT_MS,
        wait_until: str = 'load',
    ) -> None:
        await self.context.pause(1)

    async def wait_for_load(self, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS) -> None:
        await self.context.pause(1)

    async def wait_for_ready(self, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS) -> None:
        await self.context.pause(1)

    async def wait_for_network_idle(
        self, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> None:
        await self.context.pause(1)

    async def wait_for_function(
        self, js: str, *args: Any, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> None:
        await self.context.pause(1)

    # ── Browser-only extras ───────────────────────────────────────────

    async def wait_for_xpath(
        self, xpath: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        raise UnsupportedOperationError('waitForXPath', self.display_name)

    async def find_xpath(self, xpath: str) -> Value:
        raise UnsupportedOperationError('findXPath', self.display_name)

    async def find_all_xpath(self, xpath: str) -> list[Value]:
        raise UnsupportedOperationError('findAllXPath', self.display_name)

    async def type_text(self, selector: str, text: str) -> Value:
        raise UnsupportedOperationError('type', self.display_name)

    async def clear(self, selector: str) -> Value:
        raise UnsupportedOperationError('clear', self.display_name)

    async def select_option(self, selector: str, *values: str) -> list[str]:
        raise UnsupportedOperationError('selectOption', self.display_name)

    async def click(
        self,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> Value:
        raise UnsupportedOperationError('click', self.display_name)

    async def screenshot(self) -> bytes:
        raise UnsupportedOperationError('screenshot', self.display_name)

    # ── HTTP response accessors ───────────────────────────────────────

    @property
    def status_code(self) -> Value:
        return self._wrap(self.http.status_code, 'HTTP Status Code')

    @property
    def status_message(self) -> Value:
        return self._wrap(self.http.status_message, 'HTTP Status Message')

    @property
    def body(self) -> Value:
        return self._wrap(self.http.body, 'Raw Response Body')

    @property
    def length(self) -> Value:
        return self._wrap(len(self.http.body), 'Length of Response Body')

    @property
    def headers(self) -> Value:
        return self._wrap(dict(self.http.headers), 'HTTP Headers')

    @property
    def cookies(self) -> Value:
        return self._wrap(dict(self.http.cookies), 'HTTP Cookies')

    @property
    def method(self) -> Value:
        return self._wrap(self.http.method, 'Method')

    @property
    def url(self) -> Value:
        return self._wrap(self.http.url, 'Request URL')

    @property
    def final_url(self) -> Value:
        return self._wrap(
            self.http.final_url, 'Response URL (after redirects)',
        )

    @property
    def redirect_count(self) -> Value:
        return self._wrap(self.http.redirect_count, 'Redirect Count')

    @property
    def load_time(self) -> Value:
        return self._wrap(
            self.http.load_time_ms, 'Request to Response Load Time',
        )

    @property
    def json_body(self) -> Value:
        try:
            return self._wrap(json.loads(self.http.body), 'JSON Response')
        except ValueError as exc:
            return self._wrap(None, f'JSON Response: {exc}')

    def header(self, key: str) -> Value:
        """One header, trying *key* as given and then lower-cased."""
        headers = self.http.headers
        if key not in headers:
            key = key.lower()
        return self._wrap(headers.get(key), f'HTTP Headers[{key}]')

    def cookie(self, key: str) -> Value:
        return self._wrap(self.http.cookies.get(key), f'HTTP Cookies[{key}]')

    def absolutize_uri(self, uri: str) -> str:
        """Resolve *uri* against the requested URL."""
        return urljoin(self.http.url or self.context.settings.base_url, uri)
