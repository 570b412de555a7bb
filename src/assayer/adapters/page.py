"""Shared base for adapters over a live Playwright page."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .base import (
    DEFAULT_WAIT_TIMEOUT_MS,
    NAVIGATION_TIMEOUT_MS,
    Capability,
    ContentAdapter,
)
from .http_bundle import HttpBundle

if TYPE_CHECKING:
    from ..context import ScenarioContext


class LivePageAdapter(ContentAdapter):
    """Content that is still running in a browser page.

    Waits really wait here. A wait that times out records a failed
    result in the scenario log and hands back a not-found Value.
    """

    def __init__(
        self,
        context: ScenarioContext,
        page: Page,
        http: HttpBundle | None = None,
    ) -> None:
        super().__init__(context, http)
        self._page = page

    @property
    def page(self) -> Page:
        return self._page

    def get_root(self) -> Page:
        return self._page

    async def eval(self, code: str, *args: Any) -> Any:
        """Evaluate *code* in the page.

        Playwright passes a single argument to the page function, so
        several arguments arrive there as one list.
        """
        self._require(Capability.EVAL, 'eval')
        if not args:
            return await self._page.evaluate(code)
        if len(args) == 1:
            return await self._page.evaluate(code, args[0])
        return await self._page.evaluate(code, list(args))

    async def screenshot(self) -> bytes:
        self._require(Capability.SCREENSHOT, 'screenshot')
        return await self._page.screenshot()

    async def _wait(
        self,
        selector: str,
        description: str,
        timeout_ms: int,
        pending: Awaitable[Any],
    ) -> Any:
        """Await *pending*; on timeout log a failure and return ``None``."""
        self._require(Capability.WAIT, 'waitFor')
        try:
            return await pending
        except PlaywrightTimeoutError as exc:
            self.context.log.fail(
                f'{selector} {description} within {timeout_ms}ms',
                str(exc),
            )
            self.context.logger.info(
                'wait_timed_out',
                selector=selector,
                condition=description,
                timeout_ms=timeout_ms,
            )
            return None

    # ── Page-level waits ──────────────────────────────────────────────

    async def _wait_for_state(self, state: str, timeout_ms: int) -> None:
        await self._wait(
            'Page', f'reached {state} state', timeout_ms,
            self._page.wait_for_load_state(state, timeout=timeout_ms),
        )

    async def wait_for_navigation(
        self,
        timeout_ms: int = NAVIGATION_TIMEOUT_MS,
        wait_until: str = 'load',
    ) -> None:
        """Wait for the next main-frame navigation, then *wait_until*."""

        async def navigated() -> None:
            await self._page.wait_for_event('framenavigated', timeout=timeout_ms)
            await self._page.wait_for_load_state(wait_until, timeout=timeout_ms)

        await self._wait('Page', 'navigated', timeout_ms, navigated())

    async def wait_for_load(self, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS) -> None:
        await self._wait_for_state('load', timeout_ms)

    async def wait_for_ready(self, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS) -> None:
        await self._wait_for_state('domcontentloaded', timeout_ms)

    async def wait_for_network_idle(
        self, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> None:
        await self._wait_for_state('networkidle', timeout_ms)

    async def wait_for_function(
        self, js: str, *args: Any, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> None:
        """Poll *js* in the page until it returns something truthy.

        Arguments are passed the same way as :meth:`eval`.
        """
        arg = args[0] if len(args) == 1 else (list(args) if args else None)
        await self._wait(
            js, 'returned true', timeout_ms,
            self._page.wait_for_function(js, arg=arg, timeout=timeout_ms),
        )
