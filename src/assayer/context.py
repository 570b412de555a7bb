"""Per-scenario execution context.

A :class:`ScenarioContext` owns the scenario's :class:`AssertionLog` and,
once the transport has produced content, the adapter wrapping it.
Queries and assertions made through the context run one after another
on the scenario's task, so the log order is the call order.

Usage::

    context = ScenarioContext.from_env('Homepage')
    context.attach(JsonDocumentAdapter.from_httpx(context, response))
    items = await context.find('data.items')
    context.assert_that(items).length.greater_than(0)
    sys.exit(context.report())
"""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timezone
from typing import IO, TYPE_CHECKING, Any

import structlog

from .assertion import Assertion
from .errors import NoContentError
from .observability.logging import configure_logging, get_logger
from .report import SuiteReport, render
from .results import AssertionLog, LogItem
from .settings import RunSettings
from .value import Value

if TYPE_CHECKING:
    from .adapters.base import ContentAdapter, FindArg, FindOptions


class ScenarioContext:
    """Log, settings and content of one running scenario."""

    def __init__(
        self,
        title: str,
        settings: RunSettings | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.title = title
        self.settings = settings or RunSettings.from_env()
        self.started_at = datetime.now(timezone.utc)
        self.log = AssertionLog(title)
        self.logger = (logger or get_logger(__name__)).bind(scenario=title)
        self._adapter: ContentAdapter | None = None
        if title:
            self.log.heading(title)

    @classmethod
    def from_env(
        cls, title: str, env: dict[str, str] | None = None,
    ) -> ScenarioContext:
        """Context for a scenario file started by the tracker.

        Settings come from the ASSAYER_* variables the launcher exports,
        and logging is configured so diagnostics stay off stdout.
        """
        configure_logging()
        return cls(title, RunSettings.from_env(env))

    # ── Content ───────────────────────────────────────────────────────

    @property
    def adapter(self) -> ContentAdapter | None:
        return self._adapter

    def attach(self, adapter: ContentAdapter) -> ContentAdapter:
        """Make *adapter* the content for the rest of the scenario."""
        self._adapter = adapter
        self.logger.debug(
            'content_attached', response_type=adapter.response_type.value,
        )
        return adapter

    def _require_adapter(self) -> ContentAdapter:
        if self._adapter is None:
            raise NoContentError(f'No content loaded for {self.title!r}')
        return self._adapter

    async def find(
        self,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> Value:
        return await self._require_adapter().find(
            selector, contains_or_matches, opts,
        )

    async def find_all(
        self,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> list[Value]:
        return await self._require_adapter().find_all(
            selector, contains_or_matches, opts,
        )

    async def eval(self, code: str, *args: Any) -> Any:
        return await self._require_adapter().eval(code, *args)

    # ── Waits ─────────────────────────────────────────────────────────

    def _timeout(self, timeout_ms: int | None) -> int:
        return self.settings.timeout_ms if timeout_ms is None else timeout_ms

    async def wait_for_exists(
        self, selector: str, timeout_ms: int | None = None,
    ) -> Value:
        return await self._require_adapter().wait_for_exists(
            selector, self._timeout(timeout_ms),
        )

    async def wait_for_visible(
        self, selector: str, timeout_ms: int | None = None,
    ) -> Value:
        return await self._require_adapter().wait_for_visible(
            selector, self._timeout(timeout_ms),
        )

    async def wait_for_hidden(
        self, selector: str, timeout_ms: int | None = None,
    ) -> Value:
        return await self._require_adapter().wait_for_hidden(
            selector, self._timeout(timeout_ms),
        )

    async def wait_for_having_text(
        self, selector: str, text: str, timeout_ms: int | None = None,
    ) -> Value:
        return await self._require_adapter().wait_for_having_text(
            selector, text, self._timeout(timeout_ms),
        )

    async def wait_for_xpath(
        self, xpath: str, timeout_ms: int | None = None,
    ) -> Value:
        return await self._require_adapter().wait_for_xpath(
            xpath, self._timeout(timeout_ms),
        )

    async def wait_for_navigation(
        self, timeout_ms: int | None = None, wait_until: str = 'load',
    ) -> None:
        await self._require_adapter().wait_for_navigation(
            self._timeout(timeout_ms), wait_until,
        )

    async def wait_for_load(self, timeout_ms: int | None = None) -> None:
        await self._require_adapter().wait_for_load(self._timeout(timeout_ms))

    async def wait_for_ready(self, timeout_ms: int | None = None) -> None:
        await self._require_adapter().wait_for_ready(self._timeout(timeout_ms))

    async def wait_for_network_idle(self, timeout_ms: int | None = None) -> None:
        await self._require_adapter().wait_for_network_idle(
            self._timeout(timeout_ms),
        )

    async def wait_for_function(
        self, js: str, *args: Any, timeout_ms: int | None = None,
    ) -> None:
        await self._require_adapter().wait_for_function(
            js, *args, timeout_ms=self._timeout(timeout_ms),
        )

    # ── Results ───────────────────────────────────────────────────────

    def assert_that(self, subject: Any, message: str | None = None) -> Assertion:
        return Assertion(self, subject, message)

    def comment(self, message: Any) -> LogItem:
        return self.log.comment(str(message))

    async def pause(self, ms: float) -> None:
        await asyncio.sleep(ms / 1000)

    # ── Lifecycle ─────────────────────────────────────────────────────

    def finish(self) -> None:
        """Seal the log and drop the content."""
        self.log.seal()
        self._adapter = None
        self.logger.info(
            'scenario_finished',
            passed=self.log.passed,
            pass_count=self.log.pass_count,
            fail_count=self.log.fail_count,
        )

    def report(self, stream: IO[str] | None = None) -> int:
        """Finish, print the report in ``settings.output`` format.

        Returns the exit code, so a scenario file can end with
        ``sys.exit(context.report())``.
        """
        if not self.finished:
            self.finish()
        text = render(
            SuiteReport.from_contexts(
                self.title, [self], started_at=self.started_at,
            ),
            self.settings.output,
        )
        stream = stream or sys.stdout
        stream.write(text if text.endswith('\n') else text + '\n')
        stream.flush()
        return self.exit_code

    @property
    def finished(self) -> bool:
        return self.log.sealed

    @property
    def exit_code(self) -> int:
        return 0 if self.log.passed else 1
