"""JSON document content queried with path expressions.

The adapter prefers JMESPath. If it cannot be loaded the builtin
:mod:`assayer.query.path` resolver takes over for the rest of the
adapter's life; callers never see the difference except in what the
expressions can do.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable

import httpx

from ..observability.logging import get_logger
from ..query.loader import EngineLoad, QueryEngine, load_query_engine
from ..query.path import PathQuery
from ..value import Value
from .base import (
    Capability,
    ContentAdapter,
    FindArg,
    FindOptions,
    FindParams,
    ResponseType,
    get_find_params,
)
from .http_bundle import HttpBundle

if TYPE_CHECKING:
    from ..context import ScenarioContext

logger = get_logger(__name__)


class JsonDocumentAdapter(ContentAdapter):
    """Parsed JSON body."""

    response_type = ResponseType.JSON
    display_name = 'JSON'
    capabilities = frozenset({Capability.FIND, Capability.FIND_ALL})

    def __init__(
        self,
        context: ScenarioContext,
        http: HttpBundle | None = None,
        *,
        document: Any = None,
        engine_loader: Callable[[], EngineLoad] = load_query_engine,
    ) -> None:
        super().__init__(context, http)
        self._engine_loader = engine_loader
        self._engine: QueryEngine | None = None
        if document is None:
            document = self._parse_body()
        self._json = document

    @classmethod
    def from_httpx(
        cls,
        context: ScenarioContext,
        response: httpx.Response,
        **kwargs: Any,
    ) -> JsonDocumentAdapter:
        return cls(context, HttpBundle.from_httpx(response), **kwargs)

    def _parse_body(self) -> Any:
        try:
            document = json.loads(self.http.body)
        except ValueError as exc:
            self.context.log.fail('JSON is valid', exc)
            return {}
        if document is None:
            self.context.log.fail('JSON is valid', 'Document is null')
            return {}
        self.context.log.pass_('JSON is valid')
        return document

    def get_root(self) -> Any:
        return self._json

    def can_query(self, raw: Any) -> bool:
        return isinstance(raw, (Mapping, list, tuple))

    @property
    def engine(self) -> QueryEngine:
        """The query engine, loaded on first use and then fixed."""
        if self._engine is None:
            outcome = self._engine_loader()
            if outcome.engine is not None:
                self._engine = outcome.engine
            else:
                logger.debug('query_engine_fallback', reason=outcome.reason)
                self._engine = PathQuery()
        return self._engine

    async def _query_one(self, parent: Any, selector: str) -> Value:
        root = self._json if parent is None else parent
        selection = self.engine.search(root, selector)
        return self._wrap(selection, selector, selector)

    async def _query(
        self,
        parent: Any,
        selector: str,
        params: FindParams,
    ) -> list[Value]:
        return [await self._query_one(parent, selector)]

    async def _text_of(self, raw: Any) -> str:
        if raw is None:
            return ''
        if isinstance(raw, str):
            return raw
        return json.dumps(raw)

    async def find_all_within(
        self,
        parent: Any,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> list[Value]:
        """The single ``find`` result as a list.

        A filter that rejects the result yields an empty list.
        """
        self._require(Capability.FIND_ALL, 'findAll')
        params = get_find_params(contains_or_matches, opts)
        item = await self._query_one(parent, selector)
        if params.filtering and not params.accepts(await self._text_of(item.raw)):
            return []
        return [item]
