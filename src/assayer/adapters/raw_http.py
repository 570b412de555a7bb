"""Raw HTTP content: status, headers and body, no selector queries."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from .base import Capability, ContentAdapter, ResponseType
from .http_bundle import HttpBundle

if TYPE_CHECKING:
    from ..context import ScenarioContext


class RawHttpAdapter(ContentAdapter):
    """Plain response body.

    Only the HTTP accessors are meaningful here; ``find``, ``find_all``
    and ``eval`` are rejected.
    """

    response_type = ResponseType.HTTP
    display_name = 'Raw HTTP'
    capabilities: frozenset[Capability] = frozenset()

    @classmethod
    def from_httpx(
        cls,
        context: ScenarioContext,
        response: httpx.Response,
    ) -> RawHttpAdapter:
        return cls(context, HttpBundle.from_httpx(response))

    def get_root(self) -> str:
        return self.http.body
