"""Transport-neutral snapshot of an HTTP response.

Adapters expose status, headers, cookies and body uniformly through this
bundle. Variants that did not come from a plain HTTP fetch keep the empty
defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

import httpx


@dataclass(frozen=True, slots=True)
class HttpBundle:
    """Response metadata and body."""

    status_code: int | None = None
    status_message: str = ''
    body: str = ''
    headers: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    cookies: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    method: str = ''
    url: str = ''
    final_url: str = ''
    redirect_count: int = 0
    load_time_ms: float | None = None

    @classmethod
    def empty(cls) -> HttpBundle:
        return cls()

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> HttpBundle:
        """Snapshot an ``httpx.Response``.

        Header names are lower-cased; repeated headers are joined with
        ``', '`` as httpx does.
        """
        request = response.request if _has_request(response) else None
        elapsed: float | None = None
        try:
            elapsed = response.elapsed.total_seconds() * 1000
        except RuntimeError:
            # elapsed is only set once the response has been closed.
            elapsed = None

        first_url = str(response.history[0].url) if response.history else ''
        url = str(request.url) if request is not None else ''
        return cls(
            status_code=response.status_code,
            status_message=response.reason_phrase,
            body=response.text,
            headers=MappingProxyType(
                {k.lower(): v for k, v in response.headers.items()},
            ),
            cookies=MappingProxyType(
                dict(response.cookies) if request is not None else {},
            ),
            method=request.method if request is not None else '',
            url=first_url or url,
            final_url=url,
            redirect_count=len(response.history),
            load_time_ms=elapsed,
        )


def _has_request(response: httpx.Response) -> bool:
    try:
        response.request
    except RuntimeError:
        return False
    return True
