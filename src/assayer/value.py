"""Immutable wrapper around one extracted datum.

Every query result is a :class:`Value`, including "nothing found": a miss
is a Value whose ``raw`` is ``None``. Values carry the name and selector
that produced them so assertion messages can say what was checked.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence, Sized
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .context import ScenarioContext
    from .adapters.base import FindArg, FindOptions


@dataclass(frozen=True, slots=True)
class Value:
    """One query result plus its provenance.

    Attributes:
        raw: The extracted datum. Scalars, structures, lists, or live
            handles (DOM elements, component nodes).
        name: Human-readable identity used in log messages.
        path: Selector or path that produced the datum.
        context: Owning scenario context, used for chained queries.
    """

    raw: Any
    name: str = ''
    path: str = ''
    context: ScenarioContext | None = field(
        default=None, repr=False, compare=False,
    )

    @property
    def exists(self) -> bool:
        return self.raw is not None

    def is_null(self) -> bool:
        return self.raw is None

    @property
    def type_name(self) -> str:
        return type_of(self.raw)

    def derive(self, raw: Any, name: str, path: str | None = None) -> Value:
        """Return a new Value in the same context; ``self`` is untouched."""
        return replace(
            self,
            raw=raw,
            name=name,
            path=self.path if path is None else path,
        )

    def get(self, key: str | int) -> Value:
        """Property or item lookup, ``None`` when absent."""
        raw = self.raw
        found = None
        if isinstance(raw, Mapping):
            found = raw.get(key)
        elif _is_sequence(raw):
            try:
                found = raw[int(key)]
            except (ValueError, IndexError):
                found = None
        return self.derive(found, f'{self.name}[{key}]')

    @property
    def length(self) -> Value:
        raw = self.raw
        size = len(raw) if isinstance(raw, Sized) else None
        return self.derive(size, f'Length of {self.name}')

    @property
    def keys(self) -> Value:
        raw = self.raw
        if isinstance(raw, Mapping):
            keys: list[Any] | None = list(raw.keys())
        elif _is_sequence(raw):
            keys = list(range(len(raw)))
        else:
            keys = None
        return self.derive(keys, f'Keys of {self.name}')

    def to_string(self) -> str:
        raw = self.raw
        if raw is None:
            return ''
        if isinstance(raw, (Mapping, list, tuple)):
            return json.dumps(raw, default=str)
        if isinstance(raw, bool):
            return 'true' if raw else 'false'
        return str(raw)

    def __str__(self) -> str:
        return self.to_string()

    # ── Derived queries ───────────────────────────────────────────────

    @property
    def is_queryable(self) -> bool:
        adapter = self._adapter()
        return adapter is not None and adapter.can_query(self.raw)

    async def find(
        self,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> Value:
        """First match of *selector* inside this Value.

        Scalars and other data the adapter cannot search give a not-found
        Value rather than a match from the page root.
        """
        if not self.is_queryable:
            return self.derive(None, selector, selector)
        return await self._adapter().find_within(
            self.raw, selector, contains_or_matches, opts,
        )

    async def find_all(
        self,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> list[Value]:
        """All matches of *selector* inside this Value."""
        if not self.is_queryable:
            return []
        return await self._adapter().find_all_within(
            self.raw, selector, contains_or_matches, opts,
        )

    def _adapter(self):
        if self.context is None:
            return None
        return self.context.adapter


def type_of(raw: Any) -> str:
    """Name the JSON-ish type of *raw*."""
    if raw is None:
        return 'null'
    value_type = getattr(raw, 'value_type', None)
    if isinstance(value_type, str):
        return value_type
    if isinstance(raw, bool):
        return 'boolean'
    if isinstance(raw, (int, float)):
        return 'number'
    if isinstance(raw, str):
        return 'string'
    if isinstance(raw, Mapping):
        return 'object'
    if _is_sequence(raw):
        return 'array'
    return type(raw).__name__.lower()


def _is_sequence(raw: Any) -> bool:
    return isinstance(raw, Sequence) and not isinstance(raw, (str, bytes))
