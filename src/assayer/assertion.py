"""Assertion vocabulary recorded into a scenario's log.

    context.assert_that(await context.find('h1')).exists()
    context.assert_that(status, 'Status is OK').equals(200)
    context.assert_that(items).length.greater_than(2)
    context.assert_that(banner).optional.not_.exists()

Each check appends exactly one Pass or Fail entry; a failing check never
raises.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sized
from typing import TYPE_CHECKING, Any

from .value import Value, type_of

if TYPE_CHECKING:
    from .context import ScenarioContext


_NEGATED_VERBS = {
    'equals': 'does not equal',
    'exists': 'does not exist',
    'contains': 'does not contain',
    'matches': 'does not match',
}


class Assertion:
    """Checks against one subject, logged to the owning context."""

    def __init__(
        self,
        context: ScenarioContext,
        subject: Any,
        message: str | None = None,
        *,
        negated: bool = False,
        optional: bool = False,
    ) -> None:
        self._context = context
        self._subject = subject
        self._message = message
        self._negated = negated
        self._optional = optional
        self.last_result: bool | None = None

    @property
    def raw(self) -> Any:
        if isinstance(self._subject, Value):
            return self._subject.raw
        return self._subject

    @property
    def subject_name(self) -> str:
        if isinstance(self._subject, Value) and self._subject.name:
            return self._subject.name
        return repr(self._subject)

    def _copy(self, subject: Any = None, **flags: bool) -> Assertion:
        return Assertion(
            self._context,
            self._subject if subject is None else subject,
            self._message,
            negated=flags.get('negated', self._negated),
            optional=flags.get('optional', self._optional),
        )

    # ── Modifiers ─────────────────────────────────────────────────────

    @property
    def not_(self) -> Assertion:
        return self._copy(negated=not self._negated)

    @property
    def optional(self) -> Assertion:
        return self._copy(optional=True)

    @property
    def length(self) -> Assertion:
        raw = self.raw
        size = len(raw) if isinstance(raw, Sized) else None
        subject = Value(size, f'Length of {self.subject_name}')
        return self._copy(subject=subject)

    # ── Checks ────────────────────────────────────────────────────────

    def equals(self, expected: Any) -> Assertion:
        return self._record(
            self.raw == expected,
            f'{self.subject_name} {self._verb("equals")} {expected!r}',
            f'Actual value: {self.raw!r}',
        )

    def exists(self) -> Assertion:
        return self._record(
            self.raw is not None,
            f'{self.subject_name} {self._verb("exists")}',
            f'Actual value: {self.raw!r}',
        )

    def contains(self, item: Any) -> Assertion:
        raw = self.raw
        if isinstance(raw, str):
            found = str(item) in raw
        elif isinstance(raw, (Mapping, list, tuple, set, frozenset)):
            found = item in raw
        else:
            found = False
        return self._record(
            found,
            f'{self.subject_name} {self._verb("contains")} {item!r}',
            f'Actual value: {raw!r}',
        )

    def matches(self, pattern: str | re.Pattern[str]) -> Assertion:
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        text = '' if self.raw is None else str(self.raw)
        return self._record(
            compiled.search(text) is not None,
            f'{self.subject_name} {self._verb("matches")} /{compiled.pattern}/',
            f'Actual value: {self.raw!r}',
        )

    def greater_than(self, other: Any) -> Assertion:
        return self._record(
            _compare(self.raw, other, lambda a, b: a > b),
            f'{self.subject_name} {self._verb("is greater than")} {other!r}',
            f'Actual value: {self.raw!r}',
        )

    def less_than(self, other: Any) -> Assertion:
        return self._record(
            _compare(self.raw, other, lambda a, b: a < b),
            f'{self.subject_name} {self._verb("is less than")} {other!r}',
            f'Actual value: {self.raw!r}',
        )

    def type_is(self, type_name: str) -> Assertion:
        actual = type_of(self.raw)
        return self._record(
            actual == type_name,
            f'{self.subject_name} {self._verb("is type")} {type_name}',
            f'Actual type: {actual}',
        )

    # ── Recording ─────────────────────────────────────────────────────

    def _verb(self, verb: str) -> str:
        if not self._negated:
            return verb
        if verb.startswith('is '):
            return 'is not ' + verb[3:]
        return _NEGATED_VERBS.get(verb, f'not {verb}')

    def _record(self, outcome: bool, default_message: str, details: Any) -> Assertion:
        passed = outcome != self._negated
        message = self._message or default_message
        log = self._context.log
        if passed:
            log.pass_(message)
        else:
            log.fail(message, details, optional=self._optional)
        self.last_result = passed
        return self


def _compare(left: Any, right: Any, op) -> bool:
    try:
        return bool(op(left, right))
    except TypeError:
        return False
