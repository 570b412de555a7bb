"""Assertion results and the per-scenario append-only log.

Usage::

    log = AssertionLog('Homepage')
    log.pass_('HTTP status is 200')
    log.fail('Title contains "Welcome"', details=['got "Hello"'])
    log.fail('Has favicon', optional=True)
    log.comment('3 articles')
    log.seal()

    log.passed        # False
    log.pass_count    # 1
    log.fail_count    # 1 (optional failures are not counted)

Entries are kept in call order and never edited once appended. After
:meth:`AssertionLog.seal` the log is read-only.
"""

from __future__ import annotations

import csv
import html
import io
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

from .console import (
    CommentLine,
    ConsoleLine,
    DetailLine,
    FailLine,
    HeadingLine,
    OptionalFailLine,
    PassLine,
)
from .errors import LogSealedError


class LogItemType(str, Enum):
    """Kind of log entry."""

    RESULT = 'result'
    COMMENT = 'comment'
    HEADING = 'heading'


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class LogItem:
    """Base log entry."""

    message: str
    timestamp: str = field(default_factory=_now_iso, kw_only=True)

    kind: ClassVar[LogItemType] = LogItemType.COMMENT
    class_name: ClassVar[str] = 'comment'

    @property
    def passed(self) -> bool:
        return False

    @property
    def failed(self) -> bool:
        return False

    @property
    def is_optional(self) -> bool:
        return False

    @property
    def details_message(self) -> str:
        return ''

    def to_console(self) -> list[ConsoleLine]:
        return [CommentLine(self.message)]

    def to_json(self) -> dict[str, Any]:
        return {
            'type': self.kind.value,
            'className': self.class_name,
            'message': self.message,
            'passed': self.passed,
            'failed': self.failed,
            'isOptional': self.is_optional,
            'details': self.details_message or None,
            'timestamp': self.timestamp,
        }

    def to_html(self) -> str:
        out = f'<li class="{self.class_name}">{html.escape(self.message)}'
        if self.details_message:
            out += (
                '<span class="details">'
                f'{html.escape(self.details_message)}</span>'
            )
        return out + '</li>\n'

    def to_row(self) -> list[str]:
        return [
            self.timestamp,
            self.kind.value,
            self.class_name,
            self.message,
            self.details_message,
        ]

    def to_delimited(self, delimiter: str) -> str:
        buffer = io.StringIO()
        csv.writer(buffer, delimiter=delimiter, lineterminator='').writerow(
            self.to_row(),
        )
        return buffer.getvalue()


@dataclass(frozen=True, slots=True)
class LogComment(LogItem):
    """Free-form comment."""


@dataclass(frozen=True, slots=True)
class LogHeading(LogItem):
    """Scenario heading. Shown on console, left out of HTML and counts."""

    kind: ClassVar[LogItemType] = LogItemType.HEADING
    class_name: ClassVar[str] = 'heading'

    def to_console(self) -> list[ConsoleLine]:
        return [HeadingLine(self.message)]


@dataclass(frozen=True, slots=True)
class AssertionPass(LogItem):
    kind: ClassVar[LogItemType] = LogItemType.RESULT
    class_name: ClassVar[str] = 'pass'

    @property
    def passed(self) -> bool:
        return True

    def to_console(self) -> list[ConsoleLine]:
        return [PassLine(self.message)]


@dataclass(frozen=True, slots=True)
class AssertionFail(LogItem):
    details: Any = None

    kind: ClassVar[LogItemType] = LogItemType.RESULT
    class_name: ClassVar[str] = 'fail'

    @property
    def failed(self) -> bool:
        return True

    @property
    def details_message(self) -> str:
        return details_message(self.details)

    def to_console(self) -> list[ConsoleLine]:
        lines: list[ConsoleLine] = [FailLine(self.message)]
        if self.details_message:
            lines.append(DetailLine(self.details_message))
        return lines


@dataclass(frozen=True, slots=True)
class AssertionFailOptional(AssertionFail):
    class_name: ClassVar[str] = 'failOptional'

    @property
    def is_optional(self) -> bool:
        return True

    def to_console(self) -> list[ConsoleLine]:
        return [OptionalFailLine(self.message)]


def details_message(details: Any) -> str:
    """Normalize a failure's detail payload for display."""
    if details is None:
        return ''
    if isinstance(details, (list, tuple)):
        if all(isinstance(item, str) for item in details):
            return '\n'.join(details)
    elif isinstance(details, Mapping):
        if details.get('message'):
            return str(details['message'])
    elif getattr(details, 'message', None):
        return str(details.message)
    return str(details)


class AssertionLog:
    """Ordered, append-only record of one scenario's results."""

    def __init__(self, title: str = '') -> None:
        self.title = title
        self._items: list[LogItem] = []
        self._sealed = False

    def append(self, item: LogItem) -> LogItem:
        if self._sealed:
            raise LogSealedError(
                f'Log for {self.title or "scenario"} is sealed',
            )
        self._items.append(item)
        return item

    def heading(self, message: str) -> LogItem:
        return self.append(LogHeading(message))

    def comment(self, message: str) -> LogItem:
        return self.append(LogComment(message))

    def pass_(self, message: str) -> LogItem:
        return self.append(AssertionPass(message))

    def fail(
        self,
        message: str,
        details: Any = None,
        *,
        optional: bool = False,
    ) -> LogItem:
        cls = AssertionFailOptional if optional else AssertionFail
        return self.append(cls(message, details))

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def items(self) -> tuple[LogItem, ...]:
        return tuple(self._items)

    def __iter__(self) -> Iterator[LogItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def results(self) -> tuple[LogItem, ...]:
        return tuple(i for i in self._items if i.kind == LogItemType.RESULT)

    @property
    def pass_count(self) -> int:
        return sum(1 for i in self._items if i.passed)

    @property
    def fail_count(self) -> int:
        return sum(1 for i in self._items if i.failed and not i.is_optional)

    @property
    def optional_fail_count(self) -> int:
        return sum(1 for i in self._items if i.failed and i.is_optional)

    @property
    def passed(self) -> bool:
        return self.fail_count == 0
