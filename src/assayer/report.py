"""Render a suite's scenario logs into one of the output formats.

Usage::

    report = SuiteReport.build(
        title='Smoke',
        scenarios=[ctx_home.log, ctx_search.log],
        settings=settings,
        started_at=started,
    )
    print(render(report, 'console'))
    Path('smoke.json').write_text(render(report, OutputFormat.JSON))

Renderers are pure functions of the report; nothing is written until the
whole output has been produced, so an unsupported format leaves no
partial output behind.
"""

from __future__ import annotations

import html
import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from .console import (
    CommentLine,
    ConsoleLine,
    FailLine,
    HeadingLine,
    LineBreak,
    PassLine,
)
from .errors import UnsupportedFormatError
from .results import AssertionLog, LogItemType

if TYPE_CHECKING:
    from .context import ScenarioContext
    from .settings import RunSettings


class OutputFormat(str, Enum):
    """Report output encodings."""

    CONSOLE = 'console'
    TEXT = 'text'
    JSON = 'json'
    HTML = 'html'
    CSV = 'csv'
    PSV = 'psv'
    TSV = 'tsv'


DELIMITERS: dict[OutputFormat, str] = {
    OutputFormat.CSV: ',',
    OutputFormat.PSV: '|',
    OutputFormat.TSV: '\t',
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _plural(count: int, word: str) -> str:
    return f'{count} {word}' if count == 1 else f'{count} {word}s'


@dataclass(frozen=True, slots=True)
class ScenarioReport:
    """One scenario's title and (usually sealed) log."""

    title: str
    log: AssertionLog

    @property
    def done(self) -> bool:
        return self.log.sealed

    @property
    def passed(self) -> bool:
        return self.log.passed


@dataclass(frozen=True, slots=True)
class SuiteReport:
    """Everything a renderer needs about one suite run."""

    title: str
    scenarios: tuple[ScenarioReport, ...]
    base_url: str = ''
    environment: str = ''
    started_at: datetime = field(default_factory=_now)
    finished_at: datetime = field(default_factory=_now)

    @staticmethod
    def build(
        *,
        title: str,
        scenarios: Iterable[AssertionLog],
        settings: RunSettings | None = None,
        started_at: datetime | None = None,
        finished_at: datetime | None = None,
    ) -> SuiteReport:
        """Build a report from scenario logs, in suite order."""
        now = _now()
        return SuiteReport(
            title=title,
            scenarios=tuple(ScenarioReport(log.title, log) for log in scenarios),
            base_url=settings.base_url if settings else '',
            environment=settings.environment if settings else '',
            started_at=started_at or now,
            finished_at=finished_at or now,
        )

    @staticmethod
    def from_contexts(
        title: str,
        contexts: Iterable[ScenarioContext],
        **kwargs: Any,
    ) -> SuiteReport:
        contexts = list(contexts)
        settings = kwargs.pop('settings', None)
        if settings is None and contexts:
            settings = contexts[0].settings
        return SuiteReport.build(
            title=title,
            scenarios=[c.log for c in contexts],
            settings=settings,
            **kwargs,
        )

    @property
    def duration_ms(self) -> int:
        delta = self.finished_at - self.started_at
        return max(0, round(delta.total_seconds() * 1000))

    @property
    def failed_scenarios(self) -> int:
        return sum(1 for s in self.scenarios if not s.passed)

    @property
    def pass_count(self) -> int:
        return sum(s.log.pass_count for s in self.scenarios)

    @property
    def fail_count(self) -> int:
        return sum(s.log.fail_count for s in self.scenarios)

    @property
    def passed(self) -> bool:
        return self.fail_count == 0


# ── Console / text ────────────────────────────────────────────────────


def to_console_lines(report: SuiteReport) -> list[ConsoleLine]:
    total = len(report.scenarios)
    lines: list[ConsoleLine] = [
        HeadingLine(report.title),
        CommentLine(f'Base URL: {report.base_url}'),
        CommentLine(f'Environment: {report.environment}'),
        CommentLine(f'Took {report.duration_ms}ms'),
    ]
    failed = report.failed_scenarios
    if failed == 0:
        lines.append(PassLine(f'Passed ({_plural(total, "scenario")})'))
    else:
        lines.append(FailLine(f'Failed ({failed} of {_plural(total, "scenario")})'))
    lines.append(LineBreak())
    for scenario in report.scenarios:
        for item in scenario.log:
            lines.extend(item.to_console())
        lines.append(LineBreak())
    return lines


def render_console(report: SuiteReport) -> str:
    return ''.join(
        line.to_console_string() + '\n' for line in to_console_lines(report)
    )


def render_text(report: SuiteReport) -> str:
    return ''.join(str(line) + '\n' for line in to_console_lines(report))


# ── JSON ──────────────────────────────────────────────────────────────


def to_json_dict(report: SuiteReport) -> dict[str, Any]:
    """JSON-compatible summary. ``failCount`` ignores optional failures."""
    scenarios = []
    for scenario in report.scenarios:
        scenarios.append({
            'title': scenario.title,
            'done': scenario.done,
            'passCount': scenario.log.pass_count,
            'failCount': scenario.log.fail_count,
            'log': [item.to_json() for item in scenario.log],
        })
    return {
        'title': report.title,
        'baseUrl': report.base_url,
        'summary': {
            'passed': report.passed,
            'passCount': report.pass_count,
            'failCount': report.fail_count,
            'duration': report.duration_ms,
        },
        'scenarios': scenarios,
    }


def render_json(report: SuiteReport) -> str:
    return json.dumps(to_json_dict(report), indent=2) + '\n'


# ── HTML ──────────────────────────────────────────────────────────────

_HTML_KINDS = (LogItemType.RESULT, LogItemType.COMMENT)


def render_html(report: SuiteReport) -> str:
    esc = html.escape
    parts = [
        '<article class="suite">\n',
        f'<h2>{esc(report.title)}</h2>\n',
        '<aside>\n<ul>\n',
        f'<li>Duration: {report.duration_ms}ms</li>\n',
        f'<li>Base URL: {esc(report.base_url)}</li>\n',
        f'<li>Environment: {esc(report.environment)}</li>\n',
        '</ul>\n</aside>\n',
    ]
    for scenario in report.scenarios:
        parts.append('<section class="scenario">\n')
        parts.append(f'<h3>{esc(scenario.title)}</h3>\n')
        parts.append('<ul>\n')
        parts.extend(
            item.to_html() for item in scenario.log if item.kind in _HTML_KINDS
        )
        parts.append('</ul>\n</section>\n')
    parts.append('</article>\n')
    return ''.join(parts)


# ── Delimited ─────────────────────────────────────────────────────────


def to_delimited_lines(report: SuiteReport, output: OutputFormat) -> list[str]:
    try:
        delimiter = DELIMITERS[output]
    except KeyError:
        raise UnsupportedFormatError(
            str(output.value), tuple(f.value for f in DELIMITERS),
        ) from None
    return [
        item.to_delimited(delimiter)
        for scenario in report.scenarios
        for item in scenario.log
    ]


def _delimited(output: OutputFormat) -> Callable[[SuiteReport], str]:
    def render_delimited(report: SuiteReport) -> str:
        return ''.join(line + '\n' for line in to_delimited_lines(report, output))
    return render_delimited


RENDERERS: dict[OutputFormat, Callable[[SuiteReport], str]] = {
    OutputFormat.CONSOLE: render_console,
    OutputFormat.TEXT: render_text,
    OutputFormat.JSON: render_json,
    OutputFormat.HTML: render_html,
    OutputFormat.CSV: _delimited(OutputFormat.CSV),
    OutputFormat.PSV: _delimited(OutputFormat.PSV),
    OutputFormat.TSV: _delimited(OutputFormat.TSV),
}


def parse_format(output: OutputFormat | str) -> OutputFormat:
    """Resolve a format tag, raising UnsupportedFormatError if unknown."""
    if isinstance(output, OutputFormat):
        return output
    try:
        return OutputFormat(str(output).lower())
    except ValueError:
        raise UnsupportedFormatError(
            str(output), tuple(f.value for f in OutputFormat),
        ) from None


def render(report: SuiteReport, output: OutputFormat | str) -> str:
    """Render *report* in *output* format, all or nothing."""
    return RENDERERS[parse_format(output)](report)
