"""Tests for suite report rendering."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from assayer.console import ConsoleLine
from assayer.context import ScenarioContext
from assayer.errors import UnsupportedFormatError
from assayer.report import (
    OutputFormat,
    SuiteReport,
    parse_format,
    render,
    render_html,
    to_console_lines,
    to_delimited_lines,
    to_json_dict,
)
from assayer.results import AssertionLog
from assayer.settings import RunSettings

STARTED = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
FINISHED = STARTED + timedelta(milliseconds=1250)


def _log(title, *, fail=False, optional_fail=False):
    log = AssertionLog(title)
    log.heading(title)
    log.pass_('status is 200')
    if fail:
        log.fail('title matches', ['got <Hello>'])
    if optional_fail:
        log.fail('has favicon', optional=True)
    log.comment('checked')
    log.seal()
    return log


def _report(*logs):
    return SuiteReport.build(
        title='Smoke',
        scenarios=logs,
        settings=RunSettings(base_url='https://example.test', environment='qa'),
        started_at=STARTED,
        finished_at=FINISHED,
    )


# =====================================================================
# 1. SuiteReport
# =====================================================================


class TestSuiteReport:

    def test_duration(self):
        assert _report(_log('a')).duration_ms == 1250

    def test_counts_ignore_optional_failures(self):
        report = _report(_log('a', optional_fail=True), _log('b', fail=True))
        assert report.pass_count == 2
        assert report.fail_count == 1
        assert report.failed_scenarios == 1
        assert not report.passed

    def test_from_contexts_uses_context_settings(self):
        settings = RunSettings(base_url='https://ctx.test', environment='stage')
        ctx = ScenarioContext('Home', settings)
        ctx.assert_that(1).equals(1)
        ctx.finish()
        report = SuiteReport.from_contexts('Suite', [ctx])
        assert report.base_url == 'https://ctx.test'
        assert report.environment == 'stage'
        assert report.scenarios[0].title == 'Home'
        assert report.scenarios[0].done


# =====================================================================
# 2. Console / text
# =====================================================================


class TestConsole:

    def test_passed_header(self):
        lines = [str(l) for l in to_console_lines(_report(_log('a'), _log('b')))]
        assert lines[:6] == [
            'Smoke',
            '  »   Base URL: https://example.test',
            '  »   Environment: qa',
            '  »   Took 1250ms',
            '  ✔  Passed (2 scenarios)',
            '',
        ]

    def test_failed_header(self):
        lines = [str(l) for l in to_console_lines(_report(_log('a', fail=True)))]
        assert lines[4] == '  ✘  Failed (1 of 1 scenario)'

    def test_text_has_no_ansi_and_ends_with_separator(self):
        text = render(_report(_log('a', fail=True)), 'text')
        assert '\x1b[' not in text
        assert '  ✘  title matches\n' in text
        assert '       got <Hello>\n' in text
        assert text.endswith('\n\n')

    def test_console_is_colored(self):
        out = render(_report(_log('a')), OutputFormat.CONSOLE)
        assert '\x1b[' in out
        assert 'Passed (1 scenario)' in out

    def test_every_line_type_is_rendered(self):
        report = _report(_log('a', fail=True, optional_fail=True))
        used = {type(line) for line in to_console_lines(report)}
        assert used == set(ConsoleLine.__subclasses__())


# =====================================================================
# 3. JSON
# =====================================================================


class TestJson:

    def test_shape(self):
        data = to_json_dict(_report(_log('a', optional_fail=True), _log('b', fail=True)))
        assert data['title'] == 'Smoke'
        assert data['baseUrl'] == 'https://example.test'
        assert data['summary'] == {
            'passed': False,
            'passCount': 2,
            'failCount': 1,
            'duration': 1250,
        }
        first, second = data['scenarios']
        assert first['title'] == 'a'
        assert first['done'] is True
        assert first['failCount'] == 0
        assert second['failCount'] == 1
        assert [e['className'] for e in first['log']] == [
            'heading', 'pass', 'failOptional', 'comment',
        ]

    def test_optional_only_suite_passes(self):
        data = to_json_dict(_report(_log('a', optional_fail=True)))
        assert data['summary']['passed'] is True

    def test_render_is_valid_json(self):
        out = render(_report(_log('a')), 'json')
        assert json.loads(out)['summary']['passCount'] == 1


# =====================================================================
# 4. HTML
# =====================================================================


class TestHtml:

    def test_structure_and_escaping(self):
        out = render_html(_report(_log('<a>', fail=True)))
        assert out.startswith('<article class="suite">\n<h2>Smoke</h2>\n<aside>')
        assert '<li>Duration: 1250ms</li>' in out
        assert '<li>Environment: qa</li>' in out
        assert '<h3>&lt;a&gt;</h3>' in out
        assert 'got &lt;Hello&gt;' in out
        assert out.count('<section class="scenario">') == 1
        assert out.endswith('</article>\n')

    def test_headings_are_left_out(self):
        out = render_html(_report(_log('Title')))
        assert 'class="heading"' not in out
        assert '<li class="pass">status is 200</li>' in out
        assert '<li class="comment">checked</li>' in out


# =====================================================================
# 5. Delimited and dispatch
# =====================================================================


class TestDelimited:

    def test_one_line_per_entry_in_suite_order(self):
        report = _report(_log('a'), _log('b'))
        lines = to_delimited_lines(report, OutputFormat.CSV)
        assert len(lines) == 6
        assert lines[0].split(',')[1:4] == ['heading', 'heading', 'a']
        assert lines[3].split(',')[3] == 'b'

    @pytest.mark.parametrize('output, delimiter', [
        ('csv', ','), ('psv', '|'), ('tsv', '\t'),
    ])
    def test_delimiters(self, output, delimiter):
        out = render(_report(_log('a')), output)
        first = out.splitlines()[0]
        assert first.split(delimiter)[1] == 'heading'

    def test_non_delimited_format_rejected(self):
        with pytest.raises(UnsupportedFormatError):
            to_delimited_lines(_report(_log('a')), OutputFormat.JSON)

    def test_unknown_format(self):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            render(_report(_log('a')), 'xml')
        assert exc_info.value.format == 'xml'
        assert 'console' in str(exc_info.value)

    def test_parse_format_is_case_insensitive(self):
        assert parse_format('JSON') is OutputFormat.JSON
        assert parse_format(OutputFormat.TSV) is OutputFormat.TSV
