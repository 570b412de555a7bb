"""Tests for RunSettings, logging context, scenario reports and the CLI."""

from __future__ import annotations

import io
import json
import sys
from dataclasses import replace
from pathlib import Path

from assayer.cli import build_parser, main
from assayer.context import ScenarioContext
from assayer.observability.logging import _add_scenario, scenario_ctx
from assayer.settings import DEFAULT_TESTS_DIR, DEFAULT_TIMEOUT_MS, RunSettings

_SRC = Path(__file__).resolve().parents[3] / 'src'


# =====================================================================
# 1. RunSettings
# =====================================================================


class TestRunSettings:

    def test_defaults(self):
        settings = RunSettings.from_env({})
        assert settings.output == 'console'
        assert settings.environment == 'dev'
        assert settings.tests_dir == DEFAULT_TESTS_DIR
        assert settings.timeout_ms == DEFAULT_TIMEOUT_MS
        assert settings.python == sys.executable
        assert settings.validate() == []

    def test_from_env(self):
        settings = RunSettings.from_env({
            'ASSAYER_OUTPUT': 'JSON',
            'ASSAYER_ENVIRONMENT': 'staging',
            'ASSAYER_BASE_URL': 'https://staging.test',
            'ASSAYER_TESTS_DIR': 'e2e',
            'ASSAYER_TIMEOUT_MS': '1500',
            'ASSAYER_PYTHON': '/usr/bin/python3',
        })
        assert settings.output == 'json'
        assert settings.environment == 'staging'
        assert settings.base_url == 'https://staging.test'
        assert settings.tests_dir == 'e2e'
        assert settings.timeout_ms == 1500
        assert settings.python == '/usr/bin/python3'

    def test_validate_reports_every_problem(self):
        settings = RunSettings.from_env({
            'ASSAYER_OUTPUT': 'xml',
            'ASSAYER_TIMEOUT_MS': 'soon',
            'ASSAYER_TESTS_DIR': '',
        })
        errors = settings.validate()
        assert len(errors) == 3
        assert any('output must be one of' in e for e in errors)
        assert 'timeout_ms must be positive' in errors


# =====================================================================
# 2. Logging context
# =====================================================================


class TestScenarioLogContext:

    def test_scenario_added_when_set(self):
        token = scenario_ctx.set('smoke/home')
        try:
            event = _add_scenario(None, 'info', {'event': 'x'})
        finally:
            scenario_ctx.reset(token)
        assert event['scenario'] == 'smoke/home'

    def test_absent_when_unset(self):
        assert 'scenario' not in _add_scenario(None, 'info', {'event': 'x'})

    def test_explicit_field_wins(self):
        token = scenario_ctx.set('outer')
        try:
            event = _add_scenario(None, 'info', {'scenario': 'inner'})
        finally:
            scenario_ctx.reset(token)
        assert event['scenario'] == 'inner'


# =====================================================================
# 3. Scenario context settings and report
# =====================================================================


class TestScenarioContextReport:

    def test_settings_default_to_environment(self, monkeypatch):
        monkeypatch.setenv('ASSAYER_TIMEOUT_MS', '1234')
        monkeypatch.setenv('ASSAYER_OUTPUT', 'csv')
        context = ScenarioContext('From env')
        assert context.settings.timeout_ms == 1234
        assert context.settings.output == 'csv'

    def test_report_renders_configured_format(self, settings):
        context = ScenarioContext('Checkout', replace(settings, output='json'))
        context.assert_that(1, 'One is one').equals(1)
        out = io.StringIO()
        assert context.report(out) == 0
        assert context.finished
        data = json.loads(out.getvalue())
        assert data['scenarios'][0]['title'] == 'Checkout'
        assert data['summary']['passCount'] == 1

    def test_report_exit_code_on_failure(self, context):
        context.assert_that(1, 'One is two').equals(2)
        out = io.StringIO()
        assert context.report(out) == 1
        assert 'Failed' in out.getvalue()


# =====================================================================
# 4. CLI
# =====================================================================


def _run_cli(argv, env):
    out, err = io.StringIO(), io.StringIO()
    code = main(argv, env=env, stdout=out, stderr=err)
    return code, out.getvalue(), err.getvalue()


class TestCli:

    def test_parser_requires_command(self):
        parser = build_parser()
        args = parser.parse_args(['run', 'a', 'b', '--tests-dir', 'x'])
        assert args.command == 'run'
        assert args.names == ['a', 'b']
        assert args.tests_dir == 'x'

    def test_list(self, tmp_path):
        (tmp_path / 'home.py').write_text('')
        (tmp_path / 'api').mkdir()
        (tmp_path / 'api' / 'users.py').write_text('')
        code, out, _ = _run_cli(['list', '--tests-dir', str(tmp_path)], {})
        assert code == 0
        assert out.splitlines() == ['api/users', 'home']

    def test_run_reports_suite_exit_code(self, tmp_path):
        (tmp_path / 'ok.py').write_text('print("ok ran")\n')
        (tmp_path / 'bad.py').write_text('import sys\nsys.exit(1)\n')
        env = {'ASSAYER_TESTS_DIR': str(tmp_path)}
        code, out, _ = _run_cli(['run'], env)
        assert code == 1
        assert 'ok ran' in out.splitlines()

        code, _, _ = _run_cli(['run', 'ok'], env)
        assert code == 0

    def test_unknown_scenario_exits_3(self, tmp_path):
        (tmp_path / 'ok.py').write_text('')
        code, out, err = _run_cli(
            ['run', 'missing', '--tests-dir', str(tmp_path)], {},
        )
        assert code == 3
        assert out == ''
        assert 'Could not find test suite: missing' in err

    def test_unsupported_format_exits_2(self, tmp_path):
        code, out, err = _run_cli(
            ['run', '--tests-dir', str(tmp_path), '--output', 'xml'], {},
        )
        assert code == 2
        assert out == ''
        assert "Output format 'xml' is not supported." in err

    def test_invalid_settings_exit_2(self, tmp_path):
        code, _, err = _run_cli(
            ['run', '--tests-dir', str(tmp_path)],
            {'ASSAYER_TIMEOUT_MS': '-5'},
        )
        assert code == 2
        assert 'timeout_ms must be positive' in err

    def test_output_format_reaches_scenarios(self, tmp_path, monkeypatch):
        monkeypatch.setenv('PYTHONPATH', str(_SRC))
        (tmp_path / 'smoke.py').write_text(
            'import sys\n'
            'from assayer import ScenarioContext\n'
            "context = ScenarioContext.from_env('Smoke')\n"
            "context.assert_that(2, 'Two is two').equals(2)\n"
            'sys.exit(context.report())\n'
        )
        code, out, _ = _run_cli([
            'run', '--tests-dir', str(tmp_path),
            '--output', 'json', '--base-url', 'https://staging.test/',
        ], {})
        assert code == 0
        report = json.loads(out)
        assert report['title'] == 'Smoke'
        assert report['baseUrl'] == 'https://staging.test/'
        assert report['summary']['passed'] is True
        assert report['summary']['passCount'] == 1
