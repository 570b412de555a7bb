"""Command-line entry point.

Usage::

    assayer run                         # every scenario under tests/assayer
    assayer run smoke/home smoke/search --output json
    assayer list --tests-dir tests/e2e

Exit codes: 0 all scenarios passed, 1 at least one failed, 2 bad
configuration or output format, 3 unknown scenario name.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from dataclasses import replace
from typing import IO

from .errors import ScenarioNotFoundError, UnsupportedFormatError
from .observability.logging import configure_logging, get_logger
from .report import parse_format
from .settings import RunSettings
from .tracker import EXIT_NOT_FOUND, CompletionTracker, discover_scenarios

logger = get_logger(__name__)

EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='assayer',
        description='Run assertion scenarios and report one verdict.',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    run = sub.add_parser('run', help='Run scenarios (all when none named)')
    run.add_argument('names', nargs='*', help='Scenario names, e.g. smoke/home')
    run.add_argument('--tests-dir', default=None, help='Scenario folder')
    run.add_argument(
        '--output', default=None,
        help='console, text, json, html, csv, psv or tsv',
    )
    run.add_argument('--environment', default=None, help='Environment label')
    run.add_argument('--base-url', default=None, help='Base URL for requests')

    ls = sub.add_parser('list', help='List discovered scenarios')
    ls.add_argument('--tests-dir', default=None, help='Scenario folder')
    return parser


def _settings(args: argparse.Namespace, base: RunSettings) -> RunSettings:
    overrides = {
        key: value
        for key, value in (
            ('tests_dir', args.tests_dir),
            ('output', getattr(args, 'output', None)),
            ('environment', getattr(args, 'environment', None)),
            ('base_url', getattr(args, 'base_url', None)),
        )
        if value is not None
    }
    return replace(base, **overrides)


def _list(settings: RunSettings, stdout: IO[str]) -> int:
    for scenario in discover_scenarios(settings.tests_dir):
        stdout.write(f'{scenario.name}\n')
    return 0


def _run(settings: RunSettings, names: Sequence[str], stdout: IO[str]) -> int:
    tracker = CompletionTracker(settings)
    tracker.select(names)
    try:
        exit_code = asyncio.run(tracker.run(names))
    finally:
        tracker.output.flush(stdout)
    return exit_code


def main(
    argv: Sequence[str] | None = None,
    *,
    env: dict[str, str] | None = None,
    stdout: IO[str] | None = None,
    stderr: IO[str] | None = None,
) -> int:
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    configure_logging()
    args = build_parser().parse_args(argv)
    settings = _settings(args, RunSettings.from_env(env))
    logger.debug('cli_invoked', command=args.command, tests_dir=settings.tests_dir)

    try:
        if args.command == 'list':
            return _list(settings, stdout)
        parse_format(settings.output)
        errors = settings.validate()
        if errors:
            for error in errors:
                print(f'ERROR: {error}', file=stderr)
            return EXIT_USAGE
        return _run(settings, args.names, stdout)
    except UnsupportedFormatError as exc:
        print(f'ERROR: {exc}', file=stderr)
        return EXIT_USAGE
    except ScenarioNotFoundError as exc:
        print(f'ERROR: {exc}', file=stderr)
        return EXIT_NOT_FOUND


if __name__ == '__main__':
    sys.exit(main())
