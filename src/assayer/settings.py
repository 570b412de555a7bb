"""Run configuration.

RunSettings is a plain frozen dataclass so tests can build it directly
without touching os.environ; :meth:`RunSettings.from_env` is the
production convenience.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

OUTPUT_FORMATS = ('console', 'text', 'json', 'html', 'csv', 'psv', 'tsv')
DEFAULT_TESTS_DIR = 'tests/assayer'
DEFAULT_TIMEOUT_MS = 30000


@dataclass(frozen=True, slots=True)
class RunSettings:
    """Configuration shared by scenarios, reports and the tracker."""

    # ── Reporting ──────────────────────────────────────────────────
    output: str = 'console'
    """One of OUTPUT_FORMATS."""

    environment: str = 'dev'
    """Free-form environment label shown in reports."""

    # ── Targets ────────────────────────────────────────────────────
    base_url: str = ''
    """Base URL relative request paths are resolved against."""

    tests_dir: str = DEFAULT_TESTS_DIR
    """Folder scanned for scenario files."""

    # ── Execution ──────────────────────────────────────────────────
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    """Default timeout for live waits."""

    python: str = sys.executable
    """Interpreter used to launch scenario files."""

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if self.output not in OUTPUT_FORMATS:
            errors.append(
                f'output must be one of {", ".join(OUTPUT_FORMATS)}, '
                f'got {self.output!r}'
            )
        if self.timeout_ms <= 0:
            errors.append('timeout_ms must be positive')
        if not self.tests_dir:
            errors.append('tests_dir is required')
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> RunSettings:
        """Build settings from ASSAYER_* environment variables."""
        if env is None:
            env = dict(os.environ)

        timeout_raw = env.get('ASSAYER_TIMEOUT_MS', '')
        try:
            timeout_ms = int(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_MS
        except ValueError:
            timeout_ms = -1  # reported by validate()

        return cls(
            output=env.get('ASSAYER_OUTPUT', 'console').lower(),
            environment=env.get('ASSAYER_ENVIRONMENT', 'dev'),
            base_url=env.get('ASSAYER_BASE_URL', ''),
            tests_dir=env.get('ASSAYER_TESTS_DIR', DEFAULT_TESTS_DIR),
            timeout_ms=timeout_ms,
            python=env.get('ASSAYER_PYTHON', '') or sys.executable,
        )
