"""Run scenario files concurrently and decide the suite verdict once.

Each scenario is a standalone ``*.py`` file run in its own interpreter.
Its exit code is its verdict: 0 passed, anything else failed.

Usage::

    tracker = CompletionTracker(settings)
    exit_code = await tracker.run(['smoke/home', 'smoke/search'])
    tracker.output.flush(sys.stdout)
    sys.exit(exit_code)

The tracker registers every selected scenario as pending before the first
one starts, so the verdict cannot fire early when a quick scenario
finishes while others are still being launched.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import sys
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import IO

from .errors import RecordError, ScenarioNotFoundError
from .observability.logging import get_logger, scenario_ctx
from .settings import RunSettings

logger = get_logger(__name__)

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_NOT_FOUND = 3


# ── Discovery ─────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ScenarioFile:
    """A scenario script and the name it is selected by."""

    name: str  # relative path without extension, e.g. 'smoke/home'
    path: Path


def _is_scenario(path: Path) -> bool:
    return path.is_file() and path.suffix == '.py' and not path.name.startswith('_')


def discover_scenarios(tests_dir: str | Path) -> list[ScenarioFile]:
    """Scenario files in *tests_dir* and its immediate sub-folders."""
    root = Path(tests_dir)
    if not root.is_dir():
        return []
    found: list[ScenarioFile] = []
    for entry in sorted(root.iterdir()):
        if _is_scenario(entry):
            found.append(ScenarioFile(entry.stem, entry))
        elif entry.is_dir() and not entry.name.startswith(('_', '.')):
            for child in sorted(entry.iterdir()):
                if _is_scenario(child):
                    found.append(
                        ScenarioFile(f'{entry.name}/{child.stem}', child),
                    )
    return found


# ── Records ───────────────────────────────────────────────────────────


class CompletionRecord:
    """Scenario id -> exit code, ``None`` while pending.

    Ids must be registered before they complete, and each completes once.
    """

    def __init__(self) -> None:
        self._codes: dict[str, int | None] = {}

    def register(self, scenario_id: str) -> None:
        if scenario_id in self._codes:
            raise RecordError(f'{scenario_id} is already registered')
        self._codes[scenario_id] = None

    def complete(self, scenario_id: str, exit_code: int) -> None:
        if scenario_id not in self._codes:
            raise RecordError(f'{scenario_id} was never registered')
        if self._codes[scenario_id] is not None:
            raise RecordError(f'{scenario_id} already completed')
        self._codes[scenario_id] = exit_code

    @property
    def pending(self) -> list[str]:
        return [k for k, v in self._codes.items() if v is None]

    @property
    def all_done(self) -> bool:
        return not self.pending

    @property
    def exit_codes(self) -> Mapping[str, int | None]:
        return MappingProxyType(self._codes)

    def __len__(self) -> int:
        return len(self._codes)


class OutputBuffer:
    """Collects output lines until a single flush at the end of a run."""

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._flushed = False

    def write(self, line: str) -> None:
        self._lines.append(line.rstrip('\r\n'))

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def getvalue(self) -> str:
        return ''.join(line + '\n' for line in self._lines)

    def flush(self, stream: IO[str] | None = None) -> None:
        """Write everything to *stream* (stdout by default). Runs once."""
        if self._flushed:
            return
        self._flushed = True
        stream = stream or sys.stdout
        stream.write(self.getvalue())
        stream.flush()


@dataclass(frozen=True, slots=True)
class SuiteVerdict:
    """Final decision over all completed scenarios."""

    exit_codes: Mapping[str, int]

    @property
    def failed(self) -> list[str]:
        return [name for name, code in self.exit_codes.items() if code != 0]

    @property
    def passed(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> int:
        return EXIT_PASSED if self.passed else EXIT_FAILED


# ── Launching ─────────────────────────────────────────────────────────

Emit = Callable[[str], None]
Launcher = Callable[[ScenarioFile, Emit], Awaitable[int]]

READ_CHUNK_SIZE = 64 * 1024


def _decode(line: bytes | bytearray) -> str:
    return bytes(line).decode('utf-8', errors='replace')


async def stream_lines(stream: asyncio.StreamReader, emit: Emit) -> None:
    """Read *stream* in chunks and emit each complete line.

    Lines may be any length; a final line without a newline is emitted
    at end of stream.
    """
    pending = bytearray()
    while chunk := await stream.read(READ_CHUNK_SIZE):
        pending.extend(chunk)
        cut = pending.rfind(b'\n')
        if cut < 0:
            continue
        for line in pending[:cut].split(b'\n'):
            emit(_decode(line))
        del pending[:cut + 1]
    if pending:
        emit(_decode(pending))


class SubprocessLauncher:
    """Runs a scenario file with the configured interpreter.

    stdout and stderr are merged and streamed line by line to *emit*.
    If reading fails the child is killed before the error propagates.
    """

    def __init__(self, settings: RunSettings) -> None:
        self.settings = settings

    def _env(self, scenario: ScenarioFile) -> dict[str, str]:
        env = os.environ.copy()
        env.update({
            'ASSAYER_OUTPUT': self.settings.output,
            'ASSAYER_ENVIRONMENT': self.settings.environment,
            'ASSAYER_BASE_URL': self.settings.base_url,
            'ASSAYER_TIMEOUT_MS': str(self.settings.timeout_ms),
            'ASSAYER_SCENARIO': scenario.name,
        })
        return env

    async def __call__(self, scenario: ScenarioFile, emit: Emit) -> int:
        proc = await asyncio.create_subprocess_exec(
            self.settings.python,
            str(scenario.path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            env=self._env(scenario),
        )
        try:
            await stream_lines(proc.stdout, emit)
        except BaseException:
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
            await proc.wait()
            raise
        return await proc.wait()


# ── Tracker ───────────────────────────────────────────────────────────


class CompletionTracker:
    """Launches scenarios in parallel and reports one verdict."""

    def __init__(
        self,
        settings: RunSettings | None = None,
        *,
        launcher: Launcher | None = None,
        output: OutputBuffer | None = None,
        on_verdict: Callable[[SuiteVerdict], None] | None = None,
    ) -> None:
        self.settings = settings or RunSettings()
        self.launcher = launcher or SubprocessLauncher(self.settings)
        self.output = output or OutputBuffer()
        self.record = CompletionRecord()
        self.verdict: SuiteVerdict | None = None
        self._on_verdict = on_verdict

    def select(self, names: Iterable[str] = ()) -> list[ScenarioFile]:
        """Scenarios to run: all discovered, or exactly *names* in order."""
        available = discover_scenarios(self.settings.tests_dir)
        names = list(names)
        if not names:
            return available
        by_name = {s.name: s for s in available}
        for name in names:
            if name not in by_name:
                raise ScenarioNotFoundError(name)
        return [by_name[name] for name in dict.fromkeys(names)]

    async def run(self, names: Iterable[str] = ()) -> int:
        """Run the selected scenarios; returns the suite exit code."""
        try:
            scenarios = self.select(names)
        except ScenarioNotFoundError as exc:
            self.output.write(str(exc))
            logger.warning('scenario_not_found', name=exc.name)
            return EXIT_NOT_FOUND

        if not scenarios:
            logger.info('no_scenarios', tests_dir=self.settings.tests_dir)
            self._decide()
            return self.verdict.exit_code

        for scenario in scenarios:
            self.record.register(scenario.name)

        tasks = [
            asyncio.create_task(self._run_one(scenario), name=scenario.name)
            for scenario in scenarios
        ]
        await asyncio.gather(*tasks)
        return self.verdict.exit_code

    async def _run_one(self, scenario: ScenarioFile) -> None:
        token = scenario_ctx.set(scenario.name)
        try:
            logger.info('scenario_started', path=str(scenario.path))
            try:
                exit_code = await self.launcher(scenario, self.output.write)
            except Exception as exc:
                logger.warning('scenario_launch_failed', error=str(exc))
                self.output.write(f'{scenario.name}: {exc}')
                exit_code = EXIT_FAILED
            logger.info('scenario_exited', exit_code=exit_code)
            self._complete(scenario.name, exit_code)
        finally:
            scenario_ctx.reset(token)

    def _complete(self, name: str, exit_code: int) -> None:
        self.record.complete(name, exit_code)
        if self.record.all_done:
            self._decide()

    def _decide(self) -> None:
        if self.verdict is not None:
            return
        codes = {k: v for k, v in self.record.exit_codes.items() if v is not None}
        self.verdict = SuiteVerdict(MappingProxyType(codes))
        logger.info(
            'suite_verdict',
            passed=self.verdict.passed,
            failed=self.verdict.failed,
            total=len(codes),
        )
        if self._on_verdict is not None:
            self._on_verdict(self.verdict)
