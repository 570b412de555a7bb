"""Exception hierarchy for assayer.

Query misses are never errors (they come back as empty Values). The
errors here cover the cases that must reach the caller: operations a
content variant cannot perform, output formats with no renderer, and
scenario filters that name nothing.
"""

from __future__ import annotations

from dataclasses import dataclass


class AssayerError(Exception):
    """Base error for assayer."""


@dataclass(frozen=True, slots=True)
class UnsupportedOperationError(AssayerError):
    """An adapter was asked for an operation outside its capability table."""

    operation: str
    variant: str

    def __str__(self) -> str:
        return (
            f'This scenario type ({self.variant}) does not support '
            f'{self.operation}.'
        )


@dataclass(frozen=True, slots=True)
class UnsupportedFormatError(AssayerError):
    """No renderer exists for the requested output format tag."""

    format: str
    supported: tuple[str, ...] = ()

    def __str__(self) -> str:
        msg = f'Output format {self.format!r} is not supported.'
        if self.supported:
            msg += f' Supported: {", ".join(self.supported)}'
        return msg


@dataclass(frozen=True, slots=True)
class ScenarioNotFoundError(AssayerError):
    """A named-scenario filter referenced an unknown scenario."""

    name: str

    def __str__(self) -> str:
        return f'Could not find test suite: {self.name}'


class LogSealedError(AssayerError):
    """An entry was appended to a sealed assertion log."""


class RecordError(AssayerError):
    """Invalid transition in a completion record."""


class NoContentError(AssayerError):
    """A query was issued before any content was attached."""
