"""Console line types used by the console and text report formats.

Each line knows its plain text (``str(line)``) and its colored form
(``line.to_console_string()``), rendered to ANSI through ``rich``.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import ClassVar

from rich.console import Console
from rich.text import Text


def _render_ansi(text: Text) -> str:
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        force_terminal=True,
        color_system='standard',
        soft_wrap=True,
        highlight=False,
    )
    console.print(text, end='')
    return buffer.getvalue()


@dataclass(frozen=True, slots=True)
class ConsoleLine:
    """One line of console output."""

    message: str = ''

    marker: ClassVar[str] = ''
    style: ClassVar[str] = ''

    def __str__(self) -> str:
        return f'{self.marker}{self.message}'

    def to_console_string(self) -> str:
        if not self.style:
            return str(self)
        return _render_ansi(Text(str(self), style=self.style))


class HeadingLine(ConsoleLine):
    style = 'bold yellow'


class CommentLine(ConsoleLine):
    marker = '  »   '
    style = 'cyan'


class PassLine(ConsoleLine):
    marker = '  ✔  '
    style = 'green'


class FailLine(ConsoleLine):
    marker = '  ✘  '
    style = 'red'


class OptionalFailLine(ConsoleLine):
    marker = '  ✘  '
    style = 'yellow'

    def __str__(self) -> str:
        return f'{self.marker}{self.message} (optional)'


class DetailLine(ConsoleLine):
    marker = '       '
    style = 'dim'


class LineBreak(ConsoleLine):
    pass
