# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Verbosity-aware console logger.

Every message carries the minimum verbosity at which it is shown, so
services receive a Logger instance instead of checking flags themselves.
"""

from typing import List, Optional, Union
from rich.console import Console
from rich.markup import escape

Message = Union[str, List[str]]


class Logger:
    """Leveled output on top of a rich Console."""

    NORMAL = 0
    VERBOSE = 1
    VERY_VERBOSE = 2
    DEBUG = 3

    def __init__(self, console: Optional[Console] = None, verbosity: int = NORMAL):
        self.console = console or Console()
        self.verbosity = verbosity

    def should_display(self, verbosity: int) -> bool:
        return self.verbosity >= verbosity

    def _lines(self, message: Message) -> List[str]:
        if isinstance(message, str):
            return message.split("\n")
        return list(message)

    def text(self, verbosity: int, message: Message) -> None:
        """Plain informational text."""
        if self.should_display(verbosity):
            for line in self._lines(message):
                self.console.print(escape(line))

    def note(self, verbosity: int, message: Message) -> None:
        if self.should_display(verbosity):
            for line in self._lines(message):
                self.console.print(f"[blue]{escape(line)}[/blue]")

    def success(self, verbosity: int, message: Message) -> None:
        if self.should_display(verbosity):
            for line in self._lines(message):
                self.console.print(f"[green]✓ {escape(line)}[/green]")

    def warning(self, verbosity: int, message: Message) -> None:
        """Warning block; the first line gets the 'Warning:' prefix."""
        if self.should_display(verbosity):
            lines = self._lines(message)
            self.console.print(f"[yellow]Warning: {escape(lines[0])}[/yellow]")
            for line in lines[1:]:
                self.console.print(f"[yellow]  {escape(line)}[/yellow]")

    def error(self, verbosity: int, message: Message) -> None:
        """Error block; the first line gets the 'Error:' prefix."""
        if self.should_display(verbosity):
            lines = self._lines(message)
            self.console.print(f"[red]Error: {escape(lines[0])}[/red]")
            for line in lines[1:]:
                self.console.print(f"[red]  {escape(line)}[/red]")

    def debug(self, message: Message) -> None:
        if self.should_display(self.DEBUG):
            for line in self._lines(message):
                self.console.print(f"[dim]{escape(line)}[/dim]")
