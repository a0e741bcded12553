"""Terminal rendering for the chat and code sessions.

All model-generated and file-derived text is escaped before printing so
square brackets in code never turn into rich markup.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table


class Renderer:
    """Thin presentation layer over a rich Console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False)

    # -- plain lines -------------------------------------------------------

    def line(self, text: str = "", style: str | None = None) -> None:
        self.console.print(escape(text), style=style)

    def markup(self, text: str) -> None:
        """Print trusted text containing rich markup."""
        self.console.print(text)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]ℹ[/blue] {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}")

    def error(self, message: str, hint: str | None = None) -> None:
        self.console.print(f"[red]✗ {escape(message)}[/red]")
        if hint:
            self.console.print(f"[dim]{escape(hint)}[/dim]")

    def dim(self, message: str) -> None:
        self.console.print(f"[dim]{escape(message)}[/dim]")

    def label(self, name: str, value: object) -> None:
        self.console.print(f"[dim]{escape(name)}:[/dim] {escape(str(value))}")

    def rule(self) -> None:
        self.console.rule(style="yellow")

    def clear(self) -> None:
        self.console.clear()

    # -- model replies -----------------------------------------------------

    def reply(self, text: str) -> None:
        """Code assistant reply: marker on the first line, the rest dimmed."""
        lines = text.split("\n")
        self.console.print()
        self.console.print(f"[green]●[/green] {escape(lines[0])}")
        for line in lines[1:]:
            if line.strip():
                self.console.print(f"[dim]  {escape(line)}[/dim]")

    def assistant_header(self) -> None:
        self.console.print()
        self.console.print("[cyan]🤖 Assistant:[/cyan]")

    def stream_text(self, text: str) -> None:
        self.console.print(escape(text), end="")

    # -- tool activity -----------------------------------------------------

    def tool_start(self, action: str, target: str) -> None:
        self.console.print(f"[dim]  → {action}:[/dim] [cyan]{escape(target)}[/cyan]")

    def tool_ok(self, message: str) -> None:
        self.console.print(f"    [green]✓ {escape(message)}[/green]")

    def tool_failed(self, message: str, detail: str) -> None:
        self.console.print(f"    [red]✗ {escape(message)}: {escape(detail)}[/red]")

    def command_output(self, output: str) -> None:
        for line in output.split("\n"):
            if line.strip():
                self.console.print(f"[dim]    {escape(line)}[/dim]")

    # -- structured output -------------------------------------------------

    def panel(self, body: str, title: str | None = None, style: str = "cyan") -> None:
        """Boxed block; body may contain markup."""
        self.console.print(Panel(body, title=title, border_style=style, padding=(1, 2)))

    def table(
        self,
        columns: Iterable[str],
        rows: Iterable[Iterable[str]],
        title: str | None = None,
    ) -> None:
        table = Table(title=title)
        for i, column in enumerate(columns):
            table.add_column(column, style="bold cyan" if i == 0 else None)
        for row in rows:
            table.add_row(*(escape(str(cell)) for cell in row))
        self.console.print(table)

    @contextmanager
    def status(self, message: str) -> Iterator[None]:
        """Spinner shown while awaiting a slow operation."""
        with self.console.status(f"[cyan]{escape(message)}[/cyan]"):
            yield
