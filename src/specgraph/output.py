"""Terminal output for specgraph commands.

Graph reports, plans and stats are *data* and go to stdout so they can be
piped into ``jq`` or saved to a file. Progress notes, warnings, errors and
"try this next" hints are *diagnostics* and go to stderr.

Three renderings exist for data:

``json``
    Indented JSON, always machine readable.
``plain``
    Tab-separated lines, used whenever stdout is not a terminal.
``rich``
    Rich tables, highlighted JSON and rendered Markdown for humans.

Colour is off when ``NO_COLOR`` is set, when ``TERM=dumb``, or when the
``--no-color`` flag is given.

Commands normally call the module-level helpers (:func:`info`,
:func:`print_table`, ...), which forward to the :class:`OutputManager`
installed by :func:`~specgraph.app.main_callback`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How data written to stdout is rendered."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# (plain prefix, rich markup template, hidden when quiet)
_DIAGNOSTICS: dict[str, tuple[str, str, bool]] = {
    "info": ("", "{}", True),
    "success": ("", "[green]{}[/green]", True),
    "warning": ("Warning: ", "[yellow]Warning:[/yellow] {}", False),
    "error": ("Error: ", "[bold red]Error:[/bold red] {}", False),
    "suggest": ("→ ", "[dim]→ {}[/dim]", True),
}


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


class OutputManager:
    """Routes command output to stdout or stderr in the chosen rendering.

    Args:
        format: Rendering for stdout data. ``AUTO`` picks ``RICH`` on a
            colour-capable terminal and ``PLAIN`` everywhere else.
        no_color: Strip colour and markup from every stream.
        quiet: Hide info, success and suggestion lines.
        verbose: Show ``[debug]`` lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._format = _resolve_format(format, self._no_color)

        rich_stdout = self._format == OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich_stdout)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # -- stdout ---------------------------------------------------------

    def print_data(self, text: str) -> None:
        """Write *text* to stdout unchanged."""
        print(text, file=sys.stdout, flush=True)

    def print_document(self, data: Any) -> None:
        """Write a JSON-compatible value.

        In plain mode a mapping becomes ``key<TAB>value`` lines, with nested
        containers JSON-encoded, and a list becomes one line per element.
        """
        if self._format == OutputFormat.RICH:
            self._stdout.print(Syntax(_dumps(data), "json", theme="monokai", word_wrap=True))
        elif self._format == OutputFormat.JSON:
            self.print_data(_dumps(data))
        else:
            for line in _plain_lines(data):
                self.print_data(line)

    def print_markdown(self, text: str) -> None:
        if self._format != OutputFormat.RICH:
            self.print_data(text.rstrip("\n"))
            return
        self._stdout.print(Markdown(text))

    def print_list(self, items: list[str], title: Optional[str] = None) -> None:
        """Write one entry per line; *title* is only shown in rich mode."""
        if self._format == OutputFormat.JSON:
            self.print_data(_dumps(items))
            return
        if title and self._format == OutputFormat.RICH:
            self._stdout.print(f"[bold cyan]{title}[/bold cyan]")
        for item in items:
            self.print_data(item)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows as a Rich table, JSON records keyed by header, or TSV."""
        if self._format == OutputFormat.RICH:
            table = Table(title=title, header_style="bold cyan")
            for header in headers:
                table.add_column(header)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)
        elif self._format == OutputFormat.JSON:
            self.print_data(_dumps([dict(zip(headers, row)) for row in rows]))
        else:
            for row in [headers, *rows]:
                self.print_data("\t".join(row))

    # -- stderr ---------------------------------------------------------

    def info(self, message: str) -> None:
        self._diagnostic("info", message)

    def success(self, message: str) -> None:
        self._diagnostic("success", message)

    def warning(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._diagnostic("warning", message)

    def error(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._diagnostic("error", message)

    def suggest(self, message: str) -> None:
        """A hint about the next command to run."""
        self._diagnostic("suggest", message)

    def debug(self, message: str) -> None:
        if self._verbose:
            self._to_stderr(f"[debug] {message}", f"[dim]\\[debug] {message}[/dim]")

    def _diagnostic(self, kind: str, message: str) -> None:
        prefix, template, quietable = _DIAGNOSTICS[kind]
        if quietable and self._quiet:
            return
        self._to_stderr(prefix + message, template.format(message))

    def _to_stderr(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    if _is_tty() and not no_color:
        return OutputFormat.RICH
    return OutputFormat.PLAIN


def _plain_lines(data: Any) -> list[str]:
    if isinstance(data, dict):
        lines = []
        for key, value in data.items():
            if isinstance(value, (dict, list)):
                value = json.dumps(value, ensure_ascii=False, default=str)
            lines.append(f"{key}\t{value}")
        return lines
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (set to anything, even empty) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# -- process-wide manager -----------------------------------------------

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """The installed manager, or a default one created on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager so the next call builds a fresh one."""
    global _output
    _output = None


def print_document(data: Any) -> None:
    get_output().print_document(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_markdown(text: str) -> None:
    get_output().print_markdown(text)


def print_list(items: list[str], title: Optional[str] = None) -> None:
    get_output().print_list(items, title)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
