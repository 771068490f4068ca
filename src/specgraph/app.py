"""``specgraph`` command line.

Commands:

* ``build`` reads domain OpenAPI specs and writes the dependency graph plus
  the tool index next to it.
* ``validate`` reports dependency cycles and references to resources that
  no domain defines.
* ``plan`` prints the ordered creation plan for one target resource.
* ``deps`` groups the read-only graph queries (report, stats, domains).

:func:`main` is the console script. Typer handles argument errors itself;
anything else that escapes a command is either a
:class:`~specgraph.exceptions.SpecgraphError` (printed, exit with its code)
or a bug (traceback saved under the data directory).
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from specgraph import __version__
from specgraph.exit_codes import EXIT_GENERIC_FAILURE

EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="specgraph",
    help="Resource dependency graphs and creation plans for OpenAPI-generated tools.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from specgraph.commands.build import build_command  # noqa: E402
from specgraph.commands.deps import deps_app  # noqa: E402
from specgraph.commands.plan import plan_command  # noqa: E402
from specgraph.commands.validate import validate_command  # noqa: E402

app.command("build")(build_command)
app.command("validate")(validate_command)
app.command("plan")(plan_command)
app.add_typer(deps_app, name="deps", help="Query resource dependencies.")


def _show_version(value: bool) -> None:
    if not value:
        return
    typer.echo(f"specgraph {__version__}")
    raise typer.Exit()


def _pick_format(json_output: bool, plain_output: bool) -> Any:
    from specgraph.output import OutputFormat

    if json_output:
        return OutputFormat.JSON
    if plain_output:
        return OutputFormat.PLAIN
    return OutputFormat.AUTO


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Print the specgraph version and exit.",
    ),
    graph: Optional[str] = typer.Option(
        None, "--graph", "-g", help="Path of the dependency graph document."
    ),
    tools: Optional[str] = typer.Option(
        None, "--tools", "-t", help="Path of the tool index document."
    ),
    json_output: bool = typer.Option(False, "--json", help="Write data as JSON."),
    plain_output: bool = typer.Option(
        False, "--plain", help="Write data as tab-separated text."
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Never use colour."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only print data, warnings and errors."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print debug lines and library logs."
    ),
) -> None:
    """Set up output and remember path overrides for the sub-command.

    ``--graph`` and ``--tools`` land in ``ctx.obj`` where
    :func:`~specgraph.commands.common.resolve_settings` picks them up.
    """
    from specgraph.output import OutputManager, set_output

    set_output(
        OutputManager(
            format=_pick_format(json_output, plain_output),
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    ctx.ensure_object(dict)
    ctx.obj.update(graph=graph, tools=tools, verbose=verbose)


def _on_sigint(signum: int, frame: Any) -> None:  # noqa: ANN401
    sys.stderr.write("\nInterrupted.\n")
    sys.exit(EXIT_INTERRUPTED)


def _save_traceback(exc: Exception) -> Path:
    """Dump *exc* to ``<data dir>/logs/crash-<timestamp>.log``."""
    from specgraph.config import get_data_dir

    log_dir = get_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        encoding="utf-8",
    )
    return path


def main() -> None:
    """Run the CLI and map escaped errors to exit codes."""
    from specgraph.exceptions import SpecgraphError
    from specgraph.output import error

    signal.signal(signal.SIGINT, _on_sigint)
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        _on_sigint(signal.SIGINT, None)
    except SpecgraphError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error. Traceback saved to {_save_traceback(exc)}")
        sys.exit(EXIT_GENERIC_FAILURE)
