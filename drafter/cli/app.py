from __future__ import annotations

import typer

from drafter import __version__
from drafter.cli.commands.draft import draft


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Draft the next release from merged pull requests.",
    rich_markup_mode="rich",
)


# Commands
app.command()(draft)


def _print_version(value: bool) -> None:
    # eager: runs before the group insists on a subcommand
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        is_eager=True,
        callback=_print_version,
    ),
) -> None:
    pass


def main() -> None:
    app()
