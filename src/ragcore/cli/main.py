"""ragcore CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from ragcore.cli.ask import ask_cmd
from ragcore.cli.chunk import chunk_cmd
from ragcore.cli.search import search_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("ragcore")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ragcore {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="ragcore",
    help=(
        "ragcore: retrieval-augmented generation from local text files.\n\n"
        "  ragcore chunk   Show how sources split into chunks.\n"
        "  ragcore search  Rank chunks against a query.\n"
        "  ragcore ask     Answer a question with retrieved context."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """ragcore: retrieval-augmented generation from local text files."""


app.command("chunk")(chunk_cmd)
app.command("search")(search_cmd)
app.command("ask")(ask_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed ragcore version."""
    typer.echo(f"ragcore {_installed_version()}")


if __name__ == "__main__":
    app()
