"""Root Typer app with global options."""

from __future__ import annotations

from typing import Optional

import typer

app = typer.Typer(
    name="imgcluster",
    help="Group remotely hosted images into near-duplicate clusters by perceptual hash.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        from imgcluster import __version__

        typer.echo(f"imgcluster {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=_version_callback, is_eager=True, help="Show version."
    ),
) -> None:
    """imgcluster — near-duplicate image clustering."""


# Import and register commands
from imgcluster.cli.run import run  # noqa: E402
from imgcluster.cli.report import report, info  # noqa: E402

app.command()(run)
app.command()(report)
app.command()(info)
