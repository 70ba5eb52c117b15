from pathlib import Path
from typing import Optional

import typer
from graft.common import bus
from graft.common.errors import GraftError
from graft.cli.factories import make_app


def strip_command(
    dest: Path = typer.Argument(..., help="Manifest to edit."),
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help=bus.catalog.get("cli.option.name")
    ),
):
    app_instance = make_app()
    try:
        app_instance.run_strip(dest, name=name)
    except GraftError as e:
        bus.debug(str(e))
        raise typer.Exit(code=1)


def classify_command(
    file: Path = typer.Argument(..., help="Manifest to inspect."),
    kind: Optional[str] = typer.Option(
        None, "--kind", "-k", help=bus.catalog.get("cli.option.kind")
    ),
):
    app_instance = make_app()
    try:
        app_instance.run_classify(file, kind=kind)
    except GraftError as e:
        bus.debug(str(e))
        raise typer.Exit(code=1)
