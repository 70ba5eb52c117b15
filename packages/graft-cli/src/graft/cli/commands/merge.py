from pathlib import Path
from typing import Optional

import typer
from graft.common import bus
from graft.common.errors import GraftError
from graft.cli.factories import make_app


def merge_command(
    template: Path = typer.Argument(..., help="Template file to merge from."),
    dest: Path = typer.Argument(..., help="Project file to update."),
    kind: Optional[str] = typer.Option(
        None, "--kind", "-k", help=bus.catalog.get("cli.option.kind")
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help=bus.catalog.get("cli.option.dry_run")
    ),
):
    app_instance = make_app()
    try:
        app_instance.run_merge(template, dest, kind=kind, dry_run=dry_run)
    except GraftError as e:
        bus.debug(str(e))
        raise typer.Exit(code=1)
