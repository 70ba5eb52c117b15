import logging

import typer

from graft.common import bus
from .rendering import CliRenderer

from .commands.merge import merge_command
from .commands.basics import classify_command, strip_command

app = typer.Typer(
    name="graft",
    help=bus.catalog.get("cli.app.description"),
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help=bus.catalog.get("cli.option.verbose")
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help=bus.catalog.get("cli.option.quiet")
    ),
):
    # The CLI is the composition root and owns the renderer choice.
    bus.set_renderer(CliRenderer(verbose=verbose, quiet=quiet))
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


app.command(name="merge", help=bus.catalog.get("cli.command.merge"))(merge_command)
app.command(name="strip", help=bus.catalog.get("cli.command.strip"))(strip_command)
app.command(name="classify", help=bus.catalog.get("cli.command.classify"))(
    classify_command
)


if __name__ == "__main__":
    app()
