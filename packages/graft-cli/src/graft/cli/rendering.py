import typer
from graft.common.messaging.protocols import Level, Renderer

COLORS = {
    Level.SUCCESS: typer.colors.GREEN,
    Level.WARNING: typer.colors.YELLOW,
    Level.ERROR: typer.colors.RED,
    Level.DEBUG: typer.colors.BRIGHT_BLACK,
}
# Problems are labelled so they stand out in CI logs without colour.
PREFIXES = {Level.WARNING: "warning: ", Level.ERROR: "error: "}


class CliRenderer(Renderer):
    """
    Writes bus messages to the terminal. `--quiet` keeps only warnings and
    errors; `--verbose` adds debug lines tagged with their message id.
    Warnings and errors go to stderr so redirected output stays clean.
    """

    def __init__(self, verbose: bool = False, quiet: bool = False):
        self.verbose = verbose
        self.quiet = quiet
        if quiet:
            self.threshold = Level.WARNING
        elif verbose:
            self.threshold = Level.DEBUG
        else:
            self.threshold = Level.INFO

    def format(self, message: str, level: Level, msg_id: str) -> str:
        text = PREFIXES.get(level, "") + message
        if level == Level.DEBUG:
            text = f"[{msg_id}] {text}"
        return text

    def render(self, message: str, level: Level, msg_id: str = ""):
        level = Level(level)
        if not level.at_least(self.threshold):
            return
        typer.secho(
            self.format(message, level, msg_id),
            fg=COLORS.get(level),
            err=level.at_least(Level.WARNING),
        )
