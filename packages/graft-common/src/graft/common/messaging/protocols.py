from enum import Enum
from typing import Protocol


class Level(str, Enum):
    """
    Message levels, ordered by how much they matter to someone running a
    merge. Members compare equal to their plain string values.
    """

    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        # success reports an outcome, so it sits with info.
        return {"debug": 0, "info": 1, "success": 1, "warning": 2, "error": 3}[self.value]

    def at_least(self, other: "Level") -> bool:
        return self.rank >= Level(other).rank


class Renderer(Protocol):
    """
    Presents one resolved catalog message. `msg_id` is the catalog key the
    text came from ("merge.failed", "gemspec.failed", ...), so a renderer can
    label or filter by message family without parsing the text.
    """

    def render(self, message: str, level: Level, msg_id: str) -> None: ...
