from typing import Any, Optional

from .catalog import MessageCatalog
from .protocols import Level, Renderer


class MessageBus:
    def __init__(self, catalog: Optional[MessageCatalog] = None):
        self._renderer: Optional[Renderer] = None
        self._catalog = catalog

    @property
    def catalog(self) -> MessageCatalog:
        if self._catalog is None:
            self._catalog = MessageCatalog.default()
        return self._catalog

    def set_renderer(self, renderer: Optional[Renderer]):
        self._renderer = renderer

    def _render(self, level: str, msg_id: str, **kwargs: Any) -> None:
        if not self._renderer:
            return

        template = self.catalog.get(msg_id)
        try:
            message = template.format(**kwargs)
        except (KeyError, IndexError):
            message = f"<formatting_error for '{msg_id}'>"

        self._renderer.render(message, Level(level), msg_id)

    def debug(self, msg_id: str, **kwargs: Any) -> None:
        self._render("debug", msg_id, **kwargs)

    def info(self, msg_id: str, **kwargs: Any) -> None:
        self._render("info", msg_id, **kwargs)

    def success(self, msg_id: str, **kwargs: Any) -> None:
        self._render("success", msg_id, **kwargs)

    def warning(self, msg_id: str, **kwargs: Any) -> None:
        self._render("warning", msg_id, **kwargs)

    def error(self, msg_id: str, **kwargs: Any) -> None:
        self._render("error", msg_id, **kwargs)


# Global singleton instance
bus = MessageBus()
