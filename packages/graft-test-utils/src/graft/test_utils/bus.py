from contextlib import contextmanager
from typing import Any, Dict, List, Optional

# The singleton is patched in place, so modules that imported it keep seeing it.
import graft.common
from graft.common.messaging.protocols import Renderer


class SpyRenderer(Renderer):
    def __init__(self):
        self.messages: List[Dict[str, Any]] = []

    def render(self, message: str, level: str, msg_id: str) -> None:
        pass

    def record(self, level: str, msg_id: str, params: Dict[str, Any]):
        self.messages.append({"level": level, "id": msg_id, "params": params})


class SpyBus:
    """
    Captures every message sent through the global graft.common.bus
    by patching the singleton's methods rather than replacing it.
    """

    def __init__(self):
        self._spy_renderer = SpyRenderer()

    @contextmanager
    def patch(self, monkeypatch: Any, target: str = "graft.common.bus"):
        real_bus = graft.common.bus

        def intercept_render(level: str, msg_id: str, **kwargs: Any) -> None:
            self._spy_renderer.record(level, str(msg_id), kwargs)

        monkeypatch.setattr(real_bus, "_render", intercept_render)
        monkeypatch.setattr(real_bus, "_renderer", self._spy_renderer)

        yield self

    def get_messages(self) -> List[Dict[str, Any]]:
        return self._spy_renderer.messages

    def ids(self, level: Optional[str] = None) -> List[str]:
        return [
            m["id"] for m in self.get_messages() if level is None or m["level"] == level
        ]

    def assert_id_called(self, msg_id: str, level: Optional[str] = None):
        if msg_id not in self.ids(level):
            ids_seen = [m["id"] for m in self.get_messages()]
            raise AssertionError(
                f"Message with ID '{msg_id}' was not sent.\nCaptured IDs: {ids_seen}"
            )

    def assert_id_not_called(self, msg_id: str):
        if msg_id in self.ids():
            raise AssertionError(f"Message with ID '{msg_id}' was sent unexpectedly.")


class RecordingDiagnostics:
    """A stand-in diagnostics collaborator for code that accepts one explicitly."""

    def __init__(self):
        self.warnings: List[Dict[str, Any]] = []

    def warning(self, msg_id: str, **kwargs: Any) -> None:
        self.warnings.append({"id": msg_id, "params": kwargs})
