import pytest
import graft.common
from graft.common import Level, MessageBus, MessageCatalog
from graft.test_utils import SpyBus


class ListRenderer:
    def __init__(self):
        self.lines = []

    def render(self, message: str, level: str, msg_id: str):
        self.lines.append((level, message))


def test_bus_forwards_to_renderer_with_spy(monkeypatch):
    spy_bus = SpyBus()

    with spy_bus.patch(monkeypatch):
        graft.common.bus.info("merge.written", path="Gemfile", kind="gemfile")
        graft.common.bus.success("strip.removed", name="mygem", path="Gemfile")

    messages = spy_bus.get_messages()
    assert messages == [
        {"level": "info", "id": "merge.written", "params": {"path": "Gemfile", "kind": "gemfile"}},
        {"level": "success", "id": "strip.removed", "params": {"name": "mygem", "path": "Gemfile"}},
    ]
    spy_bus.assert_id_called("strip.removed", level="success")


def test_bus_formats_templates_from_catalog():
    renderer = ListRenderer()
    bus = MessageBus(MessageCatalog({"greeting": "Hello {name}"}))
    bus.set_renderer(renderer)

    bus.warning("greeting", name="World")

    assert renderer.lines == [("warning", "Hello World")]


def test_bus_identity_fallback_for_unknown_ids():
    renderer = ListRenderer()
    bus = MessageBus(MessageCatalog({}))
    bus.set_renderer(renderer)

    bus.info("nonexistent.key")

    assert renderer.lines == [("info", "nonexistent.key")]


def test_bus_reports_formatting_errors_instead_of_raising():
    renderer = ListRenderer()
    bus = MessageBus(MessageCatalog({"needs": "Value {missing}"}))
    bus.set_renderer(renderer)

    bus.error("needs", other=1)

    assert renderer.lines == [("error", "<formatting_error for 'needs'>")]


def test_bus_is_silent_without_renderer():
    bus = MessageBus(MessageCatalog({}))
    try:
        bus.info("some.id")
    except Exception as e:
        pytest.fail(f"MessageBus raised without a renderer: {e}")


def test_bus_passes_level_and_message_id_to_renderer():
    seen = []

    class IdRenderer:
        def render(self, message, level, msg_id):
            seen.append((level, msg_id, message))

    bus = MessageBus(MessageCatalog({"gemspec.failed": "Could not edit {target}"}))
    bus.set_renderer(IdRenderer())

    bus.warning("gemspec.failed", target="name")

    assert seen == [(Level.WARNING, "gemspec.failed", "Could not edit name")]
    assert isinstance(seen[0][0], Level)


def test_levels_are_ordered_by_severity():
    assert Level.ERROR.at_least(Level.WARNING)
    assert Level.SUCCESS.at_least(Level.INFO)
    assert not Level.INFO.at_least(Level.WARNING)
    assert Level.DEBUG.at_least("debug")
