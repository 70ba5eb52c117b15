__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .bus import RecordingDiagnostics, SpyBus
from .helpers import create_test_app, parse_ruby
from .workspace import WorkspaceFactory, text

__all__ = [
    "SpyBus",
    "RecordingDiagnostics",
    "WorkspaceFactory",
    "create_test_app",
    "parse_ruby",
    "text",
]
