from .bus import MessageBus, bus
from .catalog import MessageCatalog
from .protocols import Level, Renderer

__all__ = ["Level", "MessageBus", "MessageCatalog", "Renderer", "bus"]
