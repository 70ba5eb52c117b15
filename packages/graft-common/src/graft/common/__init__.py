__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .errors import GraftError, ParseError, RecipeError
from .messaging import Level, MessageBus, MessageCatalog, Renderer, bus

__all__ = [
    "bus",
    "Level",
    "MessageBus",
    "MessageCatalog",
    "Renderer",
    "GraftError",
    "ParseError",
    "RecipeError",
]
