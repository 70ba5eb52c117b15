__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .loader import GraftConfig, load_config_from_path, DEFAULT_PRESERVED_SECTIONS

__all__ = ["GraftConfig", "load_config_from_path", "DEFAULT_PRESERVED_SECTIONS"]
