__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .merger import SmartMerger
from .segments import Segment, SegmentedDocument, fallback_signature, freeze_ranges, segment

__all__ = [
    "SmartMerger",
    "Segment",
    "SegmentedDocument",
    "fallback_signature",
    "freeze_ranges",
    "segment",
]
