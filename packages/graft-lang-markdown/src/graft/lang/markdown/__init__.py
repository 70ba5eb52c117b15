"""Markdown support for graft: block scanner, prose signatures, changelog and README merging."""

__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .parser import MarkdownParser
from .signatures import markdown_signature, normalize_heading
from .changelog import (
    CANONICAL_SUBHEADINGS,
    RevisionHistoryMerger,
    merge_revision_history,
    parse_items,
)
from .readme import DEFAULT_PRESERVED_SECTIONS, ReadmeMerger, readme_signature

__all__ = [
    "MarkdownParser",
    "markdown_signature",
    "normalize_heading",
    "CANONICAL_SUBHEADINGS",
    "RevisionHistoryMerger",
    "merge_revision_history",
    "parse_items",
    "DEFAULT_PRESERVED_SECTIONS",
    "ReadmeMerger",
    "readme_signature",
]
