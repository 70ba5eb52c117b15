__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .api import (
    DOCUMENT_KINDS,
    classify_all,
    detect_kind,
    ensure_development_dependencies,
    merge_dependency_manifest,
    merge_file,
    merge_readme,
    merge_revision_history,
    remove_builtin_declaration,
    remove_named_dependency,
    replace_gemspec_fields,
)
from .core import GraftApp
from .services import ManifestMerger

__all__ = [
    "DOCUMENT_KINDS",
    "GraftApp",
    "ManifestMerger",
    "classify_all",
    "detect_kind",
    "ensure_development_dependencies",
    "merge_dependency_manifest",
    "merge_file",
    "merge_readme",
    "merge_revision_history",
    "remove_builtin_declaration",
    "remove_named_dependency",
    "replace_gemspec_fields",
]
