"""Ruby manifest support (Gemfile, gemspec, Rakefile, Appraisals) for graft."""

__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .parser import RubyParser, parse
from .literals import declaration_name, literal_value, receiver_path
from .classifiers import (
    DependencyClassifier,
    GroupClassifier,
    MethodDefClassifier,
    NamedBlockClassifier,
    SectionClassifier,
    SourceClassifier,
)
from .signatures import (
    appraisals_signature,
    gemfile_signature,
    gemspec_signature,
    general_signature,
    rakefile_signature,
)
from .filters import StatementFilter
from .editing import GemspecEditor, ManifestEditor
from .recipes import (
    MANIFEST_KINDS,
    appraisals_recipe,
    gemfile_recipe,
    gemspec_recipe,
    manifest_kind,
    rakefile_recipe,
    recipe_for_kind,
    recipe_for_path,
)

__all__ = [
    "RubyParser",
    "parse",
    "declaration_name",
    "literal_value",
    "receiver_path",
    "DependencyClassifier",
    "GroupClassifier",
    "MethodDefClassifier",
    "NamedBlockClassifier",
    "SectionClassifier",
    "SourceClassifier",
    "appraisals_signature",
    "gemfile_signature",
    "gemspec_signature",
    "general_signature",
    "rakefile_signature",
    "StatementFilter",
    "GemspecEditor",
    "ManifestEditor",
    "MANIFEST_KINDS",
    "appraisals_recipe",
    "gemfile_recipe",
    "gemspec_recipe",
    "manifest_kind",
    "rakefile_recipe",
    "recipe_for_kind",
    "recipe_for_path",
]
