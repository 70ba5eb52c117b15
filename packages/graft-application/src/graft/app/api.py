"""Text-in, text-out entry points. None of these touch the filesystem."""

from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Union

from graft.common import bus
from graft.common.errors import RecipeError
from graft.config import GraftConfig
from graft.lang.markdown import (
    DEFAULT_PRESERVED_SECTIONS,
    ReadmeMerger,
    RevisionHistoryMerger,
)
from graft.lang.ruby import (
    GemspecEditor,
    ManifestEditor,
    SectionClassifier,
    gemfile_recipe,
    gemspec_recipe,
    manifest_kind,
    recipe_for_kind,
)
from graft.merge import SmartMerger
from graft.spec import Node, Recipe, TypedSection

from .services import ManifestMerger

DOCUMENT_KINDS = ("gemfile", "appraisals", "gemspec", "rakefile", "changelog", "readme")


def merge_dependency_manifest(
    src: str, dest: str, recipe: Optional[Recipe] = None
) -> str:
    return ManifestMerger(recipe or gemfile_recipe()).merge(src, dest)


def remove_named_dependency(text: str, name: str, recipe: Optional[Recipe] = None) -> str:
    editor = ManifestEditor(recipe or gemfile_recipe(), diagnostics=bus)
    return editor.remove_named_dependency(text, name)


def remove_builtin_declaration(text: str, recipe: Optional[Recipe] = None) -> str:
    editor = ManifestEditor(recipe or gemfile_recipe(), diagnostics=bus)
    return editor.remove_builtin_declaration(text)


def replace_gemspec_fields(text: str, replacements: Mapping[str, object]) -> str:
    """Sets `spec.<field> = value` inside the gemspec block; see GemspecEditor."""
    return GemspecEditor(gemspec_recipe(), diagnostics=bus).replace_fields(text, replacements)


def ensure_development_dependencies(text: str, desired: Mapping[str, str]) -> str:
    return GemspecEditor(gemspec_recipe(), diagnostics=bus).ensure_development_dependencies(
        text, desired
    )


def merge_revision_history(
    template: str, destination: Optional[str], preserve_custom_sections: bool = True
) -> str:
    return RevisionHistoryMerger(preserve_custom_sections).merge(template, destination)


def classify_all(nodes: Sequence[Node], recipe: Optional[Recipe] = None) -> List[TypedSection]:
    recipe = recipe or gemfile_recipe()
    return SectionClassifier(recipe.classifiers).classify_all(nodes)


def merge_readme(
    template: str,
    destination: Optional[str],
    preserved_sections: Sequence[str] = DEFAULT_PRESERVED_SECTIONS,
    freeze_token: str = "graft",
) -> str:
    merger = ReadmeMerger(
        SmartMerger(),
        preserved_sections=preserved_sections,
        freeze_token=freeze_token,
        diagnostics=bus,
    )
    return merger.merge(template, destination)


def detect_kind(path: Union[str, Path]) -> Optional[str]:
    kind = manifest_kind(path)
    if kind is not None:
        return kind
    name = Path(path).name
    if name.lower() == "changelog.md":
        return "changelog"
    if name.lower().endswith(".md"):
        return "readme"
    return None


def merge_file(
    kind: str,
    template: str,
    destination: Optional[str],
    config: Optional[GraftConfig] = None,
) -> str:
    config = config or GraftConfig()
    if kind == "changelog":
        return merge_revision_history(template, destination, config.preserve_custom_sections)
    if kind == "readme":
        return merge_readme(
            template, destination, config.readme_preserved_sections, config.freeze_token
        )
    if kind not in DOCUMENT_KINDS:
        raise RecipeError(f"Unknown document kind '{kind}'")

    recipe = recipe_for_kind(kind, freeze_token=config.freeze_token)
    merger = ManifestMerger(recipe, self_dependency=config.self_dependency)
    return merger.merge(template, destination or "")
