from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from graft.common.errors import RecipeError
from graft.spec import Recipe, SignatureFn

from .classifiers import (
    DependencyClassifier,
    GroupClassifier,
    MethodDefClassifier,
    NamedBlockClassifier,
    SourceClassifier,
)
from .signatures import (
    appraisals_signature,
    gemfile_signature,
    gemspec_signature,
    rakefile_signature,
)

MANIFEST_KINDS = ("gemfile", "appraisals", "gemspec", "rakefile")


@lru_cache(maxsize=None)
def load_preset(kind: str) -> Dict[str, Any]:
    if kind not in MANIFEST_KINDS:
        raise RecipeError(f"No preset for document kind '{kind}'")
    asset = resources.files("graft.lang.ruby").joinpath(f"presets/{kind}.yaml")
    try:
        content = yaml.safe_load(asset.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise RecipeError(f"Malformed preset '{kind}': {e}") from e
    if not isinstance(content, dict):
        raise RecipeError(f"Preset '{kind}' must be a mapping")
    return content


def _names(preset: Dict[str, Any], key: str) -> frozenset:
    return frozenset(str(v) for v in preset.get(key) or ())


def _categories(preset: Dict[str, Any]) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
    raw = preset.get("categories") or {}
    if not isinstance(raw, dict):
        raise RecipeError("Preset 'categories' must map a category to name prefixes")
    return tuple((str(k), tuple(str(p) for p in v or ())) for k, v in raw.items())


def _builtins(preset: Dict[str, Any]) -> Tuple[Tuple[str, str], ...]:
    pairs = []
    for entry in preset.get("builtins") or ():
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise RecipeError(f"Preset builtin entries are [name, symbol] pairs, got {entry!r}")
        pairs.append((str(entry[0]), str(entry[1])))
    return tuple(pairs)


def _recipe(kind: str, signature: SignatureFn, classifiers=(), **overrides) -> Recipe:
    preset = load_preset(kind)
    fields: Dict[str, Any] = dict(
        kind=kind,
        signature=signature,
        classifiers=tuple(classifiers),
        allowed=_names(preset, "allowed"),
        block_allowed=_names(preset, "block_allowed"),
        attach_to_next=tuple(preset.get("attach_to_next") or ()),
        dependency_methods=_names(preset, "dependency_methods"),
        dependency_containers=_names(preset, "dependency_containers"),
        builtins=_builtins(preset),
        identity_fields=tuple(str(v) for v in preset.get("identity_fields") or ()),
        recurse_blocks=bool(preset.get("recurse_blocks", False)),
        categories=_categories(preset),
    )
    fields.update(overrides)
    return Recipe(**fields)


def gemfile_recipe(**overrides) -> Recipe:
    preset = load_preset("gemfile")
    return _recipe(
        "gemfile",
        gemfile_signature,
        classifiers=(
            SourceClassifier(),
            DependencyClassifier(
                preset.get("dependency_methods") or ("gem",), _categories(preset)
            ),
            GroupClassifier(),
            MethodDefClassifier(),
        ),
        **overrides,
    )


def appraisals_recipe(**overrides) -> Recipe:
    preset = load_preset("appraisals")
    return _recipe(
        "appraisals",
        appraisals_signature,
        classifiers=(
            NamedBlockClassifier("appraise", "appraise"),
            DependencyClassifier(
                preset.get("dependency_methods") or ("gem",), _categories(preset)
            ),
            GroupClassifier(),
        ),
        **overrides,
    )


def gemspec_recipe(**overrides) -> Recipe:
    preset = load_preset("gemspec")
    return _recipe(
        "gemspec",
        gemspec_signature,
        classifiers=(
            DependencyClassifier(preset.get("dependency_methods") or ()),
            MethodDefClassifier(),
        ),
        **overrides,
    )


def rakefile_recipe(**overrides) -> Recipe:
    return _recipe(
        "rakefile",
        rakefile_signature,
        classifiers=(
            NamedBlockClassifier("task", "task"),
            NamedBlockClassifier("namespace", "namespace"),
            MethodDefClassifier(),
        ),
        **overrides,
    )


_FACTORIES = {
    "gemfile": gemfile_recipe,
    "appraisals": appraisals_recipe,
    "gemspec": gemspec_recipe,
    "rakefile": rakefile_recipe,
}


def recipe_for_kind(kind: str, **overrides) -> Recipe:
    factory = _FACTORIES.get(kind)
    if factory is None:
        raise RecipeError(f"Unknown manifest kind '{kind}'")
    return factory(**overrides)


def manifest_kind(path: Union[str, Path]) -> Optional[str]:
    name = Path(path).name
    if name in ("Gemfile", "gems.rb") or name.endswith(".gemfile"):
        return "gemfile"
    if name.endswith(".gemspec"):
        return "gemspec"
    if name == "Rakefile" or name.endswith(".rake"):
        return "rakefile"
    if name == "Appraisals":
        return "appraisals"
    return None


def recipe_for_path(path: Union[str, Path], **overrides) -> Recipe:
    kind = manifest_kind(path)
    if kind is None:
        raise RecipeError(f"No manifest recipe matches '{Path(path).name}'")
    return recipe_for_kind(kind, **overrides)
