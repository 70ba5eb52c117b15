import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib

DEFAULT_PRESERVED_SECTIONS = ["synopsis", "configuration", "basic usage"]


@dataclass
class GraftConfig:
    freeze_token: str = "graft"
    preserve_custom_sections: bool = True
    readme_preserved_sections: List[str] = field(
        default_factory=lambda: list(DEFAULT_PRESERVED_SECTIONS)
    )
    self_dependency: Optional[str] = None
    root: Optional[Path] = None


def _find_pyproject_toml(search_path: Path) -> Path:
    current_dir = search_path.resolve()
    if current_dir.is_file():
        current_dir = current_dir.parent
    while True:
        pyproject_path = current_dir / "pyproject.toml"
        if pyproject_path.is_file():
            return pyproject_path
        if current_dir.parent == current_dir:
            break
        current_dir = current_dir.parent
    raise FileNotFoundError("Could not find pyproject.toml in any parent directory.")


def load_config_from_path(search_path: Path) -> GraftConfig:
    try:
        config_path = _find_pyproject_toml(search_path)
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return GraftConfig()

    graft_data: Dict[str, Any] = data.get("tool", {}).get("graft", {})
    defaults = GraftConfig()

    sections = graft_data.get(
        "readme_preserved_sections", defaults.readme_preserved_sections
    )
    return GraftConfig(
        freeze_token=str(graft_data.get("freeze_token", defaults.freeze_token)),
        preserve_custom_sections=bool(
            graft_data.get("preserve_custom_sections", defaults.preserve_custom_sections)
        ),
        readme_preserved_sections=[str(s).lower() for s in sections],
        self_dependency=graft_data.get("self_dependency"),
        root=config_path.parent,
    )
