from pathlib import Path
from textwrap import dedent

import pytest

from graft.config import GraftConfig, load_config_from_path


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "pyproject.toml").write_text(
        dedent("""
        [tool.graft]
        freeze_token = "kettle-jem"
        preserve_custom_sections = false
        readme_preserved_sections = ["Synopsis", "FAQ"]
        self_dependency = "my-gem"
    """)
    )
    nested = tmp_path / "gemfiles" / "modular"
    nested.mkdir(parents=True)
    return tmp_path


def test_load_config_reads_tool_graft_table(workspace: Path):
    config = load_config_from_path(workspace)

    assert config.freeze_token == "kettle-jem"
    assert config.preserve_custom_sections is False
    assert config.readme_preserved_sections == ["synopsis", "faq"]
    assert config.self_dependency == "my-gem"
    assert config.root == workspace.resolve()


def test_load_config_walks_up_from_nested_paths(workspace: Path):
    config = load_config_from_path(workspace / "gemfiles" / "modular")

    assert config.freeze_token == "kettle-jem"
    assert config.root == workspace.resolve()


def test_load_config_defaults_without_tool_table(tmp_path: Path):
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'other'\n")

    config = load_config_from_path(tmp_path)

    assert config.freeze_token == "graft"
    assert config.preserve_custom_sections is True
    assert config.readme_preserved_sections == ["synopsis", "configuration", "basic usage"]
    assert config.self_dependency is None


def test_default_config_values():
    config = GraftConfig()

    assert config.freeze_token == "graft"
    assert config.root is None
