from pathlib import Path
from textwrap import dedent
from typing import Any, Dict, List

import tomli_w


class WorkspaceFactory:
    def __init__(self, root_path: Path):
        self.root_path = root_path
        self._files_to_create: List[Dict[str, Any]] = []
        self._pyproject_data: Dict[str, Any] = {}

    def with_config(self, graft_config: Dict[str, Any]) -> "WorkspaceFactory":
        tool = self._pyproject_data.setdefault("tool", {})
        tool["graft"] = graft_config
        return self

    def with_project_name(self, name: str) -> "WorkspaceFactory":
        project = self._pyproject_data.setdefault("project", {})
        project["name"] = name
        return self

    def with_file(self, path: str, content: str) -> "WorkspaceFactory":
        self._files_to_create.append({"path": path, "content": text(content)})
        return self

    def build(self) -> Path:
        if self._pyproject_data:
            with (self.root_path / "pyproject.toml").open("wb") as f:
                tomli_w.dump(self._pyproject_data, f)

        for file_spec in self._files_to_create:
            output_path = self.root_path / file_spec["path"]
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(file_spec["content"], encoding="utf-8")

        return self.root_path


def text(content: str) -> str:
    """Dedents a triple-quoted literal and drops the newline after the opening quotes."""
    content = dedent(content)
    if content.startswith("\n"):
        content = content[1:]
    return content
