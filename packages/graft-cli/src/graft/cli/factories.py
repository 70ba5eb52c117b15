from pathlib import Path

from graft.app import GraftApp


def get_project_root() -> Path:
    return Path.cwd()


def make_app() -> GraftApp:
    return GraftApp(root_path=get_project_root())
