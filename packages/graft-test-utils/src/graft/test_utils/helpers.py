from pathlib import Path
from typing import Optional

from graft.app import GraftApp
from graft.config import GraftConfig
from graft.lang.ruby import RubyParser
from graft.spec import ParseResult

from .workspace import text


def parse_ruby(source: str) -> ParseResult:
    return RubyParser().parse(text(source))


def create_test_app(root_path: Path, config: Optional[GraftConfig] = None) -> GraftApp:
    return GraftApp(root_path=root_path, config=config)
