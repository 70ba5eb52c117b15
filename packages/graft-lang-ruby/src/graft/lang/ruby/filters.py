import logging
from typing import List, Optional

from graft.spec import (
    Call,
    DiagnosticsProtocol,
    Node,
    ParseResult,
    ParserProtocol,
    Recipe,
)

from .literals import declaration_name
from .parser import RubyParser

log = logging.getLogger(__name__)


def statement_text(result: ParseResult, node: Node) -> str:
    """The node's exact source with any same-line trailing comment re-attached."""
    text = node.source.rstrip()
    inline = [c.text.strip() for c in result.trailing_comments(node)]
    if inline:
        text = f"{text} {' '.join(inline)}"
    return text


class StatementFilter:
    """
    Narrows a manifest to the top-level declarations a recipe allows, so
    conditional or nested declarations never reach the merger.
    """

    def __init__(
        self,
        recipe: Recipe,
        parser: Optional[ParserProtocol] = None,
        diagnostics: Optional[DiagnosticsProtocol] = None,
    ):
        self.recipe = recipe
        self.parser = parser or RubyParser()
        self.diagnostics = diagnostics

    def is_eligible(self, node: Node) -> bool:
        if not isinstance(node, Call):
            return False
        name = declaration_name(node)
        if name not in self.recipe.allowed:
            return False
        if node.block is not None and name not in self.recipe.block_allowed:
            return False
        return True

    def filter_to_scope(self, source_text: str) -> str:
        try:
            result = self.parser.parse(source_text)
            kept: List[str] = [
                statement_text(result, node)
                for node in result.statements
                if self.is_eligible(node)
            ]
        except Exception as e:
            log.warning(f"Scope filter failed for {self.recipe.kind}: {e}")
            if self.diagnostics is not None:
                self.diagnostics.warning("filter.failed", target=self.recipe.kind, error=str(e))
            return source_text

        if not kept:
            return ""
        # The trailing blank line tells the merger to keep a separator
        # after the last inserted statement.
        return "\n".join(kept) + "\n\n"
