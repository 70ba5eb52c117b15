import logging
from typing import Optional

from graft.common import bus
from graft.lang.ruby import GemspecEditor, ManifestEditor, RubyParser, StatementFilter
from graft.merge import SmartMerger
from graft.spec import (
    DiagnosticsProtocol,
    MergedDocument,
    ParserProtocol,
    Recipe,
    StructuralMergerProtocol,
)

log = logging.getLogger(__name__)


class ManifestMerger:
    """
    Wires a recipe's filter, signature function and stripping rules
    around the structural merger for one manifest kind.
    """

    def __init__(
        self,
        recipe: Recipe,
        merger: Optional[StructuralMergerProtocol] = None,
        parser: Optional[ParserProtocol] = None,
        diagnostics: Optional[DiagnosticsProtocol] = bus,
        self_dependency: Optional[str] = None,
    ):
        self.recipe = recipe
        self.merger = merger or SmartMerger()
        self.parser = parser or RubyParser()
        self.diagnostics = diagnostics
        self.self_dependency = self_dependency
        self.filter = StatementFilter(recipe, self.parser, diagnostics)
        self.editor = ManifestEditor(recipe, self.parser, diagnostics)
        self.fields = GemspecEditor(recipe, self.parser, diagnostics)

    def merge_document(self, template_text: str, destination_text: str) -> MergedDocument:
        """Runs the merge pipeline, letting parse or merge errors propagate."""
        if self.recipe.identity_fields:
            template_text = self.fields.carry_over(
                template_text, destination_text, self.recipe.identity_fields
            )
        filtered = self.filter.filter_to_scope(template_text)
        processed = self.editor.remove_builtin_declaration(destination_text)
        return self.merger.merge(
            self.parser.parse(filtered),
            self.parser.parse(processed),
            self.recipe.signature,
            self.recipe.merge_options(),
        )

    def merge(self, template_text: str, destination_text: str) -> str:
        try:
            merged = self.merge_document(template_text, destination_text).text
        except Exception as e:
            log.warning(f"{self.recipe.kind} merge failed: {e}")
            if self.diagnostics is not None:
                self.diagnostics.warning("merge.failed", target=self.recipe.kind, error=str(e))
            return destination_text

        if self.self_dependency:
            merged = self.editor.remove_named_dependency(merged, self.self_dependency)
        return merged
