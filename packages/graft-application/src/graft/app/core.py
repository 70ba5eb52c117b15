from pathlib import Path
from typing import List, Optional

from graft.common import bus
from graft.common.errors import GraftError, ParseError, RecipeError
from graft.config import GraftConfig, load_config_from_path
from graft.lang.ruby import ManifestEditor, RubyParser, SectionClassifier, recipe_for_kind
from graft.spec import MergedDocument, Provenance, TypedSection

from .api import DOCUMENT_KINDS, detect_kind, merge_file
from .services import ManifestMerger

MARKDOWN_KINDS = ("changelog", "readme")


class GraftApp:
    """File-level operations behind the CLI. Reports progress through the bus."""

    def __init__(self, root_path: Path, config: Optional[GraftConfig] = None):
        self.root_path = root_path
        self.config = config or load_config_from_path(root_path)

    def _relative(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self.root_path.resolve()).as_posix()
        except ValueError:
            return str(path)

    def _resolve_kind(self, *paths: Path, kind: Optional[str] = None) -> str:
        if kind is None:
            kind = next((k for k in map(detect_kind, paths) if k), None)
        if kind not in DOCUMENT_KINDS:
            bus.error("cli.unknown_kind", path=self._relative(paths[0]))
            raise RecipeError(f"Cannot determine document kind for {paths[0]}")
        return kind

    def _require_manifest(self, path: Path, kind: Optional[str] = None) -> str:
        kind = self._resolve_kind(path, kind=kind)
        if kind in MARKDOWN_KINDS:
            bus.error("cli.not_manifest", path=self._relative(path), kind=kind)
            raise RecipeError(f"{path} is not a manifest")
        return kind

    def _read(self, path: Path) -> str:
        if not path.is_file():
            bus.error("cli.missing_file", path=self._relative(path))
            raise GraftError(f"File not found: {path}")
        return path.read_text(encoding="utf-8")

    def _merge_manifest(self, kind: str, template: str, destination: str) -> str:
        recipe = recipe_for_kind(kind, freeze_token=self.config.freeze_token)
        merger = ManifestMerger(recipe, self_dependency=self.config.self_dependency)
        try:
            document: MergedDocument = merger.merge_document(template, destination)
        except Exception as e:
            bus.warning("merge.failed", target=kind, error=str(e))
            return destination

        bus.info(
            "merge.summary",
            inserted=document.count(Provenance.INSERTED),
            replaced=document.count(Provenance.REPLACED),
            removed=document.count(Provenance.REMOVED),
        )
        merged = document.text
        if self.config.self_dependency:
            merged = merger.editor.remove_named_dependency(merged, self.config.self_dependency)
        return merged

    def run_merge(
        self,
        template_path: Path,
        dest_path: Path,
        kind: Optional[str] = None,
        dry_run: bool = False,
    ) -> bool:
        kind = self._resolve_kind(dest_path, template_path, kind=kind)
        template = self._read(template_path)
        destination = dest_path.read_text(encoding="utf-8") if dest_path.is_file() else ""

        if kind in MARKDOWN_KINDS:
            merged = merge_file(kind, template, destination, self.config)
        else:
            merged = self._merge_manifest(kind, template, destination)

        rel_path = self._relative(dest_path)
        if merged == destination:
            bus.info("merge.unchanged", path=rel_path)
            return False
        if dry_run:
            bus.info("merge.dry_run", path=rel_path, kind=kind)
            return True

        dest_path.parent.mkdir(parents=True, exist_ok=True)
        dest_path.write_text(merged, encoding="utf-8")
        bus.success("merge.written", path=rel_path, kind=kind)
        return True

    def run_strip(self, dest_path: Path, name: Optional[str] = None) -> bool:
        name = name or self.config.self_dependency
        if not name:
            bus.error("strip.no_name")
            raise GraftError("No dependency name given and no self_dependency configured")

        kind = self._require_manifest(dest_path)
        original = self._read(dest_path)
        editor = ManifestEditor(recipe_for_kind(kind), diagnostics=bus)
        stripped = editor.remove_named_dependency(original, name)

        rel_path = self._relative(dest_path)
        if stripped == original:
            bus.warning("strip.not_found", name=name, path=rel_path)
            return False
        dest_path.write_text(stripped, encoding="utf-8")
        bus.success("strip.removed", name=name, path=rel_path)
        return True

    def run_classify(self, path: Path, kind: Optional[str] = None) -> List[TypedSection]:
        kind = self._require_manifest(path, kind=kind)
        recipe = recipe_for_kind(kind)
        try:
            result = RubyParser().parse(self._read(path))
        except ParseError as e:
            bus.error("parse.failed", path=self._relative(path), error=str(e))
            raise
        sections = SectionClassifier(recipe.classifiers).classify_all(result.statements)
        for section in sections:
            name = section.name if section.name is not None else f"({len(section.nodes)} statements)"
            bus.info("cli.section", type=section.type, name=name)
        return sections
