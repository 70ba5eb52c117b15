import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from graft.spec import (
    DiagnosticsProtocol,
    Heading,
    MergeOptions,
    Node,
    ParserProtocol,
    Preference,
    Signature,
    StructuralMergerProtocol,
)

from .parser import MarkdownParser
from .signatures import markdown_signature

log = logging.getLogger(__name__)

DEFAULT_PRESERVED_SECTIONS = ("synopsis", "configuration", "basic usage")
NOTE_PREFIX = "note:"

_HEADING_RE = re.compile(r"^(#+)\s+\S")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_H1_RE = re.compile(r"^#\s+")


@dataclass
class _Section:
    start: int
    level: int
    heading: str
    base: str


def readme_signature(node: Node) -> Signature:
    # The document title is a single entry whatever its wording.
    if isinstance(node, Heading) and node.level == 1:
        return ("header", 1)
    return markdown_signature(node)


def section_base(heading: str) -> str:
    text = re.sub(r"^#+\s+", "", heading)
    # Leading emoji and punctuation do not change a section's identity.
    text = re.sub(r"^[\W_]+", "", text)
    return text.strip().lower()


def parse_sections(lines: Sequence[str]) -> List[_Section]:
    sections: List[_Section] = []
    in_fence = False
    for index, line in enumerate(lines):
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = _HEADING_RE.match(line)
        if match:
            sections.append(
                _Section(start=index, level=len(match.group(1)), heading=line, base=section_base(line))
            )
    return sections


def section_end(sections: Sequence[_Section], index: int, line_count: int) -> int:
    current = sections[index]
    for later in sections[index + 1 :]:
        if later.level <= current.level:
            return later.start - 1
    return line_count - 1


class ReadmeMerger:
    """
    Merges a README template into a project's copy: block-level structural
    merge first, then the hand-written sections and the title are put back.
    """

    def __init__(
        self,
        merger: StructuralMergerProtocol,
        parser: Optional[ParserProtocol] = None,
        preserved_sections: Sequence[str] = DEFAULT_PRESERVED_SECTIONS,
        freeze_token: str = "graft",
        diagnostics: Optional[DiagnosticsProtocol] = None,
    ):
        self.merger = merger
        self.parser = parser or MarkdownParser()
        self.preserved_sections = tuple(s.lower() for s in preserved_sections)
        self.freeze_token = freeze_token
        self.diagnostics = diagnostics

    def merge(self, template: str, destination: Optional[str]) -> str:
        if destination is None or not destination.strip():
            return template
        try:
            options = MergeOptions(
                preference=Preference.TEMPLATE,
                insert_unmatched=True,
                remove_duplicates=False,
                freeze_token=self.freeze_token,
            )
            merged = self.merger.merge(
                self.parser.parse(template),
                self.parser.parse(destination),
                readme_signature,
                options,
            ).text
            merged = self.preserve_sections(merged, destination)
            return self.preserve_h1(merged, destination)
        except Exception as e:
            log.warning(f"README merge failed: {e}")
            if self.diagnostics is not None:
                self.diagnostics.warning("merge.failed", target="README", error=str(e))
            return destination

    def preserve_sections(self, merged: str, destination: str) -> str:
        dest_lines = destination.split("\n")
        dest_sections = parse_sections(dest_lines)
        dest_bodies: Dict[str, List[str]] = {}
        for index, sec in enumerate(dest_sections):
            if sec.base in dest_bodies:
                continue
            end = section_end(dest_sections, index, len(dest_lines))
            dest_bodies[sec.base] = dest_lines[sec.start + 1 : end + 1]

        lines = merged.split("\n")
        sections = parse_sections(lines)
        targets = set(self.preserved_sections)
        targets.update(s.base for s in sections if s.base.startswith(NOTE_PREFIX))

        # Back to front so earlier line indexes stay valid.
        for index in reversed(range(len(sections))):
            sec = sections[index]
            if sec.base not in targets or sec.base not in dest_bodies:
                continue
            end = section_end(sections, index, len(lines))
            lines[sec.start : end + 1] = [sec.heading] + dest_bodies[sec.base]
        return "\n".join(lines)

    def preserve_h1(self, merged: str, destination: str) -> str:
        dest_h1 = next((ln for ln in destination.split("\n") if _H1_RE.match(ln)), None)
        if dest_h1 is None:
            return merged
        lines = merged.split("\n")
        for index, line in enumerate(lines):
            if _H1_RE.match(line):
                lines[index] = dest_h1
                break
        return "\n".join(lines)
