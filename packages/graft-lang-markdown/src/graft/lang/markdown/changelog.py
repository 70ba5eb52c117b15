"""
Reconciliation of "Keep a Changelog" style revision histories.

The Unreleased section is rebuilt from the template heading and the six
canonical subheadings, then refilled with the destination's own entries.
Everything after the destination's Unreleased section is carried over
verbatim. This does not go through the structural merger.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

log = logging.getLogger(__name__)

CANONICAL_SUBHEADINGS = ("Added", "Changed", "Deprecated", "Removed", "Fixed", "Security")

UNRELEASED_RE = re.compile(r"^(#{1,6})\s*\[\s*Unreleased\s*\]", re.IGNORECASE)
# "##[Unreleased]" counts as a heading, as it does for UNRELEASED_RE.
HEADING_RE = re.compile(r"^(#{1,6})(?=\s|\[|$)")
LINK_DEF_RE = re.compile(r"^\s{0,3}\[[^\]]+\]:\s*\S")
FENCE_RE = re.compile(r"^\s*(```|~~~)")
BULLET_RE = re.compile(r"^(\s*)[-*+]\s")
VERSION_HEADING_RE = re.compile(r"^#+\s+\[.*\]")


class _State(Enum):
    NORMAL = "normal"
    IN_ITEM = "in_item"
    IN_FENCE = "in_fence"


@dataclass
class UnreleasedSection:
    # Subheading label -> item-blocks, each item-block a list of lines.
    buckets: Dict[str, List[List[str]]] = field(default_factory=dict)
    # Non-canonical labels in order of first appearance.
    custom_order: List[str] = field(default_factory=list)

    def add_bucket(self, label: str):
        if label not in self.buckets:
            self.buckets[label] = []
            if canonical_label(label) is None:
                self.custom_order.append(label)


def canonical_label(label: str) -> Optional[str]:
    for name in CANONICAL_SUBHEADINGS:
        if label.strip().lower() == name.lower():
            return name
    return None


def find_unreleased(lines: List[str]) -> Optional[int]:
    for index, line in enumerate(lines):
        if UNRELEASED_RE.match(line):
            return index
    return None


def find_section_end(lines: List[str], start: int) -> int:
    """
    Index of the last line of the section opened at `start`: the line
    before the next heading at the same or shallower level, or before the
    first link reference definition, whichever comes first.
    """
    level = len(HEADING_RE.match(lines[start]).group(1))
    in_fence = False
    for index in range(start + 1, len(lines)):
        line = lines[index]
        if FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        heading = HEADING_RE.match(line)
        if heading and len(heading.group(1)) <= level:
            return index - 1
        if LINK_DEF_RE.match(line):
            return index - 1
    return len(lines) - 1


def _subheading(line: str, level: int) -> Optional[str]:
    heading = HEADING_RE.match(line)
    if heading and len(heading.group(1)) == level:
        return line[len(heading.group(1)) :].strip()
    return None


def parse_items(body: List[str], level: int) -> UnreleasedSection:
    """
    Groups the Unreleased body into item-blocks per subheading.

    NORMAL   - between items; a subheading opens a bucket, a bullet an item.
    IN_ITEM  - absorbs blank lines and lines indented deeper than the
               bullet; a fence line switches to IN_FENCE. A sibling or
               shallower bullet, a subheading or any other line ends it.
    IN_FENCE - absorbs every line until the closing fence.
    """
    section = UnreleasedSection()
    current: Optional[str] = None
    item: List[str] = []
    indent = 0
    state = _State.NORMAL

    def close_item():
        nonlocal item
        if item and current is not None:
            section.buckets[current].append(item)
        item = []

    for line in body:
        if state == _State.IN_FENCE:
            item.append(line.rstrip())
            if FENCE_RE.match(line):
                state = _State.IN_ITEM
            continue

        if state == _State.IN_ITEM:
            bullet = BULLET_RE.match(line)
            if FENCE_RE.match(line):
                item.append(line.rstrip())
                state = _State.IN_FENCE
                continue
            if bullet and len(bullet.group(1)) <= indent:
                close_item()
                state = _State.NORMAL
            elif _subheading(line, level) is not None:
                close_item()
                state = _State.NORMAL
            elif not line.strip() or len(line) - len(line.lstrip()) > indent:
                item.append(line.rstrip())
                continue
            else:
                close_item()
                state = _State.NORMAL

        label = _subheading(line, level)
        if label is not None:
            current = label
            section.add_bucket(label)
            continue
        bullet = BULLET_RE.match(line)
        if bullet:
            if current is None:
                log.debug(f"Dropping item outside any subheading: {line.strip()}")
            item = [line.rstrip()]
            indent = len(bullet.group(1))
            state = _State.IN_ITEM

    if state != _State.NORMAL:
        close_item()
    return section


def normalize_release_headers(text: str) -> str:
    lines = text.split("\n")
    return "\n".join(
        re.sub(r"[ \t]+", " ", line) if VERSION_HEADING_RE.match(line) else line
        for line in lines
    )


def _finish(text: str) -> str:
    return normalize_release_headers(text).rstrip("\n").rstrip() + "\n"


class RevisionHistoryMerger:
    def __init__(self, preserve_custom_sections: bool = True):
        self.preserve_custom_sections = preserve_custom_sections

    def merge(self, template: str, destination: Optional[str]) -> str:
        if destination is None or not destination.strip():
            return template

        tmpl_lines = template.split("\n")
        tmpl_index = find_unreleased(tmpl_lines)
        if tmpl_index is None:
            return _finish(template)

        dest_lines = destination.split("\n")
        dest_index = find_unreleased(dest_lines)
        tmpl_heading = tmpl_lines[tmpl_index]
        level = len(UNRELEASED_RE.match(tmpl_heading).group(1))

        if dest_index is not None:
            dest_level = len(UNRELEASED_RE.match(dest_lines[dest_index]).group(1))
            dest_end = find_section_end(dest_lines, dest_index)
            section = parse_items(dest_lines[dest_index + 1 : dest_end + 1], dest_level + 1)
            remainder = dest_lines[dest_end + 1 :]
        else:
            section = UnreleasedSection()
            remainder = self._history_without_unreleased(dest_lines, level)

        block = [tmpl_heading]
        prefix = "#" * (level + 1)
        for name in CANONICAL_SUBHEADINGS:
            block.append(f"{prefix} {name}")
            for label, items in section.buckets.items():
                if canonical_label(label) == name:
                    for item in items:
                        block.extend(item)
        if self.preserve_custom_sections:
            for label in section.custom_order:
                block.append(f"{prefix} {label}")
                for item in section.buckets[label]:
                    block.extend(item)

        while block and not block[-1].strip():
            block.pop()
        while remainder and not remainder[0].strip():
            remainder.pop(0)

        merged = tmpl_lines[:tmpl_index] + block
        if remainder:
            merged.append("")
            merged.extend(remainder)
        return _finish("\n".join(merged))

    def _history_without_unreleased(self, lines: List[str], level: int) -> List[str]:
        # Without an Unreleased section, history starts at the first
        # release-level heading or the link reference block.
        in_fence = False
        for index, line in enumerate(lines):
            if FENCE_RE.match(line):
                in_fence = not in_fence
                continue
            if in_fence:
                continue
            heading = HEADING_RE.match(line)
            if (heading and len(heading.group(1)) == level) or LINK_DEF_RE.match(line):
                return lines[index:]
        return []


def merge_revision_history(
    template: str, destination: Optional[str], preserve_custom_sections: bool = True
) -> str:
    return RevisionHistoryMerger(preserve_custom_sections).merge(template, destination)
