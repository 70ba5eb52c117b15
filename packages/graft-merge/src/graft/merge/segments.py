import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from graft.spec import Call, Node, ParseResult, Signature, SignatureFn


@dataclass
class Segment:
    """
    One unit of merging: the blank/comment lines above a statement (its
    leading text) plus the full lines the statement occupies.
    """

    leading: str
    body: str
    nodes: List[Node]
    start_line: int
    end_line: int
    signature: Signature = None
    frozen: bool = False

    @property
    def node(self) -> Node:
        return self.nodes[-1]

    @property
    def text(self) -> str:
        return self.leading + self.body


@dataclass
class SegmentedDocument:
    segments: List[Segment] = field(default_factory=list)
    # Lines after the last statement within the segmented range.
    tail: str = ""


def fallback_signature(text: str) -> Tuple[str, str]:
    return ("__text__", " ".join(text.split()))


def freeze_ranges(lines: Sequence[str], token: str) -> List[Tuple[int, int]]:
    """1-based inclusive line ranges enclosed by freeze/unfreeze markers."""
    marker = re.compile(rf"(?:#|<!--)\s*{re.escape(token)}:(freeze|unfreeze)\b")
    ranges: List[Tuple[int, int]] = []
    opened: Optional[int] = None
    for number, line in enumerate(lines, start=1):
        match = marker.search(line)
        if not match:
            continue
        if match.group(1) == "freeze" and opened is None:
            opened = number
        elif match.group(1) == "unfreeze" and opened is not None:
            ranges.append((opened, number))
            opened = None
    if opened is not None:
        ranges.append((opened, len(lines)))
    return ranges


def _group_by_lines(statements: Sequence[Node]) -> List[List[Node]]:
    groups: List[List[Node]] = []
    for node in sorted(statements, key=lambda n: n.location.start_offset):
        if groups and node.location.start_line <= groups[-1][-1].location.end_line:
            groups[-1].append(node)
        else:
            groups.append([node])
    return groups


def _attach(segments: List[Segment], names: Sequence[str]) -> List[Segment]:
    # Fold declarations such as `desc "..."` into the statement they describe.
    if not names:
        return segments
    folded: List[Segment] = []
    carry: Optional[Segment] = None
    for seg in segments:
        if carry is not None:
            seg = Segment(
                leading=carry.leading,
                body=carry.body + seg.leading + seg.body,
                nodes=carry.nodes + seg.nodes,
                start_line=carry.start_line,
                end_line=seg.end_line,
            )
            carry = None
        if len(seg.nodes) == 1 and isinstance(seg.node, Call) and seg.node.name in names:
            carry = seg
            continue
        folded.append(seg)
    if carry is not None:
        folded.append(carry)
    return folded


def segment(
    result: ParseResult,
    signature: SignatureFn,
    statements: Optional[Sequence[Node]] = None,
    first_line: int = 1,
    last_line: Optional[int] = None,
    attach_to_next: Sequence[str] = (),
    freeze_token: Optional[str] = None,
) -> SegmentedDocument:
    lines = result.source.splitlines(keepends=True)
    if last_line is None:
        last_line = len(lines)
    nodes = result.statements if statements is None else statements

    def text(start: int, end: int) -> str:
        return "".join(lines[start - 1 : end])

    segments: List[Segment] = []
    cursor = first_line
    for group in _group_by_lines(nodes):
        start = group[0].location.start_line
        end = max(n.location.end_line for n in group)
        segments.append(
            Segment(
                leading=text(cursor, start - 1),
                body=text(start, end),
                nodes=group,
                start_line=start,
                end_line=end,
            )
        )
        cursor = end + 1

    segments = _attach(segments, attach_to_next)
    frozen = freeze_ranges(lines, freeze_token) if freeze_token else []
    for seg in segments:
        seg.signature = signature(seg.node)
        if seg.signature is None:
            seg.signature = fallback_signature(seg.body)
        seg.frozen = any(lo <= seg.start_line <= hi for lo, hi in frozen)

    return SegmentedDocument(segments=segments, tail=text(cursor, last_line))
