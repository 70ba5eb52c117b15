import bisect
import re
from typing import Callable, List, Optional, Tuple

from graft.spec import (
    BlockQuote,
    CodeBlock,
    Heading,
    HtmlBlock,
    Image,
    Link,
    LinkDefinition,
    ListBlock,
    ListItem,
    Location,
    Node,
    Paragraph,
    ParseResult,
    Table,
    ThematicBreak,
)

FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
ATX_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
SETEXT_RE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
BREAK_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
HTML_RE = re.compile(r"^ {0,3}<(?:!--|[A-Za-z/!?])")
LINK_DEF_RE = re.compile(
    r"^ {0,3}\[([^\]]+)\]:[ \t]*<?([^\s>]+)>?(?:[ \t]+[\"'(](.*)[\"')])?[ \t]*$"
)
LIST_RE = re.compile(r"^([ \t]*)([-*+]|\d{1,9}[.)])(?:[ \t]+(.*))?$")
QUOTE_RE = re.compile(r"^ {0,3}>")
TABLE_DELIM_RE = re.compile(r"^[ \t]*\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?[ \t]*$")

BADGE_RE = re.compile(r"\[!\[([^\]]*)\]\(([^)\s]+)[^)]*\)\]\(([^)\s]+)[^)]*\)")
INLINE_RE = re.compile(r"(!?)\[([^\]]*)\]\(([^)\s]+)(?:\s+\"[^\"]*\")?\)")


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _closing_fence(line: str, fence: str) -> bool:
    stripped = line.strip()
    return stripped.startswith(fence[0] * len(fence)) and set(stripped) == {fence[0]}


def _cells(row: str) -> Tuple[str, ...]:
    row = row.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|"):
        row = row[:-1]
    return tuple(cell.strip() for cell in row.split("|"))


class MarkdownParser:
    """
    Line-oriented block scanner. It recognises the block structure merges
    care about and keeps every block's exact source slice, it is not a
    full CommonMark implementation.
    """

    def parse(self, text: str) -> ParseResult:
        self._text = text
        self._lines = text.splitlines()
        self._starts = [0]
        for line in text.splitlines(keepends=True):
            self._starts.append(self._starts[-1] + len(line))

        blocks: List[Node] = []
        i = 0
        while i < len(self._lines):
            if not self._lines[i].strip():
                i += 1
                continue
            node, i = self._block(i)
            blocks.append(node)
        return ParseResult(source=text, statements=blocks, comments=[])

    # --- Positions ---

    def _location(self, first: int, last: int) -> Location:
        """Location spanning 0-based line indexes `first`..`last` inclusive."""
        start = self._starts[first]
        end = self._starts[last] + len(self._lines[last])
        return Location(
            start_line=first + 1,
            start_column=1,
            end_line=last + 1,
            end_column=len(self._lines[last]) + 1,
            start_offset=start,
            end_offset=end,
        )

    def _span(self, first: int, last: int) -> Tuple[Location, str]:
        location = self._location(first, last)
        return location, self._text[location.start_offset : location.end_offset]

    def _offset_location(self, start: int, end: int) -> Location:
        first = bisect.bisect_right(self._starts, start) - 1
        last = bisect.bisect_right(self._starts, max(start, end - 1)) - 1
        return Location(
            start_line=first + 1,
            start_column=start - self._starts[first] + 1,
            end_line=last + 1,
            end_column=end - self._starts[last] + 1,
            start_offset=start,
            end_offset=end,
        )

    # --- Blocks ---

    def _block(self, i: int) -> Tuple[Node, int]:
        line = self._lines[i]
        for scan in (
            self._fence,
            self._atx,
            self._thematic_break,
            self._html,
            self._link_definition,
            self._table,
            self._list,
            self._quote,
        ):
            found = scan(i, line)
            if found is not None:
                return found
        return self._paragraph(i)

    def _fence(self, i: int, line: str) -> Optional[Tuple[Node, int]]:
        match = FENCE_RE.match(line)
        if not match:
            return None
        fence, info = match.group(1), match.group(2).strip()
        j = i + 1
        while j < len(self._lines) and not _closing_fence(self._lines[j], fence):
            j += 1
        last = min(j, len(self._lines) - 1)
        content = "\n".join(self._lines[i + 1 : j])
        location, source = self._span(i, last)
        return CodeBlock(location=location, source=source, info=info, content=content), last + 1

    def _atx(self, i: int, line: str) -> Optional[Tuple[Node, int]]:
        match = ATX_RE.match(line)
        if not match:
            return None
        text = re.sub(r"(?:^|[ \t]+)#+$", "", match.group(2) or "").strip()
        location, source = self._span(i, i)
        return Heading(location=location, source=source, level=len(match.group(1)), text=text), i + 1

    def _thematic_break(self, i: int, line: str) -> Optional[Tuple[Node, int]]:
        if not BREAK_RE.match(line):
            return None
        location, source = self._span(i, i)
        return ThematicBreak(location=location, source=source), i + 1

    def _html(self, i: int, line: str) -> Optional[Tuple[Node, int]]:
        if not HTML_RE.match(line):
            return None
        j = i
        if line.lstrip().startswith("<!--"):
            while j < len(self._lines) - 1 and "-->" not in self._lines[j]:
                j += 1
        else:
            while j + 1 < len(self._lines) and self._lines[j + 1].strip():
                j += 1
        location, source = self._span(i, j)
        return HtmlBlock(location=location, source=source, content=source.strip()), j + 1

    def _link_definition(self, i: int, line: str) -> Optional[Tuple[Node, int]]:
        match = LINK_DEF_RE.match(line)
        if not match:
            return None
        location, source = self._span(i, i)
        node = LinkDefinition(
            location=location,
            source=source,
            label=match.group(1),
            url=match.group(2),
            title=match.group(3),
        )
        return node, i + 1

    def _table(self, i: int, line: str) -> Optional[Tuple[Node, int]]:
        if "|" not in line or i + 1 >= len(self._lines):
            return None
        if not TABLE_DELIM_RE.match(self._lines[i + 1]) or "-" not in self._lines[i + 1]:
            return None
        j = i + 2
        while j < len(self._lines) and self._lines[j].strip() and "|" in self._lines[j]:
            j += 1
        rows = tuple(_cells(row) for row in self._lines[i + 2 : j])
        location, source = self._span(i, j - 1)
        return Table(location=location, source=source, header=_cells(line), rows=rows), j

    def _list(self, i: int, line: str) -> Optional[Tuple[Node, int]]:
        match = LIST_RE.match(line)
        if not match or BREAK_RE.match(line):
            return None
        base = len(match.group(1))
        ordered = match.group(2)[0].isdigit()

        def is_sibling(candidate: str) -> bool:
            m = LIST_RE.match(candidate)
            return bool(m) and len(m.group(1)) == base and m.group(2)[0].isdigit() == ordered

        items: List[ListItem] = []
        j = i
        while j < len(self._lines) and is_sibling(self._lines[j]):
            first = j
            j += 1
            while j < len(self._lines):
                current = self._lines[j]
                if current.strip() and _indent(current) > base:
                    j += 1
                    continue
                if not current.strip():
                    # A blank line continues the item only when indented
                    # content or a sibling follows it.
                    k = j
                    while k < len(self._lines) and not self._lines[k].strip():
                        k += 1
                    if k < len(self._lines) and _indent(self._lines[k]) > base:
                        j = k
                        continue
                    break
                break
            items.append(self._list_item(first, j - 1))
            if j < len(self._lines) and not self._lines[j].strip():
                k = j
                while k < len(self._lines) and not self._lines[k].strip():
                    k += 1
                if k < len(self._lines) and is_sibling(self._lines[k]):
                    j = k
        location, source = self._span(i, items[-1].location.end_line - 1)
        return ListBlock(location=location, source=source, ordered=ordered, items=tuple(items)), (
            items[-1].location.end_line
        )

    def _list_item(self, first: int, last: int) -> ListItem:
        match = LIST_RE.match(self._lines[first])
        location, source = self._span(first, last)
        text = (match.group(3) or "").strip()
        return ListItem(
            location=location,
            source=source,
            marker=match.group(2),
            text=text,
            inlines=self._inlines(location.start_offset, source),
        )

    def _quote(self, i: int, line: str) -> Optional[Tuple[Node, int]]:
        if not QUOTE_RE.match(line):
            return None
        j = i
        while j + 1 < len(self._lines) and QUOTE_RE.match(self._lines[j + 1]):
            j += 1
        location, source = self._span(i, j)
        text = "\n".join(re.sub(r"^ {0,3}> ?", "", ln) for ln in self._lines[i : j + 1])
        return BlockQuote(location=location, source=source, text=text), j + 1

    def _interrupts(self, line: str) -> bool:
        checks: Tuple[Callable[[str], object], ...] = (
            FENCE_RE.match,
            ATX_RE.match,
            BREAK_RE.match,
            HTML_RE.match,
            LIST_RE.match,
            QUOTE_RE.match,
        )
        return any(p(line) for p in checks)

    def _paragraph(self, i: int) -> Tuple[Node, int]:
        j = i
        while j + 1 < len(self._lines):
            following = self._lines[j + 1]
            if not following.strip():
                break
            if SETEXT_RE.match(following):
                level = 1 if following.strip()[0] == "=" else 2
                location, source = self._span(i, j + 1)
                text = " ".join(ln.strip() for ln in self._lines[i : j + 1])
                return Heading(location=location, source=source, level=level, text=text), j + 2
            if self._interrupts(following):
                break
            j += 1
        location, source = self._span(i, j)
        text = " ".join(ln.strip() for ln in self._lines[i : j + 1])
        return (
            Paragraph(
                location=location,
                source=source,
                text=text,
                inlines=self._inlines(location.start_offset, source),
            ),
            j + 1,
        )

    # --- Inlines ---

    def _inlines(self, base: int, source: str) -> Tuple[Node, ...]:
        found: List[Tuple[int, Node]] = []
        covered: List[Tuple[int, int]] = []

        for match in BADGE_RE.finditer(source):
            start, end = base + match.start(), base + match.end()
            covered.append((match.start(), match.end()))
            found.append(
                (
                    start,
                    Link(
                        location=self._offset_location(start, end),
                        source=match.group(0),
                        url=match.group(3),
                        text=f"![{match.group(1)}]({match.group(2)})",
                    ),
                )
            )
            image_start = start + 1
            image_end = start + match.group(0).index(")](") + 1
            image_source = self._text[image_start:image_end]
            found.append(
                (
                    image_start,
                    Image(
                        location=self._offset_location(image_start, image_end),
                        source=image_source,
                        url=match.group(2),
                        alt=match.group(1),
                    ),
                )
            )

        for match in INLINE_RE.finditer(source):
            if any(lo <= match.start() < hi for lo, hi in covered):
                continue
            start, end = base + match.start(), base + match.end()
            location = self._offset_location(start, end)
            if match.group(1):
                node: Node = Image(location=location, source=match.group(0), url=match.group(3), alt=match.group(2))
            else:
                node = Link(location=location, source=match.group(0), url=match.group(3), text=match.group(2))
            found.append((start, node))

        return tuple(node for _, node in sorted(found, key=lambda pair: pair[0]))
