import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from graft.spec import (
    Block,
    Call,
    MergedDocument,
    MergedEntry,
    MergeOptions,
    ParseResult,
    Preference,
    Provenance,
    Signature,
    SignatureFn,
)

from .segments import Segment, SegmentedDocument, segment

log = logging.getLogger(__name__)


def _terminated(text: str) -> str:
    return text if not text or text.endswith("\n") else text + "\n"


def _block_of(seg: Segment) -> Optional[Block]:
    node = seg.node
    if len(seg.nodes) != 1 or not isinstance(node, Call) or node.block is None:
        return None
    block = node.block
    # Needs an opening line, at least one body line and a closing line.
    if block.location.end_line - block.location.start_line < 2:
        return None
    if any(
        not (block.location.start_line < s.location.start_line)
        or not (s.location.end_line < block.location.end_line)
        for s in block.body
    ):
        return None
    return block


@dataclass
class _Plan:
    # Inserted template segments keyed by the destination index they follow
    # (`after`) or precede (`before`); unanchored ones go to `appended`.
    after: Dict[int, List[Segment]] = field(default_factory=dict)
    before: Dict[int, List[Segment]] = field(default_factory=dict)
    appended: List[Segment] = field(default_factory=list)


class SmartMerger:
    """
    Line-preserving structural merge of two statement streams.

    Statements are matched by signature. Matched destination entries keep
    their position and leading comments, unmatched template entries are
    inserted next to their nearest matched neighbour, and everything the
    template does not mention is left byte-for-byte alone.
    """

    def merge(
        self,
        template: ParseResult,
        destination: ParseResult,
        signature: SignatureFn,
        options: MergeOptions = MergeOptions(),
    ) -> MergedDocument:
        tmpl_doc = self._segment(template, signature, options)
        dest_doc = self._segment(destination, signature, options)

        if not dest_doc.segments:
            entries: List[MergedEntry] = []
            if destination.source:
                entries.append(MergedEntry(Provenance.KEPT, destination.source))
            if options.insert_unmatched:
                entries.extend(
                    MergedEntry(Provenance.INSERTED, seg.text, seg.signature)
                    for seg in tmpl_doc.segments
                )
            document = MergedDocument(entries=entries, tail="")
        else:
            document = self._merge_segments(
                template, destination, tmpl_doc, dest_doc, signature, options
            )

        if template.source.endswith("\n\n"):
            self._separate_last_insert(document)
        self._terminate_lines(document)
        return document

    def _segment(
        self, result: ParseResult, signature: SignatureFn, options: MergeOptions, **kwargs
    ) -> SegmentedDocument:
        return segment(
            result,
            signature,
            attach_to_next=options.attach_to_next,
            freeze_token=options.freeze_token,
            **kwargs,
        )

    def _merge_segments(
        self,
        template: ParseResult,
        destination: ParseResult,
        tmpl_doc: SegmentedDocument,
        dest_doc: SegmentedDocument,
        signature: SignatureFn,
        options: MergeOptions,
    ) -> MergedDocument:
        first_seen: Dict[Signature, int] = {}
        for index, seg in enumerate(dest_doc.segments):
            first_seen.setdefault(seg.signature, index)

        tmpl_first: Dict[Signature, Segment] = {}
        for seg in tmpl_doc.segments:
            tmpl_first.setdefault(seg.signature, seg)

        plan = self._plan_insertions(tmpl_doc, first_seen, options)

        entries: List[MergedEntry] = []
        for index, seg in enumerate(dest_doc.segments):
            for ins in plan.before.get(index, []):
                entries.append(MergedEntry(Provenance.INSERTED, _terminated(ins.text), ins.signature))

            duplicate = first_seen[seg.signature] != index and not seg.frozen
            if duplicate and not options.remove_duplicates:
                entries.append(MergedEntry(Provenance.KEPT, seg.text, seg.signature))
            elif duplicate:
                log.debug(f"Dropping duplicate entry {seg.signature}")
                if seg.leading:
                    entries.append(MergedEntry(Provenance.KEPT, seg.leading))
                entries.append(MergedEntry(Provenance.REMOVED, seg.body, seg.signature))
            else:
                entries.append(
                    self._reconcile(
                        seg, tmpl_first.get(seg.signature), template, destination, signature, options
                    )
                )

            for ins in plan.after.get(index, []):
                entries.append(MergedEntry(Provenance.INSERTED, _terminated(ins.text), ins.signature))

        for ins in plan.appended:
            entries.append(MergedEntry(Provenance.INSERTED, _terminated(ins.text), ins.signature))

        return MergedDocument(entries=entries, tail=dest_doc.tail)

    def _plan_insertions(
        self,
        tmpl_doc: SegmentedDocument,
        first_seen: Dict[Signature, int],
        options: MergeOptions,
    ) -> _Plan:
        plan = _Plan()
        if not options.insert_unmatched:
            return plan

        anchor: Optional[int] = None
        pending: List[Segment] = []
        placed = set()
        for seg in tmpl_doc.segments:
            if seg.signature in placed:
                continue
            placed.add(seg.signature)

            matched = first_seen.get(seg.signature)
            if matched is not None:
                if pending:
                    plan.before.setdefault(matched, []).extend(pending)
                    pending = []
                anchor = matched
                continue

            if anchor is not None:
                plan.after.setdefault(anchor, []).append(seg)
            else:
                pending.append(seg)
        plan.appended.extend(pending)
        return plan

    def _reconcile(
        self,
        dest: Segment,
        tmpl: Optional[Segment],
        template: ParseResult,
        destination: ParseResult,
        signature: SignatureFn,
        options: MergeOptions,
    ) -> MergedEntry:
        if tmpl is None or dest.frozen:
            return MergedEntry(Provenance.KEPT, dest.text, dest.signature)

        if options.recurse_blocks:
            body = self._merge_block(dest, tmpl, template, destination, signature, options)
            if body is not None:
                provenance = Provenance.KEPT if body == dest.body else Provenance.REPLACED
                return MergedEntry(provenance, dest.leading + body, dest.signature)

        if options.preference == Preference.DESTINATION or tmpl.body == dest.body:
            return MergedEntry(Provenance.KEPT, dest.text, dest.signature)
        return MergedEntry(Provenance.REPLACED, dest.leading + tmpl.body, dest.signature)

    def _merge_block(
        self,
        dest: Segment,
        tmpl: Segment,
        template: ParseResult,
        destination: ParseResult,
        signature: SignatureFn,
        options: MergeOptions,
    ) -> Optional[str]:
        dest_block, tmpl_block = _block_of(dest), _block_of(tmpl)
        if dest_block is None or tmpl_block is None:
            return None

        inner_tmpl = self._segment(
            template,
            signature,
            options,
            statements=tmpl_block.body,
            first_line=tmpl_block.location.start_line + 1,
            last_line=tmpl_block.location.end_line - 1,
        )
        inner_dest = self._segment(
            destination,
            signature,
            options,
            statements=dest_block.body,
            first_line=dest_block.location.start_line + 1,
            last_line=dest_block.location.end_line - 1,
        )
        if inner_dest.segments:
            inner = self._merge_segments(
                template, destination, inner_tmpl, inner_dest, signature, options
            )
        else:
            inner = MergedDocument(
                entries=[
                    MergedEntry(Provenance.INSERTED, s.text, s.signature)
                    for s in inner_tmpl.segments
                    if options.insert_unmatched
                ],
                tail=inner_dest.tail,
            )
        self._terminate_lines(inner, closing=True)

        lines = destination.source.splitlines(keepends=True)
        opening = "".join(lines[dest.start_line - 1 : dest_block.location.start_line])
        closing = "".join(lines[dest_block.location.end_line - 1 : dest.end_line])
        return opening + inner.text + closing

    def _separate_last_insert(self, document: MergedDocument):
        # Leave a blank line after the last inserted run.
        visible = [i for i, e in enumerate(document.entries) if e.provenance != Provenance.REMOVED]
        inserted = [i for i in visible if document.entries[i].provenance == Provenance.INSERTED]
        if not inserted:
            return
        last = inserted[-1]
        following = [document.entries[i].text for i in visible if i > last]
        rest = "".join(following) + document.tail
        if not rest or rest.startswith("\n"):
            return
        entry = document.entries[last]
        entry.text = _terminated(entry.text) + "\n"

    def _terminate_lines(self, document: MergedDocument, closing: bool = False):
        visible: List[Tuple[int, MergedEntry]] = [
            (i, e) for i, e in enumerate(document.entries) if e.provenance != Provenance.REMOVED and e.text
        ]
        for position, (_, entry) in enumerate(visible):
            is_last = position == len(visible) - 1
            if not is_last or document.tail or closing:
                entry.text = _terminated(entry.text)
