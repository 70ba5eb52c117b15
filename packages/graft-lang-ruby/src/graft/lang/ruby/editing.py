import logging
import re
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from graft.spec import (
    Call,
    DiagnosticsProtocol,
    Identifier,
    Node,
    ParserProtocol,
    Recipe,
    SymbolLiteral,
)

from .literals import declaration_name, literal_value, option_value
from .parser import RubyParser

log = logging.getLogger(__name__)

Span = Tuple[int, int]
Edit = Tuple[int, int, str]
FieldValue = Union[str, List[str]]

SPEC_CONSTRUCTOR = "Gem::Specification.new"
IDENTITY_FIELDS = (
    "name",
    "version",
    "authors",
    "email",
    "summary",
    "description",
    "licenses",
    "required_ruby_version",
    "require_paths",
    "bindir",
    "executables",
)
# Prose fields whose template values are often bare emoji placeholders.
PROSE_FIELDS = frozenset({"summary", "description"})
PLACEHOLDER_RE = re.compile(r"[^\x00-\x7F]{1,4}")


def _line_span(text: str, start: int, end: int) -> Span:
    """
    Widens a node's span to its whole lines (trailing comment and newline
    included) when nothing else shares them; otherwise keeps the exact slice.
    """
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    if line_end == -1:
        line_end = len(text)
    before = text[line_start:start]
    after = text[end:line_end].strip()
    if before.strip() or (after and not after.startswith("#")):
        return start, end
    return line_start, min(line_end + 1, len(text))


def apply_edits(text: str, edits: Sequence[Edit]) -> str:
    out = text
    for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[1]), reverse=True):
        out = out[:start] + replacement + out[end:]
    return out


def remove_spans(text: str, spans: Sequence[Span]) -> str:
    return apply_edits(text, [(start, end, "") for start, end in set(spans)])


def is_placeholder(value: Optional[FieldValue]) -> bool:
    return isinstance(value, str) and PLACEHOLDER_RE.fullmatch(value.strip()) is not None


def field_value(node: Node) -> Optional[FieldValue]:
    """A string or list-of-strings right-hand side; anything else is None."""
    value = option_value(node)
    return None if isinstance(value, bool) else value


class RubySource(str):
    """A right-hand side written out as-is instead of as a string literal."""


def ruby_literal(value: FieldValue) -> str:
    def quote(s: str) -> str:
        return '"' + str(s).replace("\\", "\\\\").replace('"', '\\"') + '"'

    if isinstance(value, RubySource):
        return str(value)
    if isinstance(value, str):
        return quote(value)
    return "[" + ", ".join(quote(v) for v in value if v is not None) + "]"


class ManifestEditor:
    """Removes declarations from a manifest by cutting their exact source text."""

    failure_message = "strip.failed"

    def __init__(
        self,
        recipe: Recipe,
        parser: Optional[ParserProtocol] = None,
        diagnostics: Optional[DiagnosticsProtocol] = None,
    ):
        self.recipe = recipe
        self.parser = parser or RubyParser()
        self.diagnostics = diagnostics

    def _scoped_statements(self, statements: Sequence[Node]) -> Iterator[Node]:
        for node in statements:
            yield node
            if (
                isinstance(node, Call)
                and node.block is not None
                and declaration_name(node) in self.recipe.dependency_containers
            ):
                yield from self._scoped_statements(node.block.body)

    def _fail(self, target: str, text: str, error: Exception) -> str:
        log.warning(f"Could not edit {target} in {self.recipe.kind}: {error}")
        if self.diagnostics is not None:
            self.diagnostics.warning(self.failure_message, target=target, error=str(error))
        return text

    def _cut(self, text: str, nodes: List[Node]) -> str:
        spans = [
            _line_span(text, n.location.start_offset, n.location.end_offset) for n in nodes
        ]
        return remove_spans(text, spans)

    def remove_named_dependency(self, text: str, name: str) -> str:
        if not name or not name.strip():
            return text
        try:
            result = self.parser.parse(text)
            matches = [
                node
                for node in self._scoped_statements(result.statements)
                if isinstance(node, Call)
                and node.name in self.recipe.dependency_methods
                and node.arguments
                and literal_value(node.arguments[0]) == name
            ]
            if not matches:
                return text
            log.debug(f"Removing {len(matches)} declaration(s) of '{name}'")
            return self._cut(text, matches)
        except Exception as e:
            return self._fail(name, text, e)

    def remove_builtin_declaration(self, text: str) -> str:
        if not self.recipe.builtins:
            return text
        builtins = set(self.recipe.builtins)
        try:
            result = self.parser.parse(text)
            matches = [
                node
                for node in result.statements
                if isinstance(node, Call)
                and node.receiver is None
                and node.arguments
                and isinstance(node.arguments[0], SymbolLiteral)
                and (node.name, node.arguments[0].value) in builtins
            ]
            if not matches:
                return text
            return self._cut(text, matches)
        except Exception as e:
            return self._fail("built-in declaration", text, e)


class GemspecEditor(ManifestEditor):
    """
    Rewrites `spec.<field> = value` assignments and development
    dependency lines inside the `Gem::Specification.new` block. Only the
    edited statements change; everything else keeps its exact text.
    """

    failure_message = "gemspec.failed"

    def _spec_call(self, text: str) -> Optional[Call]:
        for node in self.parser.parse(text).statements:
            if (
                isinstance(node, Call)
                and node.block is not None
                and declaration_name(node) == SPEC_CONSTRUCTOR
            ):
                return node
        return None

    @staticmethod
    def _param(spec: Call) -> str:
        return spec.block.params[0] if spec.block.params else "spec"

    def _field_nodes(self, spec: Call) -> Dict[str, Call]:
        param = self._param(spec)
        fields: Dict[str, Call] = {}
        for node in spec.block.body:
            if (
                isinstance(node, Call)
                and node.is_assignment
                and isinstance(node.receiver, Identifier)
                and node.receiver.name == param
                and len(node.arguments) == 1
            ):
                fields.setdefault(node.name[:-1], node)
        return fields

    def _insertion(self, text: str, spec: Call, anchor: Optional[Node], lines: List[str]):
        if anchor is None and spec.block.body:
            anchor = spec.block.body[-1]
        if anchor is not None:
            indent = " " * (anchor.location.start_column - 1)
            at = text.find("\n", anchor.location.end_offset)
        else:
            indent = "  "
            at = text.find("\n", spec.block.location.start_offset)
        if at == -1:
            at = len(text)
        return (at, at, "".join(f"\n{indent}{line}" for line in lines))

    def read_fields(
        self, text: str, fields: Sequence[str] = IDENTITY_FIELDS, verbatim: bool = False
    ) -> Dict[str, FieldValue]:
        """
        Literal field values of a gemspec; parse errors propagate. With
        `verbatim`, computed values (`MyGem::VERSION`) come back as
        RubySource holding their exact text.
        """
        spec = self._spec_call(text)
        if spec is None:
            return {}
        nodes = self._field_nodes(spec)
        values: Dict[str, FieldValue] = {}
        for field in fields:
            node = nodes.get(field)
            if node is None:
                continue
            value = field_value(node.arguments[0])
            if value is None and verbatim:
                loc = node.arguments[0].location
                value = RubySource(text[loc.start_offset : loc.end_offset])
            if value is None:
                continue
            if field in PROSE_FIELDS and not str(value).strip():
                continue
            values[field] = value
        return values

    def replace_fields(self, text: str, replacements: Mapping[str, Optional[FieldValue]]) -> str:
        if not replacements:
            return text
        try:
            spec = self._spec_call(text)
            if spec is None:
                return text
            param = self._param(spec)
            nodes = self._field_nodes(spec)
            edits: List[Edit] = []
            inserts: List[str] = []

            for field, value in replacements.items():
                if value is None:
                    continue
                line = f"{param}.{field} = {ruby_literal(value)}"
                node = nodes.get(field)
                if node is None:
                    if not (field in PROSE_FIELDS and is_placeholder(value)):
                        inserts.append(line)
                    continue
                existing = field_value(node.arguments[0])
                if existing is None and not isinstance(value, RubySource):
                    log.debug(f"Keeping non-literal {param}.{field}")
                    continue
                if field in PROSE_FIELDS and is_placeholder(value) and not is_placeholder(existing):
                    continue
                edits.append((node.location.start_offset, node.location.end_offset, line))

            if inserts:
                edits.append(self._insertion(text, spec, nodes.get("version"), inserts))
            return apply_edits(text, edits)
        except Exception as e:
            return self._fail("gemspec fields", text, e)

    def carry_over(
        self, template: str, destination: str, fields: Sequence[str] = IDENTITY_FIELDS
    ) -> str:
        """Writes the destination's own field values into the template."""
        return self.replace_fields(template, self.read_fields(destination, fields, verbatim=True))

    def ensure_development_dependencies(self, text: str, desired: Mapping[str, str]) -> str:
        """
        Makes each `name -> line` in `desired` present: an existing
        declaration of that gem is rewritten to the line, otherwise the
        line is added after `spec.version` (or at the end of the block).
        """
        if not desired:
            return text
        try:
            spec = self._spec_call(text)
            if spec is None:
                out = text if not text or text.endswith("\n") else text + "\n"
                return out + "".join(f"{line.strip()}\n" for line in desired.values())

            declared: Dict[str, Call] = {}
            for node in spec.block.body:
                if isinstance(node, Call) and node.name in self.recipe.dependency_methods:
                    name = literal_value(node.arguments[0]) if node.arguments else None
                    if name is not None:
                        declared.setdefault(name, node)

            edits: List[Edit] = []
            inserts: List[str] = []
            for name, line in desired.items():
                node = declared.get(name)
                if node is None:
                    inserts.append(line.strip())
                else:
                    edits.append(
                        (node.location.start_offset, node.location.end_offset, line.strip())
                    )
            if inserts:
                anchor = self._field_nodes(spec).get("version")
                edits.append(self._insertion(text, spec, anchor, inserts))
            return apply_edits(text, edits)
        except Exception as e:
            return self._fail("development dependencies", text, e)
