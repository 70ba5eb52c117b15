import logging
import re
import textwrap
from dataclasses import replace
from functools import lru_cache
from importlib import resources
from typing import Dict, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedInput
from lark.lark import PostLex

from graft.common.errors import ParseError
from graft.spec import (
    ArrayLiteral,
    Assignment,
    Block,
    BooleanLiteral,
    Branch,
    Call,
    Comment,
    ConstantPath,
    ControlFlow,
    HashLiteral,
    Identifier,
    Location,
    MethodDef,
    Namespace,
    NilLiteral,
    Node,
    NumberLiteral,
    Operation,
    Pair,
    ParseResult,
    StringLiteral,
    SymbolLiteral,
    Unrecognized,
)

log = logging.getLogger(__name__)

# Tokens after which a line break cannot end the statement.
_CONTINUATION = frozenset(
    {
        "_COMMA",
        "_LPAR",
        "_LSQB",
        "_DOT",
        "_COLON2",
        "_EQUAL",
        "_ROCKET",
        "_AND",
        "_OR",
        "_NOT",
        "_BANG",
        "BINOP",
        "OP_ASSIGN",
        "_QMARK",
        "_COLON",
    }
)
_OPENERS = frozenset({"_LPAR", "_LSQB"})
_CLOSERS = frozenset({"_RPAR", "_RSQB"})
# Only seen when lexing with dont_ignore=True.
_TRANSPARENT = frozenset({"WS", "COMMENT", "LINE_CONT"})

_ESCAPES = {"n": "\n", "t": "\t", "s": " ", "r": "\r", "0": "\0", "e": "\x1b"}


class NewlinePostLex(PostLex):
    """
    Turns raw newlines into statement separators: drops them inside
    parentheses and brackets, after continuation tokens, before a leading
    `.method` line, and collapses runs of blank lines into one.
    """

    always_accept = ("_NL",)

    def process(self, stream: Iterator[Token]) -> Iterator[Token]:
        depth = 0
        prev_type: Optional[str] = None
        pending: Optional[Token] = None

        for tok in stream:
            kind = tok.type
            if kind in _TRANSPARENT:
                yield tok
                continue

            if kind == "_NL":
                if (
                    depth == 0
                    and pending is None
                    and prev_type is not None
                    and prev_type not in _CONTINUATION
                ):
                    pending = tok
                continue

            if pending is not None:
                if kind != "_DOT":
                    yield pending
                pending = None

            if kind in _OPENERS:
                depth += 1
            elif kind in _CLOSERS and depth:
                depth -= 1
            prev_type = kind
            yield tok

        if pending is not None:
            yield pending


@lru_cache(maxsize=None)
def _grammar() -> str:
    return (
        resources.files("graft.lang.ruby")
        .joinpath("grammar.lark")
        .read_text(encoding="utf-8")
    )


@lru_cache(maxsize=None)
def _get_lark() -> Lark:
    # Earley: `foo (x)`, `foo { }` and `x ? a : b` need more than one
    # token of lookahead to tell apart.
    return Lark(
        _grammar(),
        parser="earley",
        lexer="basic",
        ambiguity="resolve",
        postlex=NewlinePostLex(),
        propagate_positions=True,
        maybe_placeholders=False,
    )


HEREDOC_RE = re.compile(r"<<([~-]?)([\"'`]?)([A-Za-z_]\w*)\2")
_QUOTED_RE = re.compile(r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'")


class Heredoc(NamedTuple):
    value: str
    interpolated: bool
    # Offset just past the terminator identifier.
    end: int


def _in_code(line: str, pos: int) -> bool:
    # Outside string literals and comments, judged from the line prefix.
    prefix = _QUOTED_RE.sub("", line[:pos])
    return not any(c in prefix for c in "\"'#")


def scan_heredocs(text: str) -> Tuple[str, Dict[int, Heredoc]]:
    """
    Finds heredoc bodies and blanks them out so the lexer only sees the
    `<<~ID` opener. Offsets are unchanged; the returned mapping is keyed
    by opener offset.
    """
    heredocs: Dict[int, Heredoc] = {}
    lines = text.splitlines(keepends=True)
    out: List[str] = []
    offset = 0
    index = 0

    while index < len(lines):
        line = lines[index]
        line_start = offset
        out.append(line)
        offset += len(line)
        index += 1

        for match in HEREDOC_RE.finditer(line):
            if not _in_code(line, match.start()):
                continue
            flavor, quote, ident = match.groups()
            body: List[str] = []
            while True:
                if index >= len(lines):
                    raise ParseError(
                        f"Unterminated heredoc {ident}",
                        line=text.count("\n", 0, line_start) + 1,
                        column=match.start() + 1,
                    )
                candidate = lines[index]
                index += 1
                offset += len(candidate)
                out.append(re.sub(r"[^\n]", " ", candidate))
                closing = candidate.rstrip("\r\n")
                if (closing.strip() if flavor else closing) == ident:
                    end = offset - len(candidate) + len(closing.rstrip())
                    break
                body.append(candidate)

            raw = "".join(body)
            if flavor == "~":
                raw = textwrap.dedent(raw)
            if quote == "'":
                heredocs[line_start + match.start()] = Heredoc(raw, False, end)
            else:
                heredocs[line_start + match.start()] = Heredoc(
                    _unescape(raw, '"'), "#{" in raw, end
                )

    return "".join(out), heredocs


def _location(item) -> Location:
    # Tree metas and Tokens expose the same position attributes.
    return Location(
        start_line=item.line,
        start_column=item.column,
        end_line=item.end_line,
        end_column=item.end_column,
        start_offset=item.start_pos,
        end_offset=item.end_pos,
    )


def _span(nodes: Sequence[Node]) -> Location:
    first, last = nodes[0].location, nodes[-1].location
    return Location(
        start_line=first.start_line,
        start_column=first.start_column,
        end_line=last.end_line,
        end_column=last.end_column,
        start_offset=first.start_offset,
        end_offset=last.end_offset,
    )


def _unescape(inner: str, quote: str) -> str:
    if quote == "'":
        return re.sub(r"\\([\\'])", r"\1", inner)
    return re.sub(r"\\([\s\S])", lambda m: _ESCAPES.get(m.group(1), m.group(1)), inner)


def unquote(raw: str) -> Tuple[str, bool]:
    """Returns the literal value of a quoted token and whether it interpolates."""
    quote, inner = raw[0], raw[1:-1]
    interpolated = quote == '"' and "#{" in inner
    return _unescape(inner, quote), interpolated


class _DefName(NamedTuple):
    name: str
    singleton: bool


@v_args(meta=True)
class _NodeBuilder(Transformer):
    def __init__(self, text: str, heredocs: Optional[Dict[int, Heredoc]] = None):
        super().__init__(visit_tokens=False)
        self._text = text
        self._heredocs = heredocs or {}

    def _make(self, cls, meta, **fields):
        return cls(
            location=_location(meta),
            source=self._text[meta.start_pos : meta.end_pos],
            **fields,
        )

    def _keyword_args(self, items: Sequence[Node]) -> Tuple[Node, ...]:
        args = list(items)
        cut = len(args)
        while cut > 0 and isinstance(args[cut - 1], Pair):
            cut -= 1
        pairs = args[cut:]
        if not pairs:
            return tuple(args)
        location = _span(pairs)
        keyword_hash = HashLiteral(
            location=location,
            source=self._text[location.start_offset : location.end_offset],
            pairs=tuple(pairs),
            braced=False,
        )
        return tuple(args[:cut]) + (keyword_hash,)

    def _call(self, meta, name: str, receiver, rest) -> Call:
        arguments: Tuple[Node, ...] = ()
        block = None
        for item in rest:
            if isinstance(item, list):
                arguments = self._keyword_args(item)
            elif isinstance(item, Block):
                block = item
        return self._make(Call, meta, name=name, receiver=receiver, arguments=arguments, block=block)

    def _as_statement(self, node):
        # A bare lowercase name at statement level is a method call.
        if (
            isinstance(node, Identifier)
            and node.name != "self"
            and (node.name[:1].islower() or node.name[:1] == "_")
        ):
            return Call(location=node.location, source=node.source, name=node.name)
        return node

    def _through_heredocs(self, node: Node) -> Node:
        """Stretches a statement over the bodies of heredocs it opens."""
        loc = node.location
        ends = [
            h.end
            for start, h in self._heredocs.items()
            if loc.start_offset <= start < loc.end_offset
        ]
        if not ends or max(ends) <= loc.end_offset:
            return node
        end = max(ends)
        location = replace(
            loc,
            end_line=self._text.count("\n", 0, end) + 1,
            end_column=end - self._text.rfind("\n", 0, end),
            end_offset=end,
        )
        return replace(node, location=location, source=self._text[loc.start_offset : end])

    # --- Structure ---

    def start(self, meta, children):
        return children[0] if children else []

    def body(self, meta, children):
        return [self._through_heredocs(self._as_statement(c)) for c in children]

    # --- Literals ---

    def string(self, meta, children):
        value, interpolated = unquote(str(children[0]))
        return self._make(StringLiteral, meta, value=value, interpolated=interpolated)

    def heredoc(self, meta, children):
        found = self._heredocs[meta.start_pos]
        return self._make(
            StringLiteral, meta, value=found.value, interpolated=found.interpolated
        )

    def symbol(self, meta, children):
        raw = str(children[0])[1:]
        value = unquote(raw)[0] if raw[:1] in ("'", '"') else raw
        return self._make(SymbolLiteral, meta, value=value)

    def number(self, meta, children):
        return self._make(NumberLiteral, meta, value=str(children[0]))

    def true_lit(self, meta, children):
        return self._make(BooleanLiteral, meta, value=True)

    def false_lit(self, meta, children):
        return self._make(BooleanLiteral, meta, value=False)

    def nil_lit(self, meta, children):
        return self._make(NilLiteral, meta)

    def word_array(self, meta, children):
        raw = str(children[0])
        words = raw[3:-1].split()
        element_type = SymbolLiteral if raw[1] in "iI" else StringLiteral
        location = _location(meta)
        elements = tuple(element_type(location=location, source=w, value=w) for w in words)
        return self._make(ArrayLiteral, meta, elements=elements)

    def array(self, meta, children):
        elements = self._keyword_args(children[0]) if children else ()
        return self._make(ArrayLiteral, meta, elements=elements)

    def hash(self, meta, children):
        pairs = tuple(children[0]) if children else ()
        return self._make(HashLiteral, meta, pairs=pairs, braced=True)

    def hash_items(self, meta, children):
        return list(children)

    def pair(self, meta, children):
        key, value = children
        if isinstance(key, Token):
            key = SymbolLiteral(location=_location(key), source=str(key), value=str(key)[:-1])
        return self._make(Pair, meta, key=key, value=value)

    # --- References ---

    def identifier(self, meta, children):
        return self._make(Identifier, meta, name=str(children[0]))

    def const_path(self, meta, children):
        return self._make(ConstantPath, meta, parts=tuple(str(t) for t in children))

    def absolute_const_path(self, meta, children):
        return self._make(
            ConstantPath, meta, parts=tuple(str(t) for t in children), absolute=True
        )

    def scoped_constant(self, meta, children):
        scope, name = children
        if isinstance(scope, ConstantPath):
            return self._make(
                ConstantPath, meta, parts=scope.parts + (str(name),), absolute=scope.absolute
            )
        return self._make(Call, meta, name=str(name), receiver=scope)

    # --- Calls ---

    def command_args(self, meta, children):
        return list(children)

    def call_args(self, meta, children):
        return list(children)

    def call_parens(self, meta, children):
        return children[0] if children else []

    def command(self, meta, children):
        name, *rest = children
        return self._call(meta, str(name), None, rest)

    def receiver_command(self, meta, children):
        receiver, name, *rest = children
        return self._call(meta, str(name), receiver, rest)

    def call(self, meta, children):
        name, *rest = children
        return self._call(meta, str(name), None, rest)

    def method_call(self, meta, children):
        receiver, name, *rest = children
        return self._call(meta, str(name), receiver, rest)

    def index(self, meta, children):
        receiver, *rest = children
        return self._call(meta, "[]", receiver, rest)

    def do_block(self, meta, children):
        return self._block(meta, children, braces=False)

    def brace_block(self, meta, children):
        return self._block(meta, children, braces=True)

    def _block(self, meta, children, braces: bool) -> Block:
        params: Tuple[str, ...] = ()
        body: List[Node] = []
        for item in children:
            if isinstance(item, tuple):
                params = item
            elif isinstance(item, list):
                body = item
        return self._make(Block, meta, params=params, body=tuple(body), braces=braces)

    def block_params(self, meta, children):
        return tuple(str(t) for t in children)

    def stabby_lambda(self, meta, children):
        *params, block = children
        if params:
            block = replace(block, params=params[0])
        return self._make(Call, meta, name="lambda", block=block)

    # --- Assignment ---

    def _operator(self, children) -> str:
        for item in children:
            if isinstance(item, Token) and item.type == "OP_ASSIGN":
                return str(item)
        return "="

    def local_assign(self, meta, children):
        return self._make(
            Assignment,
            meta,
            target=str(children[0]),
            operator=self._operator(children),
            value=children[-1],
        )

    def constant_assign(self, meta, children):
        return self.local_assign(meta, children)

    def attribute_assign(self, meta, children):
        receiver, field_name = children[0], str(children[1])
        return self._make(
            Call,
            meta,
            name=f"{field_name}=",
            receiver=receiver,
            arguments=(children[-1],),
        )

    def index_assign(self, meta, children):
        receiver, keys = children[0], children[1]
        return self._make(
            Call,
            meta,
            name="[]=",
            receiver=receiver,
            arguments=tuple(keys) + (children[-1],),
        )

    # --- Operators ---

    def binary(self, meta, children):
        operands = tuple(c for c in children if not isinstance(c, Token))
        return self._make(Operation, meta, operator="binary", operands=operands)

    def not_op(self, meta, children):
        return self._make(Operation, meta, operator="not", operands=tuple(children))

    def paren(self, meta, children):
        return self._make(Operation, meta, operator="paren", operands=tuple(children))

    def ternary(self, meta, children):
        condition, consequent, alternative = children
        otherwise = Branch(
            location=alternative.location,
            source=alternative.source,
            keyword="else",
            body=(alternative,),
        )
        return self._make(
            ControlFlow,
            meta,
            keyword="if",
            condition=condition,
            body=(consequent,),
            branches=(otherwise,),
        )

    # --- Control flow ---

    def _modifier(self, meta, children, keyword: str):
        statement, condition = children
        return self._make(
            ControlFlow,
            meta,
            keyword=keyword,
            condition=condition,
            body=(self._as_statement(statement),),
            modifier=True,
        )

    def if_modifier(self, meta, children):
        return self._modifier(meta, children, "if")

    def unless_modifier(self, meta, children):
        return self._modifier(meta, children, "unless")

    def rescue_modifier(self, meta, children):
        return self._modifier(meta, children, "rescue")

    def _conditional(self, meta, children, keyword: str):
        condition, body, *branches = children
        return self._make(
            ControlFlow,
            meta,
            keyword=keyword,
            condition=condition,
            body=tuple(body),
            branches=tuple(branches),
        )

    def if_block(self, meta, children):
        return self._conditional(meta, children, "if")

    def unless_block(self, meta, children):
        return self._conditional(meta, children, "unless")

    def while_block(self, meta, children):
        return self._conditional(meta, children, "while")

    def until_block(self, meta, children):
        return self._conditional(meta, children, "until")

    def elsif_clause(self, meta, children):
        condition, body = children
        return self._make(Branch, meta, keyword="elsif", condition=condition, body=tuple(body))

    def else_clause(self, meta, children):
        return self._make(Branch, meta, keyword="else", body=tuple(children[0]))

    def ensure_clause(self, meta, children):
        return self._make(Branch, meta, keyword="ensure", body=tuple(children[0]))

    def case_block(self, meta, children):
        condition = None
        if children and not isinstance(children[0], Branch):
            condition = children[0]
        branches = tuple(c for c in children if isinstance(c, Branch))
        return self._make(
            ControlFlow, meta, keyword="case", condition=condition, branches=branches
        )

    def when_clause(self, meta, children):
        values, body = children
        if len(values) == 1:
            condition = values[0]
        else:
            location = _span(values)
            condition = ArrayLiteral(
                location=location,
                source=self._text[location.start_offset : location.end_offset],
                elements=tuple(values),
            )
        return self._make(Branch, meta, keyword="when", condition=condition, body=tuple(body))

    def begin_block(self, meta, children):
        body, *branches = children
        return self._make(
            ControlFlow, meta, keyword="begin", body=tuple(body), branches=tuple(branches)
        )

    def rescue_clause(self, meta, children):
        types = [c for c in children[:-1] if isinstance(c, list)]
        condition = None
        if types and types[0]:
            condition = types[0][0] if len(types[0]) == 1 else None
        return self._make(
            Branch, meta, keyword="rescue", condition=condition, body=tuple(children[-1])
        )

    def rescue_types(self, meta, children):
        return list(children)

    def rescue_name(self, meta, children):
        return str(children[0])

    # --- Definitions ---

    def def_name(self, meta, children):
        if isinstance(children[0], Token) and children[0].type == "SELF":
            return _DefName(str(children[1]), True)
        return _DefName(str(children[0]), False)

    def def_params(self, meta, children):
        return tuple(children)

    def param(self, meta, children):
        return str(children[0]).rstrip(":")

    def method_def(self, meta, children):
        name, *rest = children
        parameters: Tuple[str, ...] = ()
        body: List[Node] = []
        for item in rest:
            if isinstance(item, tuple):
                parameters = item
            elif isinstance(item, list):
                body = item
        return self._make(
            MethodDef,
            meta,
            name=name.name,
            parameters=parameters,
            body=tuple(body),
            singleton=name.singleton,
        )

    def superclass(self, meta, children):
        return children[-1]

    def class_def(self, meta, children):
        path, *rest = children
        superclass = rest[0] if len(rest) == 2 else None
        return self._make(
            Namespace,
            meta,
            keyword="class",
            name=path.name,
            body=tuple(rest[-1]),
            superclass=superclass,
        )

    def singleton_class_def(self, meta, children):
        _, target, body = children
        return self._make(
            Namespace, meta, keyword="class", name=f"<< {target.source}", body=tuple(body)
        )

    def module_def(self, meta, children):
        path, body = children
        return self._make(Namespace, meta, keyword="module", name=path.name, body=tuple(body))

    def __default__(self, data, children, meta):
        log.debug(f"No node builder for rule '{data}'")
        if meta.empty:
            location = Location(0, 0, 0, 0, 0, 0)
            return Unrecognized(location=location, source="", construct=str(data))
        return self._make(Unrecognized, meta, construct=str(data))


class RubyParser:
    """
    Parses manifest-style Ruby (Gemfile, gemspec, Rakefile, Appraisals)
    into graft nodes with exact source slices and a comment list.
    """

    def parse(self, text: str) -> ParseResult:
        lark = _get_lark()
        masked, heredocs = scan_heredocs(text)
        try:
            tree = lark.parse(masked)
        except UnexpectedInput as e:
            raise ParseError(
                f"Unsupported syntax: {type(e).__name__}",
                line=getattr(e, "line", None),
                column=getattr(e, "column", None),
            ) from e

        statements = _NodeBuilder(text, heredocs).transform(tree)
        comments = [
            Comment(text=str(tok), location=_location(tok))
            for tok in lark.lex(masked, dont_ignore=True)
            if tok.type == "COMMENT"
        ]
        return ParseResult(source=text, statements=list(statements), comments=comments)


def parse(text: str) -> ParseResult:
    return RubyParser().parse(text)
