from typing import List, Optional, Tuple

from graft.spec import (
    ArrayLiteral,
    BooleanLiteral,
    Call,
    ConstantPath,
    HashLiteral,
    Identifier,
    Node,
    Operation,
    StringLiteral,
    SymbolLiteral,
)


def literal_value(node: Optional[Node]) -> Optional[str]:
    """
    The plain value of a string or symbol argument, ignoring quote style
    and redundant parentheses. Interpolated strings have no literal value.
    """
    if isinstance(node, Operation) and node.operator == "paren" and len(node.operands) == 1:
        return literal_value(node.operands[0])
    if isinstance(node, StringLiteral):
        return None if node.interpolated else node.value
    if isinstance(node, SymbolLiteral):
        return node.value
    return None


def leading_literals(arguments: Tuple[Node, ...]) -> List[str]:
    values: List[str] = []
    for arg in arguments:
        value = literal_value(arg)
        if value is None:
            break
        values.append(value)
    return values


def receiver_path(node: Optional[Node]) -> Optional[str]:
    """Flattens `A::B`, `a.b.c` and `self` receivers into a dotted string."""
    if isinstance(node, ConstantPath):
        return node.name
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, Call) and not node.arguments and node.block is None:
        if node.receiver is None:
            return node.name
        parent = receiver_path(node.receiver)
        return f"{parent}.{node.name}" if parent is not None else None
    return None


def declaration_name(node: Node) -> Optional[str]:
    # Receiver calls are qualified, e.g. "Gem::Specification.new".
    if not isinstance(node, Call):
        return None
    if node.receiver is None:
        return node.name
    parent = receiver_path(node.receiver)
    return f"{parent}.{node.name}" if parent is not None else None


def keyword_options(arguments: Tuple[Node, ...]) -> dict:
    options: dict = {}
    if not arguments or not isinstance(arguments[-1], HashLiteral):
        return options
    for pair in arguments[-1].pairs:
        key = literal_value(pair.key)
        if key is None:
            continue
        value = option_value(pair.value)
        if value is not None:
            options[key] = value
    return options


def option_value(node: Node):
    if isinstance(node, BooleanLiteral):
        return node.value
    if isinstance(node, ArrayLiteral):
        values = [literal_value(e) for e in node.elements]
        return None if None in values else values
    return literal_value(node)
