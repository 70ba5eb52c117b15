"""
Structural identity keys for manifest statements.

Each function maps a top-level node to a tuple, or to `None` when the
node has no identity beyond its text. Two statements are the same entry
when their tuples are equal, so every extracted value is quote-insensitive.
"""

from graft.spec import Call, HashLiteral, Node, Signature

from .literals import leading_literals, literal_value, receiver_path

SINGLETONS = frozenset({"source", "ruby", "gemspec"})
NAMED_ENTRIES = frozenset({"gem", "eval_gemfile", "git_source"})
LABELLED_BLOCKS = frozenset({"group", "platforms"})
DEPENDENCY_METHODS = frozenset(
    {"add_dependency", "add_runtime_dependency", "add_development_dependency"}
)


def _first_literal(node: Call):
    return literal_value(node.arguments[0]) if node.arguments else None


def _assignment_signature(node: Call) -> Signature:
    path = receiver_path(node.receiver)
    if path is None:
        return None
    if node.name == "[]=":
        key = _first_literal(node)
        return ("call", "[]", path, key) if key is not None else None
    return ("call", node.name[:-1], path)


def general_signature(node: Node) -> Signature:
    if not isinstance(node, Call):
        return None
    if node.is_assignment:
        return _assignment_signature(node)
    value = _first_literal(node)
    if value is None:
        return None
    return (node.name, value)


def gemfile_signature(node: Node) -> Signature:
    if not isinstance(node, Call) or node.receiver is not None:
        return general_signature(node)

    if node.name in SINGLETONS:
        return (node.name,)
    if node.name in NAMED_ENTRIES:
        value = _first_literal(node)
        return (node.name, value) if value is not None else None
    if node.name in LABELLED_BLOCKS:
        labels = leading_literals(node.arguments)
        return (node.name, *labels) if labels else None
    return general_signature(node)


def appraisals_signature(node: Node) -> Signature:
    if isinstance(node, Call) and node.name == "appraise" and node.receiver is None:
        value = _first_literal(node)
        return ("appraise", value) if value is not None else None
    return gemfile_signature(node)


def gemspec_signature(node: Node) -> Signature:
    if not isinstance(node, Call):
        return None
    if node.name in DEPENDENCY_METHODS:
        value = _first_literal(node)
        return (node.name, value) if value is not None else None
    if node.name == "new" and receiver_path(node.receiver) == "Gem::Specification":
        return ("gem_specification_new",)
    return general_signature(node)


def rakefile_signature(node: Node) -> Signature:
    if not isinstance(node, Call) or node.receiver is not None:
        return general_signature(node)

    if node.name == "task" and node.arguments:
        first = node.arguments[0]
        # task default: [:test, :lint]
        if isinstance(first, HashLiteral) and first.pairs:
            name = literal_value(first.pairs[0].key)
        else:
            name = literal_value(first)
        return ("task", name) if name is not None else None
    if node.name == "namespace":
        value = _first_literal(node)
        return ("namespace", value) if value is not None else None
    return general_signature(node)
