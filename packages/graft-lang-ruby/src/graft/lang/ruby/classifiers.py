from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from graft.spec import (
    UNCLASSIFIED,
    Call,
    ClassifierProtocol,
    MethodDef,
    Node,
    TypedSection,
    walk,
)

from .literals import keyword_options, leading_literals, literal_value

DEFAULT_CATEGORY = "runtime"


def categorize(name: str, categories: Sequence[Tuple[str, Tuple[str, ...]]]) -> str:
    for category, prefixes in categories:
        if any(name.startswith(prefix) for prefix in prefixes):
            return category
    return DEFAULT_CATEGORY


def _nested_literals(node: Call, method_names: FrozenSet[str]) -> List[str]:
    # Bounded to the subtree of `node`'s own block.
    if node.block is None:
        return []
    found: List[str] = []
    for child in walk(node.block):
        if isinstance(child, Call) and child.name in method_names and child.receiver is None:
            value = literal_value(child.arguments[0]) if child.arguments else None
            if value is not None:
                found.append(value)
    return found


class DependencyClassifier:
    def __init__(
        self,
        method_names: Iterable[str] = ("gem",),
        categories: Sequence[Tuple[str, Tuple[str, ...]]] = (),
    ):
        self.method_names = frozenset(method_names)
        self.categories = tuple(categories)

    def classify(self, node: Node) -> Optional[TypedSection]:
        if not isinstance(node, Call) or node.name not in self.method_names:
            return None
        if not node.arguments:
            return None
        name = literal_value(node.arguments[0])
        if name is None:
            return None

        metadata: Dict[str, object] = {"category": categorize(name, self.categories)}
        if len(node.arguments) > 1:
            version = literal_value(node.arguments[1])
            if version is not None:
                metadata["version"] = version
        metadata.update(keyword_options(node.arguments))
        return TypedSection(type="dependency", name=name, node=node, metadata=metadata)


class SourceClassifier:
    def classify(self, node: Node) -> Optional[TypedSection]:
        if not isinstance(node, Call) or node.name != "source" or not node.arguments:
            return None
        url = literal_value(node.arguments[0])
        if url is None:
            return None
        return TypedSection(type="source", name=url, node=node, metadata={"url": url})


class GroupClassifier:
    """`group :a, :b do ... end` and `platforms ... do ... end` blocks."""

    def __init__(
        self,
        method_names: Iterable[str] = ("group", "platforms"),
        dependency_methods: Iterable[str] = ("gem",),
    ):
        self.method_names = frozenset(method_names)
        self.dependency_methods = frozenset(dependency_methods)

    def classify(self, node: Node) -> Optional[TypedSection]:
        if not isinstance(node, Call) or node.name not in self.method_names:
            return None
        if node.block is None:
            return None
        labels = leading_literals(node.arguments)
        if not labels:
            return None
        return TypedSection(
            type="group",
            name=",".join(labels),
            node=node,
            metadata={
                "method": node.name,
                "labels": labels,
                "dependencies": _nested_literals(node, self.dependency_methods),
            },
        )


class NamedBlockClassifier:
    def __init__(
        self,
        method_name: str = "appraise",
        section_type: str = "appraise",
        dependency_methods: Iterable[str] = ("gem",),
    ):
        self.method_name = method_name
        self.section_type = section_type
        self.dependency_methods = frozenset(dependency_methods)

    def classify(self, node: Node) -> Optional[TypedSection]:
        if not isinstance(node, Call) or node.name != self.method_name:
            return None
        if node.block is None or not node.arguments:
            return None
        name = literal_value(node.arguments[0])
        if name is None:
            return None
        return TypedSection(
            type=self.section_type,
            name=name,
            node=node,
            metadata={
                "dependencies": _nested_literals(node, self.dependency_methods),
                "eval_gemfiles": _nested_literals(node, frozenset({"eval_gemfile"})),
            },
        )


class MethodDefClassifier:
    def classify(self, node: Node) -> Optional[TypedSection]:
        if not isinstance(node, MethodDef):
            return None
        return TypedSection(
            type="method",
            name=node.name,
            node=node,
            metadata={"singleton": node.singleton, "parameters": list(node.parameters)},
        )


class SectionClassifier:
    """
    Runs a list of classifiers in order; the first that recognises a node
    wins. `classify_all` folds runs of unrecognised nodes into a single
    synthetic section so interstitial content moves as one unit.
    """

    def __init__(self, classifiers: Sequence[ClassifierProtocol]):
        self.classifiers = tuple(classifiers)

    def classify(self, node: Node) -> Optional[TypedSection]:
        for classifier in self.classifiers:
            section = classifier.classify(node)
            if section is not None:
                return section
        return None

    def classify_all(self, nodes: Sequence[Node]) -> List[TypedSection]:
        sections: List[TypedSection] = []
        run: List[Node] = []
        run_start = 0

        def flush(end_index: int):
            if run:
                sections.append(
                    TypedSection(
                        type=UNCLASSIFIED,
                        name=None,
                        node=run[0],
                        nodes=tuple(run),
                        metadata={"start_index": run_start, "end_index": end_index},
                    )
                )
                run.clear()

        for index, node in enumerate(nodes):
            section = self.classify(node)
            if section is None:
                if not run:
                    run_start = index
                run.append(node)
                continue
            flush(index - 1)
            sections.append(section)
        flush(len(nodes) - 1)
        return sections
