# This must be the very first line to allow this package to coexist with other
# namespace packages in editable installs.
__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .nodes import (
    Location,
    Comment,
    Node,
    StringLiteral,
    SymbolLiteral,
    NumberLiteral,
    BooleanLiteral,
    NilLiteral,
    ArrayLiteral,
    Pair,
    HashLiteral,
    ConstantPath,
    Identifier,
    Block,
    Call,
    Assignment,
    Operation,
    Branch,
    ControlFlow,
    MethodDef,
    Namespace,
    Unrecognized,
    Heading,
    Link,
    Image,
    Paragraph,
    LinkDefinition,
    Table,
    CodeBlock,
    HtmlBlock,
    ListItem,
    ListBlock,
    BlockQuote,
    ThematicBreak,
    walk,
)
from .models import (
    Signature,
    SignatureFn,
    UNCLASSIFIED,
    TypedSection,
    ParseResult,
    Preference,
    Provenance,
    MergeOptions,
    MergedEntry,
    MergedDocument,
)
from .protocols import (
    ParserProtocol,
    ClassifierProtocol,
    SectionClassifierProtocol,
    StructuralMergerProtocol,
    StatementFilterProtocol,
    DiagnosticsProtocol,
)
from .recipe import Recipe

__all__ = [
    # Nodes
    "Location",
    "Comment",
    "Node",
    "StringLiteral",
    "SymbolLiteral",
    "NumberLiteral",
    "BooleanLiteral",
    "NilLiteral",
    "ArrayLiteral",
    "Pair",
    "HashLiteral",
    "ConstantPath",
    "Identifier",
    "Block",
    "Call",
    "Assignment",
    "Operation",
    "Branch",
    "ControlFlow",
    "MethodDef",
    "Namespace",
    "Unrecognized",
    "Heading",
    "Link",
    "Image",
    "Paragraph",
    "LinkDefinition",
    "Table",
    "CodeBlock",
    "HtmlBlock",
    "ListItem",
    "ListBlock",
    "BlockQuote",
    "ThematicBreak",
    "walk",
    # Merge Models
    "Signature",
    "SignatureFn",
    "UNCLASSIFIED",
    "TypedSection",
    "ParseResult",
    "Preference",
    "Provenance",
    "MergeOptions",
    "MergedEntry",
    "MergedDocument",
    "Recipe",
    # Protocols
    "ParserProtocol",
    "ClassifierProtocol",
    "SectionClassifierProtocol",
    "StructuralMergerProtocol",
    "StatementFilterProtocol",
    "DiagnosticsProtocol",
]
