import re

from graft.spec import (
    CodeBlock,
    Heading,
    HtmlBlock,
    Image,
    Link,
    LinkDefinition,
    Node,
    Paragraph,
    Signature,
    Table,
)

_HEADING_NOISE = re.compile(r"[^a-z0-9 \[\]]")


def normalize_heading(text: str) -> str:
    return _HEADING_NOISE.sub("", text.lower()).strip()


def markdown_signature(node: Node) -> Signature:
    if isinstance(node, Heading):
        return ("header", node.level, normalize_heading(node.text))
    if isinstance(node, Table):
        return ("table", "|".join(node.header))
    if isinstance(node, CodeBlock):
        return ("code_block", node.info.strip())
    if isinstance(node, HtmlBlock):
        content = node.content.strip()
        if "freeze" in content or "unfreeze" in content:
            return ("html_comment", "freeze_marker")
        return ("html_block", content[:50])
    if isinstance(node, Link):
        return ("link", node.url)
    if isinstance(node, Image):
        return ("image", node.url)
    if isinstance(node, LinkDefinition):
        return ("link_definition", node.label)
    # A paragraph that is nothing but one link or image is identified by it.
    if isinstance(node, Paragraph) and len(node.inlines) == 1:
        if node.inlines[0].source.strip() == node.source.strip():
            return markdown_signature(node.inlines[0])
    return None
