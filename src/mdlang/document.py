"""
Structural document tree (raw markdown → generic block/inline nodes).

markdown-it-py does the CommonMark parsing. This module only reshapes its
syntax tree into the small node vocabulary the program transform reads:

    root, heading, paragraph, list, listItem, blockquote, thematicBreak,
    text, emphasis, strong, link, inlineCode, break, code, html, image

Anything else keeps markdown-it's own type name and is ignored
downstream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import unquote

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode


@dataclass
class DocumentNode:
    """
    One node of the structural tree.

    Properties:
        type: Node kind (see module docstring)
        children: Child nodes, in document order
        value: Literal text for text/inlineCode/code/html nodes
        depth: Heading level (1-6) for headings
        ordered: True for ordered lists
        url: Link target, percent-decoded
    """

    type: str
    children: List["DocumentNode"] = field(default_factory=list)
    value: Optional[str] = None
    depth: Optional[int] = None
    ordered: Optional[bool] = None
    url: Optional[str] = None


_SIMPLE_TYPES = {
    "root": "root",
    "paragraph": "paragraph",
    "list_item": "listItem",
    "blockquote": "blockquote",
    "hr": "thematicBreak",
    "em": "emphasis",
    "strong": "strong",
    "hardbreak": "break",
    "image": "image",
}

_TEXT_TYPES = {
    "text": "text",
    "code_inline": "inlineCode",
    "fence": "code",
    "code_block": "code",
    "html_block": "html",
    "html_inline": "html",
}


def _convert_children(node: SyntaxTreeNode) -> List[DocumentNode]:
    converted = []
    for child in node.children:
        if child.type == "inline":
            # markdown-it wraps inline content in an extra node
            converted.extend(_convert_children(child))
        elif child.type == "text" and not child.content:
            # emphasis delimiters leave empty text tokens beside the span
            continue
        else:
            converted.append(_convert(child))
    return converted


def _convert(node: SyntaxTreeNode) -> DocumentNode:
    kind = node.type

    if kind in _TEXT_TYPES:
        return DocumentNode(type=_TEXT_TYPES[kind], value=node.content)

    if kind == "softbreak":
        return DocumentNode(type="text", value="\n")

    children = _convert_children(node)

    if kind == "heading":
        return DocumentNode(type="heading", children=children, depth=int(node.tag[1:]))

    if kind in ("bullet_list", "ordered_list"):
        return DocumentNode(type="list", children=children, ordered=kind == "ordered_list")

    if kind == "link":
        href = node.attrs.get("href", "")
        return DocumentNode(type="link", children=children, url=unquote(str(href)))

    return DocumentNode(type=_SIMPLE_TYPES.get(kind, kind), children=children)


def parse_markdown(text: str) -> DocumentNode:
    """
    Parse markdown source into a structural document tree.

    Args:
        text: Markdown source

    Returns:
        DocumentNode of type "root"
    """
    parser = MarkdownIt("commonmark")
    tokens = parser.parse(text)
    return _convert(SyntaxTreeNode(tokens))


def flatten_text(node: DocumentNode) -> str:
    """Concatenate every descendant's text and strip the result."""
    return _collect_text(node).strip()


def _collect_text(node: DocumentNode) -> str:
    text = node.value or ""
    for child in node.children:
        text += _collect_text(child)
    return text


def first_child_of_type(node: DocumentNode, kind: str) -> Optional[DocumentNode]:
    """First direct child of the given type, or None."""
    for child in node.children:
        if child.type == kind:
            return child
    return None
