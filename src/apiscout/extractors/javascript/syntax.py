"""
Shared tree-sitter plumbing for JavaScript/TypeScript sources.

TypeScript files use the TypeScript grammar. Everything else in the JS family
uses the TSX grammar, which accepts JSX and type annotations alike.
"""

from __future__ import annotations

import codecs
from collections.abc import Iterator
from pathlib import Path
from typing import Optional

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from apiscout.errors import SourceParseError

TYPESCRIPT = Language(tree_sitter_typescript.language_typescript())
TSX = Language(tree_sitter_typescript.language_tsx())

_GRAMMARS: dict[str, Language] = {
    ".ts": TYPESCRIPT,
    ".mts": TYPESCRIPT,
    ".cts": TYPESCRIPT,
    ".js": TSX,
    ".jsx": TSX,
    ".tsx": TSX,
    ".mjs": TSX,
    ".cjs": TSX,
}

_SIMPLE_ESCAPES = {
    "\\n": "\n",
    "\\t": "\t",
    "\\r": "\r",
    "\\b": "\b",
    "\\f": "\f",
    "\\v": "\v",
    "\\0": "\0",
    "\\\\": "\\",
    "\\'": "'",
    '\\"': '"',
    "\\/": "/",
}


def supports(path: str) -> bool:
    return Path(path).suffix.lower() in _GRAMMARS


def parse_source(source: bytes, suffix: str = ".js") -> Node:
    """
    Parse `source` and return the root node.

    Raises SourceParseError if the tree contains any ERROR or MISSING node.
    """
    language = _GRAMMARS.get(suffix.lower(), TSX)
    parser = Parser(language)
    tree = parser.parse(source)
    root = tree.root_node
    if root.has_error:
        line = _first_error_line(root)
        where = f" near line {line}" if line else ""
        raise SourceParseError(f"syntax error{where}", line=line)
    return root


def iter_nodes(root: Node) -> Iterator[Node]:
    """Pre-order traversal (source order)."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def text_of(node: Node) -> str:
    data = node.text
    return data.decode("utf-8", errors="replace") if data is not None else ""


def arguments_of(call: Node) -> Optional[list[Node]]:
    """Positional argument nodes of a call, or None for tagged templates."""
    args = call.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return None
    return [c for c in args.named_children if c.type != "comment"]


def string_value(node: Optional[Node]) -> Optional[str]:
    """Value of a quoted string literal. Template strings are not literals here."""
    if node is None or node.type != "string":
        return None
    parts: list[str] = []
    for child in node.named_children:
        if child.type == "escape_sequence":
            parts.append(_unescape(text_of(child)))
        else:
            parts.append(text_of(child))
    return "".join(parts)


def member_parts(node: Optional[Node]) -> Optional[tuple[Node, Node]]:
    """(object, property) of a member expression, or None."""
    if node is None or node.type != "member_expression":
        return None
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    if obj is None or prop is None:
        return None
    return obj, prop


def _unescape(seq: str) -> str:
    if seq in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[seq]
    if seq.startswith("\\\n") or seq.startswith("\\\r"):
        return ""
    try:
        return codecs.decode(seq, "unicode_escape")
    except UnicodeDecodeError:
        return seq[1:]


def _first_error_line(root: Node) -> Optional[int]:
    for node in iter_nodes(root):
        if node.is_error or node.is_missing:
            return node.start_point[0] + 1
    return None
