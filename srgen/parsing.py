"""Tree-sitter powered parser front-end."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import tree_sitter_python
from tree_sitter import Language, Node, Parser, Tree

from .errors import InputError, SourceSyntaxError
from .logging import get_logger

PY_LANGUAGE = Language(tree_sitter_python.language())

logger = get_logger("parsing")


@dataclass
class ParsedSource:
    """A parsed module together with the bytes its nodes point into."""

    path: Path
    source: bytes
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8")


class SourceParser:
    """Parses Python modules into concrete syntax trees that keep comments."""

    def __init__(self) -> None:
        self._parser = Parser(PY_LANGUAGE)

    def parse_file(self, path: Path) -> ParsedSource:
        try:
            source = path.read_bytes()
        except OSError as exc:
            raise InputError(f"cannot read file: {exc.strerror or exc}", path=path) from exc
        logger.debug("Parsing %s (%d bytes)", path, len(source))
        return self.parse_bytes(source, path)

    def parse_bytes(self, source: bytes, path: Path) -> ParsedSource:
        try:
            source.decode("utf-8")
        except UnicodeDecodeError as exc:
            line, column = _position(source, exc.start)
            raise SourceSyntaxError(path, line, column, reason="invalid UTF-8") from exc
        tree = self._parser.parse(source)
        broken = _first_error(tree.root_node)
        if broken is not None:
            row, column = broken.start_point
            raise SourceSyntaxError(path, row + 1, column + 1)
        return ParsedSource(path=path, source=source, tree=tree)

    def parse_expression(self, text: str, path: Path) -> Optional[tuple[ParsedSource, Node]]:
        """Parse a standalone expression, such as a string annotation's content."""
        source = text.strip().encode("utf-8")
        if not source:
            return None
        tree = self._parser.parse(source)
        if tree.root_node.has_error:
            return None
        statements = tree.root_node.named_children
        if len(statements) != 1 or statements[0].type != "expression_statement":
            return None
        expressions = statements[0].named_children
        if len(expressions) != 1:
            return None
        return ParsedSource(path=path, source=source, tree=tree), expressions[0]


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield ``node`` and all of its descendants, depth first."""
    yield node
    for child in node.children:
        yield from iter_nodes(child)


def _position(source: bytes, offset: int) -> tuple[int, int]:
    """1-based line and column of byte ``offset``."""
    line_start = source.rfind(b"\n", 0, offset) + 1
    return source.count(b"\n", 0, offset) + 1, offset - line_start + 1


def _first_error(root: Node) -> Optional[Node]:
    if not root.has_error:
        return None
    for node in iter_nodes(root):
        if node.type == "ERROR" or node.is_missing:
            return node
    return root


__all__ = ["PY_LANGUAGE", "ParsedSource", "SourceParser", "iter_nodes"]
