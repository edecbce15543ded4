"""Marker scanner: finds tagged Protocol declarations in a parsed module."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from tree_sitter import Node

from .config import DEFAULT_MARKER
from .imports import declared_imports
from .logging import get_logger
from .parsing import ParsedSource

logger = get_logger("scanner")

_TYPING_MODULES = {"typing", "typing_extensions"}

_PROTOCOL_BASES = {
    "Protocol",
    "typing.Protocol",
    "typing_extensions.Protocol",
}


@dataclass(frozen=True)
class Declaration:
    """A module-level class carrying the marker comment."""

    name: str
    node: Node
    line: int


class MarkerScanner:
    """Reports the marked, interface-shaped classes of a module."""

    def __init__(self, marker: str = DEFAULT_MARKER) -> None:
        self.marker = marker

    def scan(self, parsed: ParsedSource) -> List[Declaration]:
        return list(self._iter_declarations(parsed))

    def _iter_declarations(self, parsed: ParsedSource) -> Iterator[Declaration]:
        bases = protocol_bases(parsed)
        for child in parsed.root.named_children:
            class_node, anchor = _unwrap_class(child)
            if class_node is None:
                continue
            name_node = class_node.child_by_field_name("name")
            if name_node is None:
                continue
            name = parsed.text(name_node)
            comments = _leading_comments(anchor, parsed)
            if not self._has_marker(comments):
                continue
            if not is_protocol(class_node, parsed, bases):
                logger.debug(
                    "%s: %s carries the marker but is not a Protocol; skipping",
                    parsed.path,
                    name,
                )
                continue
            yield Declaration(name=name, node=class_node, line=class_node.start_point[0] + 1)

    def _has_marker(self, comments: Iterable[str]) -> bool:
        for comment in comments:
            if comment.lstrip("#").strip().startswith(self.marker):
                return True
        return False


def is_protocol(
    class_node: Node, parsed: ParsedSource, bases: Optional[Set[str]] = None
) -> bool:
    """Return True when one of the class bases is ``Protocol``."""
    if bases is None:
        bases = protocol_bases(parsed)
    superclasses = class_node.child_by_field_name("superclasses")
    if superclasses is None:
        return False
    for base in superclasses.named_children:
        if base.type == "subscript":
            value = base.child_by_field_name("value")
            if value is None:
                continue
            base = value
        if base.type in {"identifier", "attribute"} and parsed.text(base) in bases:
            return True
    return False


def protocol_bases(parsed: ParsedSource) -> Set[str]:
    """Spellings of ``Protocol`` usable as a base, including import aliases.

    ``import typing as t`` adds ``t.Protocol``; ``from typing import
    Protocol as P`` adds ``P``.
    """
    bases = set(_PROTOCOL_BASES)
    for ref in declared_imports(parsed):
        if ref.name is None and ref.module in _TYPING_MODULES:
            bases.add(f"{ref.alias or ref.module}.Protocol")
        elif ref.module in _TYPING_MODULES and ref.name == "Protocol":
            bases.add(ref.effective_name)
    return bases


def module_level_names(parsed: ParsedSource) -> Set[str]:
    """Names bound at module level: classes, functions and simple assignments."""
    names: Set[str] = set()
    for child in parsed.root.named_children:
        definition, _ = _unwrap_definition(child)
        if definition is not None:
            name_node = definition.child_by_field_name("name")
            if name_node is not None:
                names.add(parsed.text(name_node))
            continue
        if child.type == "expression_statement":
            for statement in child.named_children:
                if statement.type != "assignment":
                    continue
                left = statement.child_by_field_name("left")
                if left is not None and left.type == "identifier":
                    names.add(parsed.text(left))
        elif child.type == "type_alias_statement":
            left = child.child_by_field_name("left")
            if left is not None:
                names.add(parsed.text(left).split("[", 1)[0].strip())
    return names


def _unwrap_class(node: Node) -> Tuple[Optional[Node], Node]:
    definition, anchor = _unwrap_definition(node)
    if definition is not None and definition.type == "class_definition":
        return definition, anchor
    return None, anchor


def _unwrap_definition(node: Node) -> Tuple[Optional[Node], Node]:
    if node.type in {"class_definition", "function_definition"}:
        return node, node
    if node.type == "decorated_definition":
        inner = node.child_by_field_name("definition")
        return inner, node
    return None, node


def _leading_comments(anchor: Node, parsed: ParsedSource) -> List[str]:
    """Comment lines forming a contiguous block directly above ``anchor``.

    Read from the source lines: tree-sitter may attach a comment that sits
    between two top-level blocks to the end of the first one.
    """
    source_lines = parsed.source.split(b"\n")
    lines: List[str] = []
    row = anchor.start_point[0] - 1
    while row >= 0:
        line = source_lines[row].decode("utf-8").strip()
        if not line.startswith("#"):
            break
        lines.append(line)
        row -= 1
    lines.reverse()
    return lines


__all__ = [
    "Declaration",
    "MarkerScanner",
    "is_protocol",
    "module_level_names",
    "protocol_bases",
]
