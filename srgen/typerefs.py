"""Annotation shapes understood by srgen and the resolver that builds them.

Every annotation resolves to exactly one variant of :data:`TypeRef`:

* :class:`Name` - a bare name such as ``int`` or ``User``;
* :class:`Qualified` - ``qualifier.Name`` such as ``datetime.timedelta``;
* :class:`Nullable` - ``Optional[T]``, ``Union[T, None]`` or ``T | None``;
* :class:`ListOf` - ``list[T]`` or ``List[T]``;
* :class:`Unsupported` - anything else (mappings, callables, tuples, other
  generics, deeper attribute chains).

A variant containing an unsupported part is itself unsupported, so the
decision to drop or reject an annotation is taken once, on the outermost
value.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from tree_sitter import Node

from .parsing import ParsedSource, SourceParser

_LIST_HEADS = {"list", "List", "typing.List"}
_OPTIONAL_HEADS = {"Optional", "typing.Optional"}
_UNION_HEADS = {"Union", "typing.Union"}


@dataclass(frozen=True)
class Name:
    ident: str


@dataclass(frozen=True)
class Qualified:
    qualifier: str
    name: str


@dataclass(frozen=True)
class Nullable:
    inner: "TypeRef"


@dataclass(frozen=True)
class ListOf:
    inner: "TypeRef"


@dataclass(frozen=True)
class Unsupported:
    source: str


TypeRef = Union[Name, Qualified, Nullable, ListOf, Unsupported]


def render(ref: TypeRef) -> Optional[str]:
    """Return the annotation text for ``ref``, or None when unsupported."""
    if isinstance(ref, Name):
        return ref.ident
    if isinstance(ref, Qualified):
        return f"{ref.qualifier}.{ref.name}"
    if isinstance(ref, Nullable):
        inner = render(ref.inner)
        return f"{inner} | None" if inner is not None else None
    if isinstance(ref, ListOf):
        inner = render(ref.inner)
        return f"list[{inner}]" if inner is not None else None
    return None


def references(ref: TypeRef) -> Iterator[Tuple[str, bool]]:
    """Yield ``(name, qualified)`` for every name ``ref`` needs in scope."""
    if isinstance(ref, Name):
        if ref.ident != "None":
            yield ref.ident, False
    elif isinstance(ref, Qualified):
        yield ref.qualifier, True
    elif isinstance(ref, (Nullable, ListOf)):
        yield from references(ref.inner)


class TypeResolver:
    """Turns annotation nodes into :data:`TypeRef` values."""

    def __init__(self, parser: SourceParser | None = None) -> None:
        self._parser = parser or SourceParser()

    def resolve(self, node: Node, parsed: ParsedSource) -> TypeRef:
        kind = node.type
        if kind in {"type", "parenthesized_expression"}:
            children = _significant(node.named_children)
            if len(children) == 1:
                return self._wrap(self.resolve(children[0], parsed), node, parsed)
            return Unsupported(parsed.text(node))
        if kind == "identifier":
            return Name(parsed.text(node))
        if kind == "none":
            return Name("None")
        if kind == "attribute":
            obj = node.child_by_field_name("object")
            attr = node.child_by_field_name("attribute")
            if obj is not None and attr is not None and obj.type == "identifier":
                return Qualified(parsed.text(obj), parsed.text(attr))
            return Unsupported(parsed.text(node))
        if kind == "member_type":
            children = _significant(node.named_children)
            if len(children) == 2:
                inner = self.resolve(children[0], parsed)
                if isinstance(inner, Name) and inner.ident != "None":
                    return Qualified(inner.ident, parsed.text(children[1]))
            return Unsupported(parsed.text(node))
        if kind == "subscript":
            head = node.child_by_field_name("value")
            args = _significant(node.children_by_field_name("subscript"))
            return self._generic(node, head, args, parsed)
        if kind == "generic_type":
            children = _significant(node.named_children)
            if len(children) == 2 and children[1].type == "type_parameter":
                args = _significant(children[1].named_children)
                return self._generic(node, children[0], args, parsed)
            return Unsupported(parsed.text(node))
        if kind == "binary_operator":
            operator = node.child_by_field_name("operator")
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if operator is None or parsed.text(operator) != "|" or left is None or right is None:
                return Unsupported(parsed.text(node))
            return self._union(node, [left, right], parsed)
        if kind == "union_type":
            return self._union(node, _significant(node.named_children), parsed)
        if kind == "string":
            return self._forward_reference(node, parsed)
        return Unsupported(parsed.text(node))

    def _generic(
        self, node: Node, head: Optional[Node], args: Sequence[Node], parsed: ParsedSource
    ) -> TypeRef:
        if head is None:
            return Unsupported(parsed.text(node))
        head_name = "".join(parsed.text(head).split())
        if head_name in _LIST_HEADS and len(args) == 1:
            return self._wrap(ListOf(self.resolve(args[0], parsed)), node, parsed)
        if head_name in _OPTIONAL_HEADS and len(args) == 1:
            return self._wrap(Nullable(self.resolve(args[0], parsed)), node, parsed)
        if head_name in _UNION_HEADS:
            return self._union(node, args, parsed)
        return Unsupported(parsed.text(node))

    def _union(self, node: Node, members: Sequence[Node], parsed: ParsedSource) -> TypeRef:
        resolved = [self.resolve(member, parsed) for member in members]
        others = [ref for ref in resolved if ref != Name("None")]
        if len(resolved) == 2 and len(others) == 1:
            return self._wrap(Nullable(others[0]), node, parsed)
        return Unsupported(parsed.text(node))

    def _forward_reference(self, node: Node, parsed: ParsedSource) -> TypeRef:
        text = parsed.text(node)
        try:
            value = ast.literal_eval(text)
        except (ValueError, SyntaxError):
            return Unsupported(text)
        if not isinstance(value, str):
            return Unsupported(text)
        fragment = self._parser.parse_expression(value, parsed.path)
        if fragment is None:
            return Unsupported(text)
        sub_parsed, expression = fragment
        return self._wrap(self.resolve(expression, sub_parsed), node, parsed)

    @staticmethod
    def _wrap(ref: TypeRef, node: Node, parsed: ParsedSource) -> TypeRef:
        if render(ref) is None:
            return Unsupported(parsed.text(node))
        return ref


def _significant(nodes: Sequence[Node]) -> List[Node]:
    return [node for node in nodes if node.type != "comment"]


__all__ = [
    "ListOf",
    "Name",
    "Nullable",
    "Qualified",
    "TypeRef",
    "TypeResolver",
    "Unsupported",
    "references",
    "render",
]
