"""Signature extraction for marked Protocol declarations."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterator, List, Optional, Set

from tree_sitter import Node

from .errors import UnsupportedTypeError
from .imports import ImportCollector
from .logging import get_logger
from .models import MethodSignature, ParamKind, Parameter, ServiceDescriptor
from .parsing import ParsedSource
from .scanner import Declaration
from .typerefs import TypeRef, TypeResolver, Unsupported, references, render

logger = get_logger("extractor")

_SKIPPED_DECORATORS = {"property", "staticmethod", "classmethod", "overload"}


class SignatureExtractor:
    """Builds a ServiceDescriptor for each marked declaration of one module.

    Plain names that the module defines itself are reported through
    ``local_names`` hits so the caller can import them from that module.
    """

    def __init__(
        self,
        collector: ImportCollector,
        *,
        resolver: TypeResolver | None = None,
        strict: bool = False,
    ) -> None:
        self.collector = collector
        self.resolver = resolver or TypeResolver()
        self.strict = strict

    def extract(
        self,
        declaration: Declaration,
        parsed: ParsedSource,
        local_names: Optional[Set[str]] = None,
    ) -> tuple[ServiceDescriptor, Set[str]]:
        """Return the descriptor and the module-local names it references."""
        local_names = local_names or set()
        used_locals: Set[str] = set()
        methods: List[MethodSignature] = []
        for function in self._iter_methods(declaration, parsed):
            method = self._extract_method(function, declaration, parsed, local_names, used_locals)
            if method is not None:
                methods.append(method)
        descriptor = ServiceDescriptor(
            name=declaration.name,
            methods=tuple(methods),
            path=parsed.path,
            line=declaration.line,
        )
        return descriptor, used_locals

    def _iter_methods(self, declaration: Declaration, parsed: ParsedSource) -> Iterator[Node]:
        body = declaration.node.child_by_field_name("body")
        if body is None:
            return
        for member in body.named_children:
            if member.type == "function_definition":
                yield member
            elif member.type == "decorated_definition":
                definition = member.child_by_field_name("definition")
                if definition is None or definition.type != "function_definition":
                    continue
                skipped = _skipping_decorator(member, parsed)
                if skipped:
                    logger.debug(
                        "%s: %s: skipping @%s member", parsed.path, declaration.name, skipped
                    )
                    continue
                yield definition
            elif member.type == "expression_statement" and _is_annotated_attribute(member):
                logger.debug(
                    "%s: %s: skipping attribute '%s'",
                    parsed.path,
                    declaration.name,
                    parsed.text(member).split(":", 1)[0].strip(),
                )

    def _extract_method(
        self,
        function: Node,
        declaration: Declaration,
        parsed: ParsedSource,
        local_names: Set[str],
        used_locals: Set[str],
    ) -> Optional[MethodSignature]:
        name_node = function.child_by_field_name("name")
        if name_node is None:
            return None
        name = parsed.text(name_node)
        where = f"{declaration.name}.{name}"
        is_async = any(child.type == "async" for child in function.children)

        params: List[Parameter] = []
        parameters = function.child_by_field_name("parameters")
        if parameters is not None:
            params = self._extract_params(parameters, parsed, where, local_names, used_locals)

        results: tuple[str, ...] = ()
        return_type = function.child_by_field_name("return_type")
        if return_type is not None:
            rendered = self._annotation(return_type, parsed, where, local_names, used_locals)
            if rendered is not None:
                results = (rendered,)

        return MethodSignature(name=name, params=tuple(params), results=results, is_async=is_async)

    def _extract_params(
        self,
        parameters: Node,
        parsed: ParsedSource,
        where: str,
        local_names: Set[str],
        used_locals: Set[str],
    ) -> List[Parameter]:
        params: List[Parameter] = []
        keyword_only = False
        receiver_pending = True
        for node in parameters.named_children:
            kind = ParamKind.KEYWORD_ONLY if keyword_only else ParamKind.POSITIONAL
            annotation_node: Optional[Node] = None
            has_default = False

            if node.type == "identifier":
                name = parsed.text(node)
            elif node.type == "typed_parameter":
                target = node.named_children[0]
                annotation_node = node.child_by_field_name("type")
                name, splat = _splat_target(target, parsed)
                if splat is not None:
                    kind = splat
            elif node.type in {"default_parameter", "typed_default_parameter"}:
                name_node = node.child_by_field_name("name")
                if name_node is None:
                    continue
                name = parsed.text(name_node)
                annotation_node = node.child_by_field_name("type")
                has_default = True
            elif node.type in {"list_splat_pattern", "dictionary_splat_pattern"}:
                name, splat = _splat_target(node, parsed)
                kind = splat or kind
            elif node.type == "keyword_separator":
                keyword_only = True
                continue
            elif node.type == "positional_separator":
                params = [
                    replace(param, kind=ParamKind.POSITIONAL_ONLY)
                    if param.kind is ParamKind.POSITIONAL
                    else param
                    for param in params
                ]
                continue
            else:
                continue

            if receiver_pending:
                receiver_pending = False
                if kind is ParamKind.POSITIONAL:
                    # self
                    continue
            if kind is ParamKind.VAR_POSITIONAL:
                keyword_only = True

            annotation = None
            if annotation_node is not None:
                annotation = self._annotation(
                    annotation_node, parsed, f"{where}({name})", local_names, used_locals
                )
            params.append(
                Parameter(name=name, annotation=annotation, kind=kind, has_default=has_default)
            )
        return params

    def _annotation(
        self,
        node: Node,
        parsed: ParsedSource,
        where: str,
        local_names: Set[str],
        used_locals: Set[str],
    ) -> Optional[str]:
        ref = self.resolver.resolve(node, parsed)
        rendered = render(ref)
        if rendered is None:
            self._unsupported(ref, parsed, where)
            return None
        self._note_references(ref, parsed, where, local_names, used_locals)
        return rendered

    def _unsupported(self, ref: TypeRef, parsed: ParsedSource, where: str) -> None:
        source = ref.source if isinstance(ref, Unsupported) else str(ref)
        if self.strict:
            raise UnsupportedTypeError(source, path=parsed.path, declaration=where)
        logger.warning(
            "%s: %s: dropping unsupported annotation '%s'", parsed.path, where, source
        )

    def _note_references(
        self,
        ref: TypeRef,
        parsed: ParsedSource,
        where: str,
        local_names: Set[str],
        used_locals: Set[str],
    ) -> None:
        for name, qualified in references(ref):
            if qualified:
                if name in local_names:
                    used_locals.add(name)
                    continue
                self.collector.reference_qualifier(name, path=parsed.path, declaration=where)
            elif name in local_names:
                used_locals.add(name)
            else:
                self.collector.reference_name(name)


def _splat_target(node: Node, parsed: ParsedSource) -> tuple[str, Optional[ParamKind]]:
    if node.type == "list_splat_pattern":
        kind: Optional[ParamKind] = ParamKind.VAR_POSITIONAL
    elif node.type == "dictionary_splat_pattern":
        kind = ParamKind.VAR_KEYWORD
    else:
        return parsed.text(node), None
    identifiers = [child for child in node.named_children if child.type == "identifier"]
    name = parsed.text(identifiers[0]) if identifiers else parsed.text(node).lstrip("*")
    return name, kind


def _skipping_decorator(decorated: Node, parsed: ParsedSource) -> Optional[str]:
    for child in decorated.named_children:
        if child.type != "decorator":
            continue
        name = parsed.text(child).lstrip("@").strip().split("(", 1)[0]
        last = name.rsplit(".", 1)[-1]
        if last in _SKIPPED_DECORATORS or last in {"setter", "getter", "deleter"}:
            return name
    return None


def _is_annotated_attribute(statement: Node) -> bool:
    children = statement.named_children
    if len(children) != 1 or children[0].type != "assignment":
        return False
    return children[0].child_by_field_name("type") is not None


__all__ = ["SignatureExtractor"]
