"""Import collection: declared imports, usage marking and requirements."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from tree_sitter import Node

from .errors import UnresolvedImportError
from .logging import get_logger
from .models import ImportRef
from .parsing import ParsedSource, iter_nodes

logger = get_logger("imports")


def declared_imports(parsed: ParsedSource) -> List[ImportRef]:
    """Return the imports written anywhere in ``parsed``, in source order.

    ``from __future__`` and wildcard imports are ignored; neither binds a
    name a signature could reference.
    """
    refs: List[ImportRef] = []
    for node in iter_nodes(parsed.root):
        if node.type == "import_statement":
            for target in node.children_by_field_name("name"):
                module, alias = _dotted_target(target, parsed)
                refs.append(ImportRef(module=module, alias=alias))
        elif node.type == "import_from_statement":
            module_node = node.child_by_field_name("module_name")
            if module_node is None:
                continue
            module = "".join(parsed.text(module_node).split())
            for target in node.children_by_field_name("name"):
                name, alias = _dotted_target(target, parsed)
                refs.append(ImportRef(module=module, name=name, alias=alias))
    return refs


def _dotted_target(node: Node, parsed: ParsedSource) -> Tuple[str, Optional[str]]:
    if node.type == "aliased_import":
        name_node = node.child_by_field_name("name")
        alias_node = node.child_by_field_name("alias")
        name = parsed.text(name_node) if name_node is not None else parsed.text(node)
        alias = parsed.text(alias_node) if alias_node is not None else None
        return "".join(name.split()), alias
    return "".join(parsed.text(node).split()), None


class ImportCollector:
    """Tracks every import of a run and which of them signatures rely on."""

    def __init__(self, *, strict: bool = False) -> None:
        self.strict = strict
        self._imports: Dict[Tuple[Optional[str], str, Optional[str]], ImportRef] = {}
        self.unresolved: List[Tuple[str, str]] = []

    def declare(self, refs: Iterable[ImportRef]) -> None:
        """Record declared imports, keeping the first of each identity."""
        for ref in refs:
            existing = self._imports.get(ref.key)
            if existing is None:
                self._imports[ref.key] = ImportRef(
                    module=ref.module, name=ref.name, alias=ref.alias, used=ref.used
                )
            elif ref.used:
                existing.used = True

    def require(self, module: str, name: str) -> ImportRef:
        """Record an import the generated module needs regardless of usage."""
        ref = ImportRef(module=module, name=name, used=True)
        self.declare([ref])
        return self._imports[ref.key]

    def reference_name(self, name: str) -> bool:
        """Mark imports binding ``name`` as used; return whether any matched."""
        matched = False
        for ref in self._imports.values():
            if ref.effective_name == name:
                ref.used = True
                matched = True
        return matched

    def reference_qualifier(
        self, qualifier: str, *, path: Optional[Path] = None, declaration: Optional[str] = None
    ) -> bool:
        """Mark imports binding ``qualifier`` as used.

        A qualifier no import binds is logged, and raises in strict mode.
        """
        if self.reference_name(qualifier):
            return True
        where = f"{path}: {declaration}" if declaration else str(path)
        logger.warning("%s: no import found for qualifier '%s'", where, qualifier)
        self.unresolved.append((where, qualifier))
        if self.strict:
            raise UnresolvedImportError(qualifier, path=path, declaration=declaration)
        return False

    def imports(self) -> List[ImportRef]:
        return list(self._imports.values())


__all__ = ["ImportCollector", "declared_imports"]
