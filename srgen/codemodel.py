"""Code model describing what the registry module declares.

The template only prints these structures; every naming and ordering
decision about the generated module is taken here.
"""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .builder import ERROR_CLASS, MOCK_SUFFIX, REGISTRY_CLASS
from .models import ImportRef, MethodSignature, ParamKind, RegistryModel, ServiceDescriptor

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

_HELPER_IMPORTS = (
    ImportRef(module="dataclasses", name="dataclass", used=True),
    ImportRef(module="dataclasses", name="fields", used=True),
)
_ANY_IMPORT = ImportRef(module="typing", name="Any", used=True)


@dataclass(frozen=True)
class ImportLine:
    """One import statement of the generated module."""

    module: str
    names: Tuple[str, ...] = ()
    alias: Optional[str] = None

    def render(self) -> str:
        if not self.names:
            return f"import {self.module} as {self.alias}" if self.alias else f"import {self.module}"
        return f"from {self.module} import {', '.join(self.names)}"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    annotation: str
    default: str = "None"


@dataclass(frozen=True)
class ArgSpec:
    name: str
    annotation: str
    target: str


@dataclass(frozen=True)
class MethodSpec:
    name: str
    params: str
    returns: Optional[str]
    is_async: bool
    returned_field: str


@dataclass(frozen=True)
class MockSpec:
    name: str
    service: str
    fields: Tuple[FieldSpec, ...]
    methods: Tuple[MethodSpec, ...]


@dataclass(frozen=True)
class ModuleSpec:
    """Everything the registry template prints, in output order."""

    package: str
    import_sections: Tuple[Tuple[ImportLine, ...], ...]
    registry_class: str
    error_class: str
    registry_fields: Tuple[FieldSpec, ...]
    init_args: Tuple[ArgSpec, ...]
    mocks: Tuple[MockSpec, ...]


def build_module_spec(model: RegistryModel, *, mocks: bool = True) -> ModuleSpec:
    """Translate a RegistryModel into the code model of the registry module."""
    mock_specs = tuple(_mock_spec(service) for service in model.services) if mocks else ()

    imports: List[ImportRef] = [*model.used_imports, *_HELPER_IMPORTS]
    if any(mock.methods for mock in mock_specs):
        imports.append(_ANY_IMPORT)

    registry_fields = tuple(
        FieldSpec(name=service.name, annotation=f"{service.name} | None")
        for service in model.services
    )
    arg_names = _unique_names(snake_case(service.name) for service in model.services)
    init_args = tuple(
        ArgSpec(name=arg, annotation=service.name, target=service.name)
        for arg, service in zip(arg_names, model.services)
    )
    return ModuleSpec(
        package=model.package,
        import_sections=group_imports(imports),
        registry_class=REGISTRY_CLASS,
        error_class=ERROR_CLASS,
        registry_fields=registry_fields,
        init_args=init_args,
        mocks=mock_specs,
    )


def group_imports(refs: Iterable[ImportRef]) -> Tuple[Tuple[ImportLine, ...], ...]:
    """Group imports into absolute then relative sections, sorted."""
    plain: Set[Tuple[str, Optional[str]]] = set()
    from_names: Dict[str, Set[str]] = {}
    for ref in refs:
        if ref.name is None:
            plain.add((ref.module, ref.alias))
            continue
        entry = f"{ref.name} as {ref.alias}" if ref.alias and ref.alias != ref.name else ref.name
        from_names.setdefault(ref.module, set()).add(entry)

    sections: List[Tuple[ImportLine, ...]] = []
    for relative in (False, True):
        lines = [
            ImportLine(module=module, alias=alias)
            for module, alias in sorted(plain, key=lambda item: (item[0], item[1] or ""))
            if module.startswith(".") == relative
        ]
        lines.extend(
            ImportLine(module=module, names=tuple(sorted(names)))
            for module, names in sorted(from_names.items())
            if module.startswith(".") == relative
        )
        if lines:
            sections.append(tuple(lines))
    return tuple(sections)


def snake_case(name: str) -> str:
    """``FooService`` -> ``foo_service``; keywords get a trailing underscore."""
    converted = _CAMEL_BOUNDARY.sub("_", name).lower()
    if keyword.iskeyword(converted):
        converted += "_"
    return converted


def _mock_spec(service: ServiceDescriptor) -> MockSpec:
    field_names = _unique_names(
        (f"{method.name.strip('_') or 'call'}_return" for method in service.methods),
        reserved={method.name for method in service.methods},
    )
    fields = tuple(FieldSpec(name=name, annotation="Any") for name in field_names)
    methods = tuple(
        MethodSpec(
            name=method.name,
            params=render_params(method),
            returns=method.results[0] if method.results else None,
            is_async=method.is_async,
            returned_field=field_name,
        )
        for method, field_name in zip(service.methods, field_names)
    )
    return MockSpec(
        name=f"{service.name}{MOCK_SUFFIX}",
        service=service.name,
        fields=fields,
        methods=methods,
    )


def render_params(method: MethodSignature) -> str:
    """Parameter list of ``method`` including the receiver."""
    parts = ["self"]
    star_written = False
    slash_pending = False
    for param in method.params:
        if param.kind is ParamKind.POSITIONAL_ONLY:
            slash_pending = True
        elif slash_pending:
            parts.append("/")
            slash_pending = False
        prefix = ""
        if param.kind is ParamKind.KEYWORD_ONLY and not star_written:
            parts.append("*")
            star_written = True
        elif param.kind is ParamKind.VAR_POSITIONAL:
            prefix = "*"
            star_written = True
        elif param.kind is ParamKind.VAR_KEYWORD:
            prefix = "**"
        text = f"{prefix}{param.name}"
        if param.annotation:
            text += f": {param.annotation}"
            if param.has_default:
                text += " = ..."
        elif param.has_default:
            text += "=..."
        parts.append(text)
    if slash_pending:
        parts.append("/")
    return ", ".join(parts)


def _unique_names(names: Iterable[str], reserved: Iterable[str] = ()) -> List[str]:
    taken: Set[str] = set(reserved)
    result: List[str] = []
    for name in names:
        candidate = name
        index = 2
        while candidate in taken:
            candidate = f"{name}_{index}"
            index += 1
        taken.add(candidate)
        result.append(candidate)
    return result


__all__ = [
    "ArgSpec",
    "FieldSpec",
    "ImportLine",
    "MethodSpec",
    "MockSpec",
    "ModuleSpec",
    "build_module_spec",
    "group_imports",
    "render_params",
    "snake_case",
]
