"""Core data models shared across srgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


@dataclass
class ImportRef:
    """An import statement found in, or required by, the scanned modules.

    ``module`` is the dotted module as written (it may be relative, such as
    ``.models``); ``name`` is set for ``from module import name`` forms.
    """

    module: str
    name: Optional[str] = None
    alias: Optional[str] = None
    used: bool = False

    @property
    def key(self) -> Tuple[Optional[str], str, Optional[str]]:
        """Identity used for deduplication."""
        return (self.alias, self.module, self.name)

    @property
    def effective_name(self) -> str:
        """Name the import binds in the importing module."""
        if self.alias:
            return self.alias
        if self.name:
            return self.name
        return self.module.split(".", 1)[0]

    @property
    def is_relative(self) -> bool:
        return self.module.startswith(".")


class ParamKind(str, Enum):
    """How a parameter is passed."""

    POSITIONAL_ONLY = "positional_only"
    POSITIONAL = "positional"
    VAR_POSITIONAL = "var_positional"
    KEYWORD_ONLY = "keyword_only"
    VAR_KEYWORD = "var_keyword"


@dataclass(frozen=True)
class Parameter:
    """A method parameter; ``annotation`` is None when absent or dropped."""

    name: str
    annotation: Optional[str] = None
    kind: ParamKind = ParamKind.POSITIONAL
    has_default: bool = False


@dataclass(frozen=True)
class MethodSignature:
    """Name, parameters and result of one Protocol method."""

    name: str
    params: Tuple[Parameter, ...] = ()
    results: Tuple[str, ...] = ()
    is_async: bool = False

    @property
    def param_types(self) -> Tuple[str, ...]:
        """Type strings of the annotated parameters, in declaration order."""
        return tuple(param.annotation for param in self.params if param.annotation)


@dataclass(frozen=True)
class ServiceDescriptor:
    """One marked Protocol declaration."""

    name: str
    methods: Tuple[MethodSignature, ...] = ()
    path: Optional[Path] = field(default=None, compare=False)
    line: int = field(default=0, compare=False)

    @property
    def location(self) -> str:
        if self.path is None:
            return self.name
        return f"{self.path}:{self.line}"


@dataclass
class FileScan:
    """Everything srgen learned from one input file."""

    path: Path
    package: str
    import_path: str
    services: list[ServiceDescriptor] = field(default_factory=list)
    required_imports: list[ImportRef] = field(default_factory=list)


@dataclass(frozen=True)
class RegistryModel:
    """The merged, ordered model rendered into the registry module."""

    package: str
    imports: Tuple[ImportRef, ...] = ()
    services: Tuple[ServiceDescriptor, ...] = ()

    @property
    def used_imports(self) -> Tuple[ImportRef, ...]:
        return tuple(ref for ref in self.imports if ref.used)

    @property
    def service_names(self) -> list[str]:
        return [service.name for service in self.services]


__all__ = [
    "FileScan",
    "ImportRef",
    "MethodSignature",
    "ParamKind",
    "Parameter",
    "RegistryModel",
    "ServiceDescriptor",
]
