"""Error types raised by the srgen pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class SrgenError(RuntimeError):
    """Base class for every failure surfaced by srgen."""


class InputError(SrgenError):
    """Raised when the inputs cannot produce a registry.

    The message is prefixed with the offending file and, when known, the
    declaration so that the diagnostic points at what needs fixing.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Optional[Path] = None,
        declaration: Optional[str] = None,
    ) -> None:
        self.path = path
        self.declaration = declaration
        self.detail = message
        super().__init__(_locate(message, path, declaration))


class SourceSyntaxError(InputError):
    """Raised when an input module cannot be parsed."""

    def __init__(
        self, path: Path, line: int, column: int, *, reason: str = "syntax error"
    ) -> None:
        self.line = line
        self.column = column
        super().__init__(f"{reason} at line {line}, column {column}", path=path)


class PackageMismatchError(InputError):
    """Raised when the inputs belong to more than one package."""

    def __init__(self, first: str, second: str, *, path: Optional[Path] = None) -> None:
        self.packages = (first, second)
        super().__init__(f"multiple packages: {first}, {second}", path=path)


class DuplicateServiceError(InputError):
    """Raised when two marked declarations share a name."""

    def __init__(self, name: str, locations: Sequence[str]) -> None:
        self.name = name
        self.locations = list(locations)
        super().__init__(
            f"service {name} is declared more than once ({', '.join(self.locations)})"
        )


class UnresolvedImportError(InputError):
    """Raised in strict mode when a qualifier matches no declared import."""

    def __init__(
        self, qualifier: str, *, path: Optional[Path] = None, declaration: Optional[str] = None
    ) -> None:
        self.qualifier = qualifier
        super().__init__(
            f"no import found for qualifier '{qualifier}'",
            path=path,
            declaration=declaration,
        )


class UnsupportedTypeError(InputError):
    """Raised in strict mode when an annotation has a shape srgen cannot model."""

    def __init__(
        self, annotation: str, *, path: Optional[Path] = None, declaration: Optional[str] = None
    ) -> None:
        self.annotation = annotation
        super().__init__(
            f"unsupported annotation '{annotation}'",
            path=path,
            declaration=declaration,
        )


class GeneratorBugError(SrgenError):
    """Raised when rendered output is rejected by the formatter.

    This always signals a defect in srgen's template rather than a problem
    with the inputs.
    """


def _locate(message: str, path: Optional[Path], declaration: Optional[str]) -> str:
    prefix = []
    if path is not None:
        prefix.append(str(path))
    if declaration:
        prefix.append(declaration)
    if not prefix:
        return message
    return f"{': '.join(prefix)}: {message}"


__all__ = [
    "DuplicateServiceError",
    "GeneratorBugError",
    "InputError",
    "PackageMismatchError",
    "SourceSyntaxError",
    "SrgenError",
    "UnresolvedImportError",
    "UnsupportedTypeError",
]
