"""Resolve the package and import path of scanned modules."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ModuleLocation:
    """Where a scanned module lives, in import terms."""

    path: Path
    package: str
    module: str
    in_package: bool

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def qualified_name(self) -> str:
        if not self.in_package:
            return self.module
        if self.module == "__init__":
            return self.package
        return f"{self.package}.{self.module}"

    def import_path(self, *, relative: bool) -> str:
        """Module path the generated registry uses to import from this module."""
        if relative and self.in_package:
            return "." if self.module == "__init__" else f".{self.module}"
        return self.qualified_name


def locate_module(path: Path) -> ModuleLocation:
    """Derive the dotted package of ``path`` from its ``__init__.py`` chain.

    Modules outside a regular package use their directory name as package.
    """
    path = path.resolve()
    directory = path.parent
    parts: list[str] = []
    current = directory
    while (current / "__init__.py").is_file():
        parts.append(current.name)
        if current.parent == current:
            break
        current = current.parent

    if parts:
        package = ".".join(reversed(parts))
        return ModuleLocation(path=path, package=package, module=path.stem, in_package=True)
    return ModuleLocation(path=path, package=directory.name, module=path.stem, in_package=False)


def absolutize(module: str, package: str) -> str:
    """Rewrite a relative module path against ``package``.

    ``absolutize("..models", "app.api")`` returns ``"app.models"``.
    """
    if not module.startswith("."):
        return module
    level = len(module) - len(module.lstrip("."))
    remainder = module[level:]
    parts = package.split(".") if package else []
    if level - 1 >= len(parts):
        raise ValueError(f"relative import '{module}' goes beyond package '{package}'")
    base = parts[: len(parts) - (level - 1)]
    if remainder:
        base.append(remainder)
    return ".".join(base)


__all__ = ["ModuleLocation", "absolutize", "locate_module"]
