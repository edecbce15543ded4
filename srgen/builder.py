"""Registry model builder: merges per-file scans into one ordered model."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from .errors import DuplicateServiceError, InputError, PackageMismatchError
from .logging import get_logger
from .models import FileScan, ImportRef, RegistryModel, ServiceDescriptor
from .packages import absolutize

logger = get_logger("builder")

REGISTRY_CLASS = "ServiceRegistry"
ERROR_CLASS = "IncompleteRegistryError"
MOCK_SUFFIX = "Mock"

_GENERATED_NAMES = {
    REGISTRY_CLASS,
    ERROR_CLASS,
    "Any",
    "dataclass",
    "fields",
    "annotations",
    "init_service_registry",
    "services",
    "must_services",
    "missing",
    "is_complete",
    "validate",
    "_registry",
}


class RegistryModelBuilder:
    """Accumulates file scans in input order and builds the RegistryModel."""

    def __init__(self) -> None:
        self._package: Optional[str] = None
        self._services: List[ServiceDescriptor] = []
        self._required: List[ImportRef] = []

    @property
    def package(self) -> Optional[str]:
        return self._package

    def add(self, scan: FileScan) -> None:
        if self._package is None:
            self._package = scan.package
        elif scan.package != self._package:
            raise PackageMismatchError(self._package, scan.package, path=scan.path)
        self._services.extend(scan.services)
        self._required.extend(scan.required_imports)
        logger.debug("%s: %d service(s)", scan.path, len(scan.services))

    def build(
        self,
        declared: Iterable[ImportRef] = (),
        *,
        rebase_package: Optional[str] = None,
    ) -> RegistryModel:
        """Return the merged model.

        ``rebase_package`` rewrites relative import modules to absolute ones,
        for a destination outside the inputs' package directory.
        """
        services = sorted(self._services, key=lambda service: service.name)
        self._check_names(services)
        imports = _merge_imports([*declared, *self._required])
        if rebase_package is not None:
            imports = tuple(_rebase(ref, rebase_package) for ref in imports)
            imports = _merge_imports(imports)
        return RegistryModel(
            package=self._package or "",
            imports=imports,
            services=tuple(services),
        )

    @staticmethod
    def _check_names(services: List[ServiceDescriptor]) -> None:
        seen: Dict[str, ServiceDescriptor] = {}
        for service in services:
            if service.name in seen:
                raise DuplicateServiceError(
                    service.name, [seen[service.name].location, service.location]
                )
            seen[service.name] = service
        generated = set(_GENERATED_NAMES)
        generated.update(f"{service.name}{MOCK_SUFFIX}" for service in services)
        for service in services:
            if service.name in generated:
                raise InputError(
                    "service name collides with a name the registry module defines",
                    path=service.path,
                    declaration=service.name,
                )


def _merge_imports(refs: Iterable[ImportRef]) -> Tuple[ImportRef, ...]:
    merged: Dict[Tuple[Optional[str], str, Optional[str]], ImportRef] = {}
    for ref in refs:
        existing = merged.get(ref.key)
        if existing is None:
            merged[ref.key] = ImportRef(
                module=ref.module, name=ref.name, alias=ref.alias, used=ref.used
            )
        else:
            existing.used = existing.used or ref.used
    return tuple(merged.values())


def _rebase(ref: ImportRef, package: str) -> ImportRef:
    if not ref.is_relative:
        return ref
    try:
        module = absolutize(ref.module, package)
    except ValueError:
        if ref.used:
            logger.warning("cannot rebase import '%s' outside package '%s'", ref.module, package)
        return ref
    return ImportRef(module=module, name=ref.name, alias=ref.alias, used=ref.used)


__all__ = ["ERROR_CLASS", "MOCK_SUFFIX", "REGISTRY_CLASS", "RegistryModelBuilder"]
