"""srgen: generate a service registry module from tagged Protocol classes."""

from .config import SrgenConfig, load_config
from .errors import (
    DuplicateServiceError,
    GeneratorBugError,
    InputError,
    PackageMismatchError,
    SourceSyntaxError,
    SrgenError,
    UnresolvedImportError,
    UnsupportedTypeError,
)
from .generator import GenerationResult, Generator, generate
from .models import (
    FileScan,
    ImportRef,
    MethodSignature,
    ParamKind,
    Parameter,
    RegistryModel,
    ServiceDescriptor,
)

__all__ = [
    "DuplicateServiceError",
    "FileScan",
    "GenerationResult",
    "Generator",
    "GeneratorBugError",
    "ImportRef",
    "InputError",
    "MethodSignature",
    "PackageMismatchError",
    "ParamKind",
    "Parameter",
    "RegistryModel",
    "ServiceDescriptor",
    "SourceSyntaxError",
    "SrgenConfig",
    "SrgenError",
    "UnresolvedImportError",
    "UnsupportedTypeError",
    "generate",
    "load_config",
]
