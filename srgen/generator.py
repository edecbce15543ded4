"""Pipeline orchestration: inputs -> registry model -> formatted module."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .builder import RegistryModelBuilder
from .config import SrgenConfig, load_config
from .errors import InputError
from .extractor import SignatureExtractor
from .formatting import SourceFormatter
from .imports import ImportCollector, declared_imports
from .logging import get_logger
from .models import FileScan, ImportRef, RegistryModel
from .packages import locate_module
from .parsing import ParsedSource, SourceParser
from .rendering import RegistryRenderer
from .scanner import MarkerScanner, module_level_names
from .typerefs import TypeResolver

PathLike = Union[str, Path]


@dataclass
class GenerationResult:
    """Outcome of a generator run that wrote its output."""

    path: Path
    model: RegistryModel
    source: str


class Generator:
    """Coordinates parsing, extraction, model building, rendering and output."""

    def __init__(
        self,
        config: SrgenConfig | None = None,
        *,
        parser: SourceParser | None = None,
        renderer: RegistryRenderer | None = None,
        formatter: SourceFormatter | None = None,
    ) -> None:
        self.config = config or SrgenConfig()
        self.parser = parser or SourceParser()
        self.scanner = MarkerScanner(self.config.marker)
        self.renderer = renderer or RegistryRenderer(mocks=self.config.mocks)
        self.formatter = formatter or SourceFormatter(
            formatter=self.config.formatter, line_length=self.config.line_length
        )
        self.logger = get_logger("generator")

    def default_output(self, files: Sequence[PathLike]) -> Path:
        """``<directory of the first input>/services.py`` unless configured otherwise."""
        if not files:
            raise InputError("no input files given")
        return Path(files[0]).parent / self.config.output

    def build_model(
        self, files: Sequence[PathLike], output: Optional[PathLike] = None
    ) -> RegistryModel:
        """Parse and scan ``files`` and return the merged RegistryModel."""
        destination = Path(output) if output is not None else self.default_output(files)
        paths = self._input_paths(files, destination)

        # Every declared import is known before any signature is resolved.
        sources = [self.parser.parse_file(path) for path in paths]
        collector = ImportCollector(strict=self.config.strict)
        for source in sources:
            collector.declare(declared_imports(source))

        extractor = SignatureExtractor(
            collector,
            resolver=TypeResolver(self.parser),
            strict=self.config.strict,
        )
        first = locate_module(paths[0])
        relative = destination.parent.resolve() == first.directory
        builder = RegistryModelBuilder()
        for source in sources:
            builder.add(self._scan_file(source, extractor, relative=relative))

        rebase = None if relative or not first.in_package else first.package
        model = builder.build(collector.imports(), rebase_package=rebase)
        self.logger.info(
            "Discovered %d service(s) in package %s", len(model.services), model.package
        )
        return model

    def render(self, files: Sequence[PathLike], output: Optional[PathLike] = None) -> str:
        """Return the formatted registry module without writing it."""
        model = self.build_model(files, output)
        return self._render_model(model)

    def generate(
        self, files: Sequence[PathLike], output: Optional[PathLike] = None
    ) -> GenerationResult:
        """Render the registry module and write it to ``output``."""
        destination = Path(output) if output is not None else self.default_output(files)
        model = self.build_model(files, destination)
        source = self._render_model(model)
        try:
            destination.write_text(source, encoding="utf-8")
        except OSError as exc:
            raise InputError(
                f"cannot write output: {exc.strerror or exc}", path=destination
            ) from exc
        self.logger.info("Wrote %s", destination)
        return GenerationResult(path=destination, model=model, source=source)

    def _render_model(self, model: RegistryModel) -> str:
        raw = self.renderer.render(model)
        return self.formatter.format(raw)

    def _input_paths(self, files: Sequence[PathLike], destination: Path) -> List[Path]:
        if not files:
            raise InputError("no input files given")
        target = destination.resolve()
        paths: List[Path] = []
        for file in files:
            path = Path(file)
            if path.resolve() == target:
                self.logger.debug("Skipping %s: it is the generated output", path)
                continue
            paths.append(path)
        if not paths:
            raise InputError("no input files left after excluding the output file")
        return paths

    def _scan_file(
        self, source: ParsedSource, extractor: SignatureExtractor, *, relative: bool
    ) -> FileScan:
        location = locate_module(source.path)
        import_path = location.import_path(relative=relative)
        scan = FileScan(path=source.path, package=location.package, import_path=import_path)
        local_names = module_level_names(source)
        for declaration in self.scanner.scan(source):
            descriptor, used_locals = extractor.extract(declaration, source, local_names)
            scan.services.append(descriptor)
            scan.required_imports.append(
                ImportRef(module=import_path, name=declaration.name, used=True)
            )
            scan.required_imports.extend(
                ImportRef(module=import_path, name=name, used=True) for name in sorted(used_locals)
            )
            self.logger.debug(
                "%s: %s with %d method(s)", source.path, declaration.name, len(descriptor.methods)
            )
        return scan


def generate(
    files: Sequence[PathLike],
    output: Optional[PathLike] = None,
    *,
    config: SrgenConfig | None = None,
) -> GenerationResult:
    """Generate the registry for ``files``.

    Without an explicit ``config`` the ``.srgen.yml`` next to the first input
    is used when present.
    """
    if not files:
        raise InputError("no input files given")
    if config is None:
        config = load_config(Path(files[0]).parent)
    return Generator(config).generate(files, output)


__all__ = ["GenerationResult", "Generator", "generate"]
