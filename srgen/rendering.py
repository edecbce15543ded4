"""Renders the registry code model through the services template."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .codemodel import ModuleSpec, build_module_spec
from .models import RegistryModel

TEMPLATE_NAME = "services.py.j2"
TEMPLATE_VERSION = "1"


class RegistryRenderer:
    """Turns a RegistryModel into raw, unformatted Python source."""

    def __init__(self, *, mocks: bool = True, templates_dir: Path | None = None) -> None:
        self.mocks = mocks
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = self._create_env(self.templates_dir)

    def render(self, model: RegistryModel) -> str:
        return self.render_spec(build_module_spec(model, mocks=self.mocks))

    def render_spec(self, spec: ModuleSpec) -> str:
        template = self._env.get_template(TEMPLATE_NAME)
        return template.render(spec=spec, template_version=TEMPLATE_VERSION)

    @staticmethod
    def _create_env(templates_dir: Path) -> Environment:
        loader = FileSystemLoader(str(templates_dir))
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )


__all__ = ["RegistryRenderer", "TEMPLATE_VERSION"]
