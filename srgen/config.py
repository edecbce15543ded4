"""Configuration loading for srgen (.srgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import InputError

CONFIG_FILENAME = ".srgen.yml"
DEFAULT_MARKER = "+srgen"
DEFAULT_OUTPUT = "services.py"

_FORMATTERS = {"black", "none"}


class ConfigError(InputError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class SrgenConfig:
    """Represents the settings defined in .srgen.yml."""

    marker: str = DEFAULT_MARKER
    output: str = DEFAULT_OUTPUT
    mocks: bool = True
    strict: bool = False
    formatter: str = "black"
    line_length: int = 88
    source: Optional[Path] = None


def load_config(config_path: Path) -> SrgenConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        return SrgenConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root", path=config_file)

    config = SrgenConfig(source=config_file)

    marker = _as_str(data.get("marker"))
    if marker is not None:
        marker = marker.strip()
        if not marker:
            raise ConfigError("marker must not be empty", path=config_file)
        config.marker = marker

    output = _as_str(data.get("output"))
    if output is not None:
        if not output.endswith(".py") or Path(output).name != output:
            raise ConfigError(
                f"output must be a bare .py file name, got '{output}'", path=config_file
            )
        config.output = output

    for key in ("mocks", "strict"):
        if key in data:
            value = _as_bool(data[key])
            if value is None:
                raise ConfigError(f"{key} must be a boolean", path=config_file)
            setattr(config, key, value)

    formatter = _as_str(data.get("formatter"))
    if formatter is not None:
        formatter = formatter.lower()
        if formatter not in _FORMATTERS:
            choices = ", ".join(sorted(_FORMATTERS))
            raise ConfigError(
                f"formatter must be one of {choices}, got '{formatter}'", path=config_file
            )
        config.formatter = formatter

    if "line_length" in data:
        line_length = _as_int(data["line_length"])
        if line_length is None or line_length <= 0:
            raise ConfigError("line_length must be a positive integer", path=config_file)
        config.line_length = line_length

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.suffix == ".py":
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"failed to parse {path.name}: {exc}", path=path) from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = ["CONFIG_FILENAME", "ConfigError", "SrgenConfig", "load_config"]
