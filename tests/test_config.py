"""Tests for srgen.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from srgen.config import CONFIG_FILENAME, ConfigError, SrgenConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config == SrgenConfig()
    assert config.marker == "+srgen"
    assert config.output == "services.py"
    assert config.mocks is True
    assert config.strict is False
    assert config.formatter == "black"
    assert config.line_length == 88
    assert config.source is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / CONFIG_FILENAME
    config_file.write_text(
        """
marker: "@service"
output: registry.py
mocks: false
strict: yes
formatter: none
line_length: 100
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.marker == "@service"
    assert config.output == "registry.py"
    assert config.mocks is False
    assert config.strict is True
    assert config.formatter == "none"
    assert config.line_length == 100
    assert config.source == config_file.resolve()


def test_load_config_next_to_a_module(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("mocks: false\n", encoding="utf-8")

    config = load_config(tmp_path / "services.py")

    assert config.mocks is False


def test_load_config_accepts_an_explicit_file(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.yaml"
    config_file.write_text("line_length: '120'\n", encoding="utf-8")

    assert load_config(config_file).line_length == 120


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.marker == "+srgen"
    assert config.source == (tmp_path / CONFIG_FILENAME).resolve()


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("- just\n- a list\n", "must contain a mapping"),
        ("marker: '  '\n", "marker must not be empty"),
        ("output: registry.txt\n", "bare .py file name"),
        ("output: pkg/registry.py\n", "bare .py file name"),
        ("mocks: maybe\n", "mocks must be a boolean"),
        ("strict: 2\n", "strict must be a boolean"),
        ("formatter: yapf\n", "formatter must be one of black, none"),
        ("line_length: 0\n", "line_length must be a positive integer"),
        ("line_length: true\n", "line_length must be a positive integer"),
        ("marker: [unclosed\n", "failed to parse"),
    ],
)
def test_invalid_config_is_rejected(tmp_path: Path, content: str, message: str) -> None:
    config_file = tmp_path / CONFIG_FILENAME
    config_file.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)

    assert message in str(excinfo.value)
    assert excinfo.value.path == config_file.resolve()
