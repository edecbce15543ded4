"""Tests for import collection and usage tracking."""

from __future__ import annotations

import logging
import textwrap
from pathlib import Path

import pytest

from srgen.errors import UnresolvedImportError
from srgen.imports import ImportCollector, declared_imports
from srgen.models import ImportRef
from srgen.parsing import SourceParser


def _declared(source: str) -> list[ImportRef]:
    parsed = SourceParser().parse_bytes(
        textwrap.dedent(source).lstrip("\n").encode("utf-8"), Path("module.py")
    )
    return declared_imports(parsed)


def test_declared_imports_cover_every_statement_form() -> None:
    refs = _declared(
        """
        from __future__ import annotations

        import os, os.path
        import collections.abc as cabc
        from typing import (
            Any,
            Optional as Opt,
        )
        from . import sibling
        from ..pkg.mod import Thing
        from json import *


        def helper():
            import decimal
        """
    )
    assert [(ref.module, ref.name, ref.alias) for ref in refs] == [
        ("os", None, None),
        ("os.path", None, None),
        ("collections.abc", None, "cabc"),
        ("typing", "Any", None),
        ("typing", "Optional", "Opt"),
        (".", "sibling", None),
        ("..pkg.mod", "Thing", None),
        ("decimal", None, None),
    ]
    assert [ref.effective_name for ref in refs] == [
        "os",
        "os",
        "cabc",
        "Any",
        "Opt",
        "sibling",
        "Thing",
        "decimal",
    ]
    assert not any(ref.used for ref in refs)


def test_import_ref_is_relative() -> None:
    assert ImportRef(module=".models", name="User").is_relative
    assert ImportRef(module=".", name="models").is_relative
    assert not ImportRef(module="app.models", name="User").is_relative


def test_collector_deduplicates_and_merges_usage() -> None:
    collector = ImportCollector()
    collector.declare(
        [
            ImportRef(module="datetime"),
            ImportRef(module="typing", name="Any"),
            ImportRef(module="datetime", used=True),
            ImportRef(module="datetime", alias="dt"),
        ]
    )
    imports = collector.imports()
    assert [(ref.module, ref.alias, ref.used) for ref in imports] == [
        ("datetime", None, True),
        ("typing", None, False),
        ("datetime", "dt", False),
    ]


def test_collector_declare_copies_refs() -> None:
    original = ImportRef(module="decimal", name="Decimal")
    collector = ImportCollector()
    collector.declare([original])
    assert collector.reference_name("Decimal") is True
    assert original.used is False
    assert collector.imports()[0].used is True


def test_reference_name_marks_every_binding() -> None:
    collector = ImportCollector()
    collector.declare(
        [
            ImportRef(module="app.models", name="User"),
            ImportRef(module="legacy.models", name="User"),
            ImportRef(module="app.other", name="Thing"),
        ]
    )
    assert collector.reference_name("User") is True
    assert collector.reference_name("int") is False
    assert [ref.used for ref in collector.imports()] == [True, True, False]


def test_require_records_a_used_import() -> None:
    collector = ImportCollector()
    ref = collector.require(".foo", "FooService")
    assert ref.used is True
    assert collector.imports() == [ImportRef(module=".foo", name="FooService", used=True)]


def test_unresolved_qualifier_is_logged_and_kept(caplog: pytest.LogCaptureFixture) -> None:
    collector = ImportCollector()
    with caplog.at_level(logging.WARNING, logger="srgen"):
        matched = collector.reference_qualifier(
            "pkg", path=Path("app/foo.py"), declaration="Foo.run"
        )
    assert matched is False
    assert "no import found for qualifier 'pkg'" in caplog.text
    assert collector.unresolved == [(f"{Path('app/foo.py')}: Foo.run", "pkg")]


def test_unresolved_qualifier_raises_in_strict_mode() -> None:
    collector = ImportCollector(strict=True)
    with pytest.raises(UnresolvedImportError) as excinfo:
        collector.reference_qualifier("pkg", path=Path("foo.py"), declaration="Foo.run")
    assert excinfo.value.qualifier == "pkg"
    assert str(excinfo.value) == "foo.py: Foo.run: no import found for qualifier 'pkg'"


def test_aliased_module_resolves_qualifier_by_alias() -> None:
    collector = ImportCollector(strict=True)
    collector.declare(_declared("import datetime as dt\n"))
    assert collector.reference_qualifier("dt") is True
    [ref] = collector.imports()
    assert ref.used is True
