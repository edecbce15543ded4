"""Tests for the marker scanner."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from srgen.errors import SourceSyntaxError
from srgen.parsing import ParsedSource, SourceParser
from srgen.scanner import MarkerScanner, module_level_names


def _parse(source: str) -> ParsedSource:
    text = textwrap.dedent(source).lstrip("\n")
    return SourceParser().parse_bytes(text.encode("utf-8"), Path("module.py"))


def _names(source: str, marker: str = "+srgen") -> list[str]:
    return [declaration.name for declaration in MarkerScanner(marker).scan(_parse(source))]


def test_scanner_finds_marked_protocol() -> None:
    names = _names(
        """
        from typing import Protocol


        # +srgen
        class FooService(Protocol):
            def do(self, x: int) -> None: ...
        """
    )
    assert names == ["FooService"]


def test_scanner_accepts_trailing_text_after_marker() -> None:
    names = _names(
        """
        from typing import Protocol

        #   +srgen registry entry for payments
        class Payments(Protocol):
            pass
        """
    )
    assert names == ["Payments"]


def test_scanner_finds_marker_anywhere_in_comment_block() -> None:
    names = _names(
        """
        from typing import Protocol

        # Payments talks to the billing backend.
        # +srgen
        # Implementations must be thread safe.
        class Payments(Protocol):
            pass
        """
    )
    assert names == ["Payments"]


def test_scanner_marker_is_case_sensitive_prefix() -> None:
    names = _names(
        """
        from typing import Protocol

        # +SRGEN
        class Upper(Protocol):
            pass

        # see +srgen
        class NotAtStart(Protocol):
            pass
        """
    )
    assert names == []


def test_scanner_skips_unmarked_and_detached_comments() -> None:
    names = _names(
        """
        from typing import Protocol


        class Untagged(Protocol):
            pass

        # +srgen

        class Detached(Protocol):
            pass
        """
    )
    assert names == []


def test_scanner_ignores_marked_classes_that_are_not_protocols() -> None:
    names = _names(
        """
        from typing import Protocol

        # +srgen
        class Concrete:
            def do(self) -> None:
                return None

        # +srgen
        class Base(object):
            pass
        """
    )
    assert names == []


def test_scanner_recognises_protocol_spellings() -> None:
    names = _names(
        """
        import typing
        import typing_extensions
        from typing import Generic, Protocol, TypeVar

        T = TypeVar("T")

        # +srgen
        class Qualified(typing.Protocol):
            pass

        # +srgen
        class Extension(typing_extensions.Protocol):
            pass

        # +srgen
        class Repository(Protocol[T]):
            def get(self, key: str) -> T: ...
        """
    )
    assert names == ["Qualified", "Extension", "Repository"]


def test_scanner_reads_comment_above_decorators() -> None:
    names = _names(
        """
        from typing import Protocol, runtime_checkable

        # +srgen
        @runtime_checkable
        class Checked(Protocol):
            def ping(self) -> bool: ...
        """
    )
    assert names == ["Checked"]


def test_scanner_handles_marker_right_after_indented_block() -> None:
    names = _names(
        """
        from typing import Protocol

        # +srgen
        class First(Protocol):
            def one(self) -> int: ...
        # +srgen
        class Second(Protocol):
            def two(self) -> int: ...
        """
    )
    assert names == ["First", "Second"]


def test_scanner_only_considers_module_level_classes() -> None:
    names = _names(
        """
        from typing import Protocol


        def factory():
            # +srgen
            class Inner(Protocol):
                pass

            return Inner
        """
    )
    assert names == []


def test_scanner_honours_custom_marker() -> None:
    source = """
        from typing import Protocol

        # @service
        class Custom(Protocol):
            pass
        """
    assert _names(source, marker="@service") == ["Custom"]
    assert _names(source) == []


def test_scanner_reports_declaration_line() -> None:
    parsed = _parse(
        """
        from typing import Protocol

        # +srgen
        class FooService(Protocol):
            pass
        """
    )
    [declaration] = MarkerScanner().scan(parsed)
    assert declaration.line == 4


def test_module_level_names_collects_bindings() -> None:
    parsed = _parse(
        """
        from typing import Protocol, TypeVar

        T = TypeVar("T")
        UserId = int


        class User:
            pass


        def helper() -> None:
            local = 1
        """
    )
    assert module_level_names(parsed) == {"T", "UserId", "User", "helper"}


def test_parser_rejects_invalid_source() -> None:
    with pytest.raises(SourceSyntaxError) as excinfo:
        _parse(
            """
            class Broken(Protocol:
                pass
            """
        )
    assert "module.py" in str(excinfo.value)
    assert excinfo.value.line >= 1


def test_parser_rejects_invalid_utf8() -> None:
    source = b"from typing import Protocol\n\n# caf\xff\nclass A(Protocol):\n    pass\n"
    with pytest.raises(SourceSyntaxError) as excinfo:
        SourceParser().parse_bytes(source, Path("module.py"))
    assert (excinfo.value.line, excinfo.value.column) == (3, 6)
    assert "invalid UTF-8 at line 3, column 6" in str(excinfo.value)


def test_scanner_resolves_protocol_import_aliases() -> None:
    names = _names(
        """
        import typing as t
        import typing_extensions
        from typing import Protocol as P


        # +srgen
        class Aliased(P):
            def run(self) -> None: ...


        # +srgen
        class ModuleAlias(t.Protocol):
            def run(self) -> None: ...


        # +srgen
        class Extensions(typing_extensions.Protocol):
            def run(self) -> None: ...


        # +srgen
        class NotAnAlias(t.Generic):
            def run(self) -> None: ...
        """
    )
    assert names == ["Aliased", "ModuleAlias", "Extensions"]
