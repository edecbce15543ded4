from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Callable, Iterator

import pytest

from tests._fixtures.source_builder import SourceTree


@pytest.fixture
def source_tree(tmp_path: Path) -> SourceTree:
    """Provide a writable source root under the pytest tmp_path."""
    return SourceTree(tmp_path)


@pytest.fixture(autouse=True)
def _reset_srgen_logger() -> Iterator[None]:
    """Undo CLI logging setup so caplog sees srgen records in every test."""
    yield
    logger = logging.getLogger("srgen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def import_generated(
    source_tree: SourceTree, monkeypatch: pytest.MonkeyPatch
) -> Iterator[Callable[[str], ModuleType]]:
    """Import a module written under the source tree, isolated from sys.modules."""
    root = source_tree.path().resolve()
    monkeypatch.syspath_prepend(str(root))

    def _import(name: str) -> ModuleType:
        _forget(name.split(".", 1)[0], root)
        importlib.invalidate_caches()
        return importlib.import_module(name)

    yield _import
    _forget(None, root)


def _forget(top: str | None, root: Path) -> None:
    for name, module in list(sys.modules.items()):
        if top is not None and (name == top or name.startswith(f"{top}.")):
            del sys.modules[name]
            continue
        location = getattr(module, "__file__", None)
        if location and Path(location).resolve().is_relative_to(root):
            del sys.modules[name]
