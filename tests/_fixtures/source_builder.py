"""Helper utilities for writing throwaway Python packages in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import List, Mapping


class SourceTree:
    """Writes modules into a temporary directory, creating packages on demand."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "src"
        self.root.mkdir()

    def package(self, name: str) -> Path:
        """Create ``name`` (dotted) as a regular package and return its directory."""
        directory = self.root
        for part in name.split("."):
            directory = directory / part
            directory.mkdir(exist_ok=True)
            init = directory / "__init__.py"
            if not init.exists():
                init.write_text("", encoding="utf-8")
        return directory

    def write(self, files: Mapping[str, str]) -> List[Path]:
        """Write `path -> contents` entries relative to the root, in order."""
        written: List[Path] = []
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")
            written.append(path)
        return written

    def path(self, relative: str = "") -> Path:
        return self.root / relative if relative else self.root


__all__ = ["SourceTree"]
