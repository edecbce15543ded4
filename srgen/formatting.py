"""Output formatter: syntax check and canonical layout of rendered source."""

from __future__ import annotations

import ast

import black

from .errors import GeneratorBugError
from .logging import get_logger

logger = get_logger("formatting")


class SourceFormatter:
    """Checks rendered source and formats it with black.

    Rendered text that fails to parse is a template defect, so every failure
    surfaces as :class:`GeneratorBugError`.
    """

    def __init__(self, *, formatter: str = "black", line_length: int = 88) -> None:
        self.formatter = formatter
        self.line_length = line_length

    def format(self, source: str) -> str:
        try:
            ast.parse(source)
        except SyntaxError as exc:
            raise GeneratorBugError(
                f"rendered registry is not valid Python (line {exc.lineno}): {exc.msg}"
            ) from exc

        if self.formatter == "none":
            return source if source.endswith("\n") else source + "\n"

        mode = black.Mode(line_length=self.line_length)
        try:
            formatted = black.format_str(source, mode=mode)
        except black.InvalidInput as exc:
            raise GeneratorBugError(f"formatter rejected rendered registry: {exc}") from exc
        logger.debug("Formatted registry (%d -> %d bytes)", len(source), len(formatted))
        return formatted


__all__ = ["SourceFormatter"]
