from __future__ import annotations

from typing import Sequence


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class ContentError(RuntimeError):
    """Raised when one or more post files cannot be turned into posts."""

    def __init__(self, message: str, problems: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.problems: list[str] = list(problems)

    def __str__(self) -> str:
        base = super().__str__()
        if not self.problems:
            return base
        return "\n".join([base, *(f"- {p}" for p in self.problems)])


class RenderError(RuntimeError):
    """Raised when a page template or markdown body fails to render."""


class BuildError(RuntimeError):
    """Raised when writing the rendered site to disk fails."""
