"""Shared notation-layer data models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class PgnMove:
    """A single mainline move extracted from PGN movetext."""

    san: str
    comment: str = ""


@dataclass(slots=True)
class ParsedPgn:
    """Structured PGN payload, used when comparing against ground truth."""

    headers: dict[str, str]
    moves: list[PgnMove]
    result_token: str = "*"
    white: list[str] = field(default_factory=list)
    black: list[str] = field(default_factory=list)
