"""Validation report data types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from chessdecoder.core.enums import Color, GameResult
from chessdecoder.core.position import BoardState


class ValidationStatus(StrEnum):
    VALID = "Valid"
    INVALID_FORMAT = "InvalidFormat"
    ILLEGAL_MOVE = "IllegalMove"
    AMBIGUOUS = "Ambiguous"


@dataclass(frozen=True, slots=True)
class ValidationEntry:
    """Verdict for one supplied move token."""

    move_number: int
    color: Color
    status: ValidationStatus
    message: str
    notation: str
    normalized: str

    @property
    def is_valid(self) -> bool:
        return self.status == ValidationStatus.VALID

    def to_dict(self) -> dict[str, Any]:
        return {
            "notation": self.notation,
            "normalizedNotation": self.normalized,
            "validationStatus": str(self.status),
            "validationText": self.message,
        }


@dataclass(frozen=True, slots=True)
class ValidationPair:
    """White and black verdicts sharing one move number."""

    move_number: int
    white: ValidationEntry | None
    black: ValidationEntry | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "moveNumber": self.move_number,
            "whiteMove": self.white.to_dict() if self.white else None,
            "blackMove": self.black.to_dict() if self.black else None,
        }


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Per-move verdicts plus the board snapshot after every supplied token.

    ``states[0]`` is the starting position and ``states[k]`` the position
    after the k-th entry; a rejected entry repeats the previous snapshot.
    """

    entries: tuple[ValidationEntry, ...]
    states: tuple[BoardState, ...]
    result: GameResult = GameResult.IN_PROGRESS

    @property
    def final_state(self) -> BoardState:
        return self.states[-1]

    @property
    def is_valid(self) -> bool:
        return all(e.is_valid for e in self.entries)

    @property
    def invalid_count(self) -> int:
        return sum(1 for e in self.entries if not e.is_valid)

    def state_before(self, index: int) -> BoardState:
        return self.states[index]

    def state_after(self, index: int) -> BoardState:
        return self.states[index + 1]

    def pairs(self) -> list[ValidationPair]:
        by_number: dict[int, dict[Color, ValidationEntry]] = {}
        for entry in self.entries:
            by_number.setdefault(entry.move_number, {})[entry.color] = entry
        return [
            ValidationPair(n, sides.get(Color.WHITE), sides.get(Color.BLACK))
            for n, sides in sorted(by_number.items())
        ]

    def normalized_moves(self) -> tuple[list[str], list[str]]:
        """White and black move strings, canonical where the move was applied."""
        white = [e.normalized for e in self.entries if e.color == Color.WHITE]
        black = [e.normalized for e in self.entries if e.color == Color.BLACK]
        return white, black

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "finalFen": self.final_state.fen,
            "moves": [pair.to_dict() for pair in self.pairs()],
        }
