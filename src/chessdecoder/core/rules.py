"""High-level chess rules: check, checkmate, stalemate."""

from __future__ import annotations

from typing import TYPE_CHECKING

from chessdecoder.core.enums import Color, GameResult
from chessdecoder.core.move_generator import MoveGenerator

if TYPE_CHECKING:
    from chessdecoder.core.position import Position


class Rules:
    """Static rule-checker that operates on a :class:`Position`.

    Only over-the-board terminal states are detected; draw claims by rule
    are not recorded on scoresheets as moves and are left to the PGN result.
    """

    @staticmethod
    def is_in_check(position: Position) -> bool:
        gen = MoveGenerator(position)
        return gen.is_in_check(position.side_to_move)

    @staticmethod
    def is_checkmate(position: Position) -> bool:
        if not Rules.is_in_check(position):
            return False
        gen = MoveGenerator(position)
        return len(gen.generate_legal_moves()) == 0

    @staticmethod
    def is_stalemate(position: Position) -> bool:
        if Rules.is_in_check(position):
            return False
        gen = MoveGenerator(position)
        return len(gen.generate_legal_moves()) == 0

    @staticmethod
    def game_result(position: Position) -> GameResult:
        """Result implied by the position alone."""
        gen = MoveGenerator(position)
        if gen.generate_legal_moves():
            return GameResult.IN_PROGRESS
        if gen.is_in_check(position.side_to_move):
            return (
                GameResult.BLACK_WINS
                if position.side_to_move == Color.WHITE
                else GameResult.WHITE_WINS
            )
        return GameResult.DRAW
