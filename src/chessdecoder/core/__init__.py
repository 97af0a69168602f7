"""Core domain layer: pure chess logic with zero external dependencies.

Quick start::

    from chessdecoder.core import Position, MoveGenerator, parse_san

    pos = Position()
    pos.make_move(parse_san(pos, "e4"))
    print(pos.snapshot())
"""

from chessdecoder.core.board import Board
from chessdecoder.core.enums import CastlingRights, Color, GameResult, MoveFlag, PieceType
from chessdecoder.core.move import Move
from chessdecoder.core.move_generator import MoveGenerator
from chessdecoder.core.notation import (
    STARTING_FEN,
    move_to_san,
    parse_san,
    position_from_fen,
    position_to_fen,
)
from chessdecoder.core.piece import Piece
from chessdecoder.core.position import BoardState, Position
from chessdecoder.core.rules import Rules
from chessdecoder.core.types import (
    Square,
    file_of,
    make_square,
    parse_square,
    rank_of,
    square_name,
)

__all__ = [
    # Enums / flags
    "CastlingRights",
    "Color",
    "GameResult",
    "MoveFlag",
    "PieceType",
    # Types / helpers
    "Square",
    "file_of",
    "make_square",
    "parse_square",
    "rank_of",
    "square_name",
    # Domain objects
    "Board",
    "BoardState",
    "Move",
    "MoveGenerator",
    "Piece",
    "Position",
    "Rules",
    # Notation
    "STARTING_FEN",
    "move_to_san",
    "parse_san",
    "position_from_fen",
    "position_to_fen",
]
