"""Notation package: SAN grammar, FEN and PGN."""

from chessdecoder.core.notation.fen import STARTING_FEN, position_from_fen, position_to_fen
from chessdecoder.core.notation.models import ParsedPgn, PgnMove
from chessdecoder.core.notation.pgn import (
    build_pgn,
    extract_moves_from_pgn,
    game_result_from_pgn,
    generate_pgn,
    parse_pgn_game,
    pgn_result_token,
)
from chessdecoder.core.notation.san import (
    SAN_PATTERN,
    SanToken,
    matching_moves,
    move_to_san,
    parse_san,
    parse_san_token,
)

__all__ = [
    "STARTING_FEN",
    "SAN_PATTERN",
    "PgnMove",
    "ParsedPgn",
    "SanToken",
    "position_from_fen",
    "position_to_fen",
    "move_to_san",
    "parse_san",
    "parse_san_token",
    "matching_moves",
    "pgn_result_token",
    "game_result_from_pgn",
    "generate_pgn",
    "build_pgn",
    "parse_pgn_game",
    "extract_moves_from_pgn",
]
