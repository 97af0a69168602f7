"""FEN parsing and serialization.

Used to seed replays from a non-standard start and to print the position
reached after validation.
"""

from __future__ import annotations

from chessdecoder.core.board import Board
from chessdecoder.core.enums import CastlingRights, Color
from chessdecoder.core.piece import Piece
from chessdecoder.core.position import Position
from chessdecoder.core.types import Square, make_square, parse_square, rank_of, square_name

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

_CASTLING_LETTERS: tuple[tuple[str, CastlingRights], ...] = (
    ("K", CastlingRights.WHITE_KINGSIDE),
    ("Q", CastlingRights.WHITE_QUEENSIDE),
    ("k", CastlingRights.BLACK_KINGSIDE),
    ("q", CastlingRights.BLACK_QUEENSIDE),
)


def _parse_placement(placement: str, fen: str) -> Board:
    ranks = placement.split("/")
    if len(ranks) != 8:
        raise ValueError(f"Invalid FEN board (must contain 8 ranks): {fen!r}")
    board = Board()
    for rank_idx, rank_text in enumerate(ranks):
        rank = 7 - rank_idx
        file = 0
        for ch in rank_text:
            if ch.isdigit():
                step = int(ch)
                if not (1 <= step <= 8):
                    raise ValueError(f"Invalid FEN digit {ch!r}: {fen!r}")
                file += step
            else:
                if file >= 8:
                    raise ValueError(f"Invalid FEN rank width: {fen!r}")
                board[make_square(file, rank)] = Piece.from_char(ch)
                file += 1
        if file != 8:
            raise ValueError(f"Invalid FEN rank width: {fen!r}")
    return board


def _parse_castling(field: str) -> CastlingRights:
    castling = CastlingRights.NONE
    if field == "-":
        return castling
    letters = dict(_CASTLING_LETTERS)
    if len(set(field)) != len(field) or any(ch not in letters for ch in field):
        raise ValueError(f"Invalid FEN castling field: {field!r}")
    for ch in field:
        castling |= letters[ch]
    return castling


def _parse_counter(parts: list[str], index: int, default: int, minimum: int) -> int:
    if len(parts) <= index:
        return default
    value = int(parts[index])
    if value < minimum:
        raise ValueError(f"Invalid FEN move counter: {parts[index]!r}")
    return value


def position_from_fen(fen: str) -> Position:
    """Parse a FEN string into a :class:`Position`."""
    parts = fen.split()
    if not (4 <= len(parts) <= 6):
        raise ValueError(f"Invalid FEN (need 4-6 fields): {fen!r}")

    placement, side_part, castling_part, ep_part = parts[:4]
    board = _parse_placement(placement, fen)

    if side_part not in ("w", "b"):
        raise ValueError(f"Invalid FEN side-to-move field: {side_part!r}")
    side = Color.WHITE if side_part == "w" else Color.BLACK

    castling = _parse_castling(castling_part)

    ep: Square | None = None
    if ep_part != "-":
        ep = parse_square(ep_part)
        expected_ep_rank = 5 if side == Color.WHITE else 2
        if rank_of(ep) != expected_ep_rank:
            raise ValueError(f"Invalid FEN en-passant square: {ep_part!r}")

    halfmove = _parse_counter(parts, 4, 0, 0)
    fullmove = _parse_counter(parts, 5, 1, 1)
    return Position(board, side, castling, ep, halfmove, fullmove)


def position_to_fen(pos: Position) -> str:
    """Serialise a :class:`Position` to FEN."""
    rows: list[str] = []
    for rank in range(7, -1, -1):
        empty = 0
        row = ""
        for file in range(8):
            piece = pos.board[make_square(file, rank)]
            if piece is None:
                empty += 1
                continue
            if empty:
                row += str(empty)
                empty = 0
            row += str(piece)
        if empty:
            row += str(empty)
        rows.append(row)

    side_str = "w" if pos.side_to_move == Color.WHITE else "b"
    castling_str = "".join(ch for ch, right in _CASTLING_LETTERS if pos.castling & right)
    ep_str = square_name(pos.en_passant) if pos.en_passant is not None else "-"

    return (
        f"{'/'.join(rows)} {side_str} {castling_str or '-'} {ep_str} "
        f"{pos.halfmove_clock} {pos.fullmove_number}"
    )
