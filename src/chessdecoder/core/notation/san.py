"""SAN (Standard Algebraic Notation) grammar, conversion and parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass

from chessdecoder.core.enums import MoveFlag, PieceType
from chessdecoder.core.move import Move
from chessdecoder.core.move_generator import MoveGenerator
from chessdecoder.core.piece import SAN_LETTERS, SAN_TYPES
from chessdecoder.core.position import Position
from chessdecoder.core.types import FILES, RANKS, Square, file_of, parse_square, rank_of, square_name

SAN_PATTERN = re.compile(
    r"^(?:(?P<castle>O-O(?:-O)?)"
    r"|(?P<piece>[KQRBN])?(?P<file>[a-h])?(?P<rank>[1-8])?(?P<capture>x)?"
    r"(?P<dest>[a-h][1-8])(?:=(?P<promo>[QRBN]))?)"
    r"(?P<suffix>[+#])?$"
)


@dataclass(frozen=True, slots=True)
class SanToken:
    """Structured fields of a syntactically valid SAN move."""

    piece_type: PieceType
    to_sq: Square | None
    from_file: int | None = None
    from_rank: int | None = None
    capture: bool = False
    promotion: PieceType | None = None
    castle: MoveFlag | None = None
    suffix: str = ""

    @property
    def destination(self) -> str | None:
        return square_name(self.to_sq) if self.to_sq is not None else None


def parse_san_token(text: str) -> SanToken | None:
    """Match *text* against the SAN grammar; ``None`` when it does not parse."""
    match = SAN_PATTERN.match(text)
    if match is None:
        return None

    suffix = match["suffix"] or ""
    if match["castle"]:
        flag = MoveFlag.CASTLE_QUEENSIDE if match["castle"] == "O-O-O" else MoveFlag.CASTLE_KINGSIDE
        return SanToken(PieceType.KING, None, castle=flag, suffix=suffix)

    piece_type = SAN_TYPES[match["piece"]] if match["piece"] else PieceType.PAWN
    promotion = SAN_TYPES[match["promo"]] if match["promo"] else None
    if promotion is not None and piece_type != PieceType.PAWN:
        return None
    if piece_type == PieceType.PAWN and match["capture"] and not match["file"]:
        return None

    return SanToken(
        piece_type=piece_type,
        to_sq=parse_square(match["dest"]),
        from_file=FILES.index(match["file"]) if match["file"] else None,
        from_rank=RANKS.index(match["rank"]) if match["rank"] else None,
        capture=bool(match["capture"]),
        promotion=promotion,
        suffix=suffix,
    )


def matching_moves(
    position: Position, token: SanToken, moves: list[Move] | None = None
) -> list[Move]:
    """Moves from *moves* (default: all legal moves) consistent with *token*.

    Promotion pieces are matched only when the token names one, so a pawn
    reaching the last rank without ``=X`` yields one candidate per piece.
    """
    if moves is None:
        moves = MoveGenerator(position).generate_legal_moves()

    if token.castle is not None:
        return [m for m in moves if m.flag == token.castle]

    board = position.board
    candidates: list[Move] = []
    for m in moves:
        p = board[m.from_sq]
        if p is None or p.piece_type != token.piece_type or m.is_castle:
            continue
        if m.to_sq != token.to_sq:
            continue
        if token.promotion is not None and m.promotion != token.promotion:
            continue
        if token.from_file is not None and file_of(m.from_sq) != token.from_file:
            continue
        if token.from_rank is not None and rank_of(m.from_sq) != token.from_rank:
            continue
        candidates.append(m)
    return candidates


def move_to_san(position: Position, move: Move) -> str:
    """Convert a legal *move* to SAN given the *position* before the move."""
    board = position.board
    piece = board[move.from_sq]
    assert piece is not None

    if move.flag == MoveFlag.CASTLE_KINGSIDE:
        san = "O-O"
    elif move.flag == MoveFlag.CASTLE_QUEENSIDE:
        san = "O-O-O"
    else:
        san = ""
        is_capture = board[move.to_sq] is not None or move.flag == MoveFlag.EN_PASSANT

        if piece.piece_type == PieceType.PAWN:
            if is_capture:
                san += FILES[file_of(move.from_sq)]
        else:
            san += SAN_LETTERS[piece.piece_type]
            rivals = [
                m.from_sq
                for m in MoveGenerator(position).generate_legal_moves()
                if m.to_sq == move.to_sq
                and m.from_sq != move.from_sq
                and board[m.from_sq] == piece
            ]
            if rivals:
                if all(file_of(sq) != file_of(move.from_sq) for sq in rivals):
                    san += FILES[file_of(move.from_sq)]
                elif all(rank_of(sq) != rank_of(move.from_sq) for sq in rivals):
                    san += RANKS[rank_of(move.from_sq)]
                else:
                    san += square_name(move.from_sq)

        if is_capture:
            san += "x"
        san += square_name(move.to_sq)

        if move.flag == MoveFlag.PROMOTION and move.promotion is not None:
            san += "=" + SAN_LETTERS[move.promotion]

    position.make_move(move)
    gen_after = MoveGenerator(position)
    if gen_after.is_in_check(position.side_to_move):
        san += "#" if not gen_after.generate_legal_moves() else "+"
    position.unmake_move(move)

    return san


def parse_san(position: Position, san: str) -> Move:
    """Parse a SAN string into a :class:`Move` given the current *position*."""
    token = parse_san_token(san.rstrip("!?"))
    if token is None:
        raise ValueError(f"Invalid move syntax: {san}")

    candidates = matching_moves(position, token)
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        raise ValueError(f"Illegal move: {san}")
    raise ValueError(f"Ambiguous move: {san} → {candidates}")
