"""Replay transcribed moves on a virtual board and judge each one."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from chessdecoder.core.enums import CastlingRights, Color, MoveFlag, PieceType
from chessdecoder.core.move import Move
from chessdecoder.core.move_generator import (
    MoveGenerator,
    can_reach_on_empty_board,
    squares_between,
)
from chessdecoder.core.notation.san import SanToken, matching_moves, move_to_san
from chessdecoder.core.piece import Piece
from chessdecoder.core.position import BoardState, Position
from chessdecoder.core.rules import Rules
from chessdecoder.core.types import FILES, RANKS, file_of, rank_of, square_name
from chessdecoder.transcription.tokens import ParsedMove, parse_moves
from chessdecoder.validation.models import ValidationEntry, ValidationReport, ValidationStatus

_LOGGER = logging.getLogger(__name__)


def _piece_label(color: Color, piece_type: PieceType) -> str:
    return f"{color.label.lower()} {piece_type.name.lower()}"


class MoveValidator:
    """Checks moves in playing order against an evolving position.

    A rejected move leaves the board untouched; the validator hands the
    turn to the other side and carries on, so every supplied move gets a
    verdict.
    """

    def __init__(self, start: Position | None = None) -> None:
        self._start = start.copy() if start is not None else Position()

    def validate(self, white_moves: Sequence[str], black_moves: Sequence[str]) -> ValidationReport:
        return self.validate_parsed(parse_moves(white_moves, black_moves))

    def validate_parsed(self, moves: Sequence[ParsedMove]) -> ValidationReport:
        position = self._start.copy()
        states: list[BoardState] = [position.snapshot()]
        entries: list[ValidationEntry] = []

        for parsed in moves:
            if position.side_to_move != parsed.color:
                position.pass_turn()
                if MoveGenerator(position).is_in_check(parsed.color.opposite):
                    _LOGGER.debug(
                        "Turn passed to %s with the %s king in check",
                        parsed.color,
                        parsed.color.opposite,
                    )
            entry = self._judge(position, parsed)
            entries.append(entry)
            states.append(position.snapshot() if entry.is_valid else states[-1])
            if not entry.is_valid:
                _LOGGER.debug(
                    "Move %d (%s) %r: %s - %s",
                    parsed.move_number,
                    parsed.color,
                    parsed.notation,
                    entry.status,
                    entry.message,
                )

        report = ValidationReport(tuple(entries), tuple(states), Rules.game_result(position))
        _LOGGER.info(
            "Validated %d moves, %d rejected", len(report.entries), report.invalid_count
        )
        return report

    # ── Per-move verdict ─────────────────────────────────────────────────

    def _judge(self, position: Position, parsed: ParsedMove) -> ValidationEntry:
        def verdict(status: ValidationStatus, message: str, normalized: str | None = None) -> ValidationEntry:
            return ValidationEntry(
                parsed.move_number,
                parsed.color,
                status,
                message,
                parsed.raw_token,
                normalized if normalized is not None else parsed.notation,
            )

        token = parsed.san
        if token is None:
            return verdict(
                ValidationStatus.INVALID_FORMAT,
                f"Invalid move syntax '{parsed.notation}'",
            )

        color = position.side_to_move
        if token.castle is None and token.piece_type == PieceType.PAWN:
            last_rank = 7 if color == Color.WHITE else 0
            assert token.to_sq is not None
            on_last = rank_of(token.to_sq) == last_rank
            if on_last and token.promotion is None:
                return verdict(
                    ValidationStatus.ILLEGAL_MOVE,
                    f"Promotion piece missing for pawn reaching {token.destination}",
                )
            if not on_last and token.promotion is not None:
                return verdict(
                    ValidationStatus.ILLEGAL_MOVE,
                    f"Promotion is only possible on the last rank, not {token.destination}",
                )

        candidates = matching_moves(position, token)
        # A passed turn can leave the opponent's king en prise.
        if candidates and _captures_king(position, candidates[0]):
            return verdict(
                ValidationStatus.ILLEGAL_MOVE,
                f"Cannot capture the king on {square_name(candidates[0].to_sq)}",
            )
        if not candidates:
            return verdict(ValidationStatus.ILLEGAL_MOVE, _explain_illegal(position, token))
        if len(candidates) > 1:
            origins = ", ".join(sorted(square_name(m.from_sq) for m in candidates))
            return verdict(
                ValidationStatus.AMBIGUOUS,
                f"Ambiguous move '{parsed.notation}': candidates from {origins}",
            )

        move = candidates[0]
        if token.capture and not _is_capture(position, move):
            return verdict(
                ValidationStatus.ILLEGAL_MOVE,
                f"Capture marked but {square_name(move.to_sq)} is empty",
            )

        san = move_to_san(position, move)
        position.make_move(move)
        message = _suffix_note(token.suffix, san)
        return verdict(ValidationStatus.VALID, message, san)


def _captures_king(position: Position, move: Move) -> bool:
    target = position.board[move.to_sq]
    return target is not None and target.piece_type == PieceType.KING


def _is_capture(position: Position, move: Move) -> bool:
    return position.board[move.to_sq] is not None or move.flag == MoveFlag.EN_PASSANT


def _suffix_note(written: str, san: str) -> str:
    actual = san[-1] if san[-1] in "+#" else ""
    if written == actual:
        return ""
    if not written:
        return f"Move gives {'mate' if actual == '#' else 'check'} but is written without '{actual}'"
    if not actual:
        return f"Marked '{written}' but the move gives no check"
    return f"Marked '{written}' but the move gives {'mate' if actual == '#' else 'check only'}"


def _explain_illegal(position: Position, token: SanToken) -> str:
    """First reason why no legal move matches *token*."""
    color = position.side_to_move
    if token.castle is not None:
        return _explain_castle(position, token.castle, color)

    board = position.board
    assert token.to_sq is not None
    dest = square_name(token.to_sq)
    label = _piece_label(color, token.piece_type)

    origins = [
        sq
        for sq in board.pieces(color, token.piece_type)
        if (token.from_file is None or file_of(sq) == token.from_file)
        and (token.from_rank is None or rank_of(sq) == token.from_rank)
    ]
    if not origins:
        hint = ""
        if token.from_file is not None or token.from_rank is not None:
            hint = " on " + (FILES[token.from_file] if token.from_file is not None else "") + (
                RANKS[token.from_rank] if token.from_rank is not None else ""
            )
        return f"No {label}{hint} on the board"

    target = board[token.to_sq]
    if target is not None and target.color == color:
        return f"{dest} is occupied by a {color.label.lower()} piece"

    reachers = [
        sq for sq in origins if can_reach_on_empty_board(token.piece_type, color, sq, token.to_sq)
    ]
    if token.piece_type == PieceType.PAWN:
        reachers = [sq for sq in reachers if _pawn_shape_ok(position, sq, token.to_sq)]
    if not reachers:
        return f"No {label} can reach {dest}"

    if token.piece_type in (PieceType.BISHOP, PieceType.ROOK, PieceType.QUEEN, PieceType.PAWN):
        blocked = []
        for sq in reachers:
            between = squares_between(sq, token.to_sq) or ()
            if any(board[s] is not None for s in between):
                blocked.append(sq)
            elif token.piece_type == PieceType.PAWN and file_of(sq) == file_of(token.to_sq) and target is not None:
                blocked.append(sq)
        if len(blocked) == len(reachers):
            return f"Path from {square_name(blocked[0])} to {dest} is blocked"

    pseudo = matching_moves(position, token, MoveGenerator(position).generate_pseudo_legal_moves())
    if pseudo:
        return "Move would leave the king in check"
    return f"No legal {label} move to {dest}"


def _pawn_shape_ok(position: Position, from_sq: int, to_sq: int) -> bool:
    """Diagonal pawn steps need something to capture."""
    if file_of(from_sq) == file_of(to_sq):
        return True
    return position.board[to_sq] is not None or to_sq == position.en_passant


def _explain_castle(position: Position, flag: MoveFlag, color: Color) -> str:
    kingside = flag == MoveFlag.CASTLE_KINGSIDE
    side = "kingside" if kingside else "queenside"
    right = CastlingRights.kingside(color) if kingside else CastlingRights.queenside(color)
    if not position.castling & right:
        return f"{color.label} has lost the right to castle {side}"

    offset = 0 if color == Color.WHITE else 56
    board = position.board
    king_sq = offset + 4
    rook_sq = offset + (7 if kingside else 0)
    if board[king_sq] != Piece(color, PieceType.KING) or board[rook_sq] != Piece(color, PieceType.ROOK):
        return f"King or rook is not on its home square for castling {side}"

    path = (offset + 5, offset + 6) if kingside else (offset + 1, offset + 2, offset + 3)
    if any(board[sq] is not None for sq in path):
        return f"Castling {side} path is occupied"

    gen = MoveGenerator(position)
    if gen.is_in_check(color):
        return "Cannot castle while in check"
    return "King would pass through or land on an attacked square"


def validate_moves(white_moves: Sequence[str], black_moves: Sequence[str]) -> ValidationReport:
    """Validate two move lists from the standard starting position."""
    return MoveValidator().validate(white_moves, black_moves)
