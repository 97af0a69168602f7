"""Position: complete game state (board + metadata) with make/unmake.

:class:`Position` is the mutable working object used while generating and
testing moves. :class:`BoardState` is the frozen snapshot recorded after each
replayed move.
"""

from __future__ import annotations

from dataclasses import dataclass

from chessdecoder.core.board import Board, Placement, render_placement
from chessdecoder.core.enums import CastlingRights, Color, MoveFlag, PieceType
from chessdecoder.core.move import Move
from chessdecoder.core.piece import Piece
from chessdecoder.core.types import Square, file_of, make_square, parse_square, rank_of


@dataclass(frozen=True, slots=True)
class BoardState:
    """Immutable snapshot of a position between two moves."""

    placement: Placement
    side_to_move: Color
    castling: CastlingRights
    en_passant: Square | None
    halfmove_clock: int = 0
    fullmove_number: int = 1

    def piece_at(self, square: str) -> Piece | None:
        """Piece on a named square, e.g. ``state.piece_at("e4")``."""
        return self.placement[parse_square(square)]

    @property
    def fen(self) -> str:
        from chessdecoder.core.notation.fen import position_to_fen

        return position_to_fen(Position.from_state(self))

    def same_placement(self, other: BoardState) -> bool:
        return self.placement == other.placement

    def __str__(self) -> str:
        return render_placement(self.placement)


@dataclass(slots=True)
class _UndoState:
    """Saved before each move so it can be undone."""

    castling: CastlingRights
    en_passant: Square | None
    halfmove_clock: int
    captured_piece: Piece | None


class Position:
    """Full chess position: board + side to move + castling + en passant + clocks.

    Supports :meth:`make_move` / :meth:`unmake_move` via an internal
    history stack.
    """

    __slots__ = (
        "board",
        "side_to_move",
        "castling",
        "en_passant",
        "halfmove_clock",
        "fullmove_number",
        "_history",
    )

    def __init__(
        self,
        board: Board | None = None,
        side_to_move: Color = Color.WHITE,
        castling: CastlingRights = CastlingRights.ALL,
        en_passant: Square | None = None,
        halfmove_clock: int = 0,
        fullmove_number: int = 1,
    ) -> None:
        self.board = board if board is not None else Board.initial()
        self.side_to_move = side_to_move
        self.castling = castling
        self.en_passant = en_passant
        self.halfmove_clock = halfmove_clock
        self.fullmove_number = fullmove_number
        self._history: list[_UndoState] = []

    # ── Snapshots ────────────────────────────────────────────────────────

    def snapshot(self) -> BoardState:
        return BoardState(
            placement=self.board.placement(),
            side_to_move=self.side_to_move,
            castling=self.castling,
            en_passant=self.en_passant,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
        )

    @classmethod
    def from_state(cls, state: BoardState) -> Position:
        return cls(
            board=Board(state.placement),
            side_to_move=state.side_to_move,
            castling=state.castling,
            en_passant=state.en_passant,
            halfmove_clock=state.halfmove_clock,
            fullmove_number=state.fullmove_number,
        )

    # ── Core move operations ─────────────────────────────────────────────

    def make_move(self, move: Move) -> None:
        """Apply *move*, pushing undo state onto the history stack."""
        piece = self.board[move.from_sq]
        if piece is None:
            raise ValueError(f"No piece on {move.from_sq}")

        captured = self.board[move.to_sq]
        capture_sq = move.to_sq
        if move.flag == MoveFlag.EN_PASSANT:
            capture_sq = make_square(file_of(move.to_sq), rank_of(move.from_sq))
            captured = self.board[capture_sq]

        self._history.append(
            _UndoState(
                castling=self.castling,
                en_passant=self.en_passant,
                halfmove_clock=self.halfmove_clock,
                captured_piece=captured,
            )
        )

        self.board[move.from_sq] = None
        if captured is not None:
            self.board[capture_sq] = None

        placed = piece
        if move.flag == MoveFlag.PROMOTION and move.promotion is not None:
            placed = Piece(piece.color, move.promotion)
        self.board[move.to_sq] = placed

        if move.is_castle:
            rook_from, rook_to = _rook_slide(move)
            self.board[rook_to] = self.board[rook_from]
            self.board[rook_from] = None

        self.en_passant = None
        if move.flag == MoveFlag.DOUBLE_PAWN:
            self.en_passant = make_square(
                file_of(move.from_sq),
                (rank_of(move.from_sq) + rank_of(move.to_sq)) // 2,
            )

        self._update_castling(move, piece)

        if piece.piece_type == PieceType.PAWN or captured is not None:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1

        if self.side_to_move == Color.BLACK:
            self.fullmove_number += 1
        self.side_to_move = self.side_to_move.opposite

    def unmake_move(self, move: Move) -> None:
        """Undo the last :meth:`make_move`."""
        state = self._history.pop()

        self.side_to_move = self.side_to_move.opposite
        if self.side_to_move == Color.BLACK:
            self.fullmove_number -= 1

        piece = self.board[move.to_sq]
        assert piece is not None
        if move.flag == MoveFlag.PROMOTION:
            piece = Piece(piece.color, PieceType.PAWN)

        self.board[move.from_sq] = piece
        if move.flag == MoveFlag.EN_PASSANT:
            self.board[move.to_sq] = None
            ep_capture_sq = make_square(file_of(move.to_sq), rank_of(move.from_sq))
            self.board[ep_capture_sq] = state.captured_piece
        else:
            self.board[move.to_sq] = state.captured_piece

        if move.is_castle:
            rook_from, rook_to = _rook_slide(move)
            self.board[rook_from] = self.board[rook_to]
            self.board[rook_to] = None

        self.castling = state.castling
        self.en_passant = state.en_passant
        self.halfmove_clock = state.halfmove_clock

    def pass_turn(self) -> None:
        """Hand the move to the other side without touching the board.

        Used when a transcribed move could not be applied, so the opponent's
        next move can still be checked against the unchanged placement.
        """
        self.en_passant = None
        if self.side_to_move == Color.BLACK:
            self.fullmove_number += 1
        self.side_to_move = self.side_to_move.opposite

    # ── Castling bookkeeping ─────────────────────────────────────────────

    _ROOK_CORNERS: dict[Square, CastlingRights] = {
        make_square(0, 0): CastlingRights.WHITE_QUEENSIDE,
        make_square(7, 0): CastlingRights.WHITE_KINGSIDE,
        make_square(0, 7): CastlingRights.BLACK_QUEENSIDE,
        make_square(7, 7): CastlingRights.BLACK_KINGSIDE,
    }

    def _update_castling(self, move: Move, piece: Piece) -> None:
        if piece.piece_type == PieceType.KING:
            if piece.color == Color.WHITE:
                self.castling &= ~CastlingRights.WHITE_BOTH
            else:
                self.castling &= ~CastlingRights.BLACK_BOTH

        for sq in (move.from_sq, move.to_sq):
            if sq in self._ROOK_CORNERS:
                self.castling &= ~self._ROOK_CORNERS[sq]

    # ── Utilities ────────────────────────────────────────────────────────

    def copy(self) -> Position:
        """Deep copy without history."""
        return Position(
            board=self.board.copy(),
            side_to_move=self.side_to_move,
            castling=self.castling,
            en_passant=self.en_passant,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
        )


def _rook_slide(move: Move) -> tuple[Square, Square]:
    r = rank_of(move.from_sq)
    if move.flag == MoveFlag.CASTLE_KINGSIDE:
        return make_square(7, r), make_square(5, r)
    return make_square(0, r), make_square(3, r)
