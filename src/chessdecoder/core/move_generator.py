"""Legal and pseudo-legal move generation + attack detection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from chessdecoder.core.enums import CastlingRights, Color, MoveFlag, PieceType
from chessdecoder.core.move import Move
from chessdecoder.core.piece import Piece
from chessdecoder.core.types import Square, file_of, is_on_board, make_square, rank_of

if TYPE_CHECKING:
    from chessdecoder.core.position import Position


KNIGHT_OFFSETS: tuple[tuple[int, int], ...] = (
    (-2, -1),
    (-2, 1),
    (-1, -2),
    (-1, 2),
    (1, -2),
    (1, 2),
    (2, -1),
    (2, 1),
)

KING_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
)

BISHOP_DIRS: tuple[tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ROOK_DIRS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
QUEEN_DIRS: tuple[tuple[int, int], ...] = BISHOP_DIRS + ROOK_DIRS

_PROMOTION_TYPES: tuple[PieceType, ...] = (
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
)


# -- Precomputed lookup tables ---------------------------------------------


def _build_targets(
    offsets: tuple[tuple[int, int], ...],
) -> tuple[tuple[Square, ...], ...]:
    targets: list[tuple[Square, ...]] = []
    for sq in range(64):
        f, r = file_of(sq), rank_of(sq)
        targets.append(
            tuple(
                make_square(f + df, r + dr)
                for df, dr in offsets
                if is_on_board(f + df, r + dr)
            )
        )
    return tuple(targets)


def _build_rays(
    directions: tuple[tuple[int, int], ...],
) -> tuple[tuple[tuple[Square, ...], ...], ...]:
    rays_per_square: list[tuple[tuple[Square, ...], ...]] = []
    for sq in range(64):
        square_rays: list[tuple[Square, ...]] = []
        for df, dr in directions:
            af, ar = file_of(sq) + df, rank_of(sq) + dr
            ray: list[Square] = []
            while is_on_board(af, ar):
                ray.append(make_square(af, ar))
                af += df
                ar += dr
            square_rays.append(tuple(ray))
        rays_per_square.append(tuple(square_rays))
    return tuple(rays_per_square)


_KNIGHT_TARGETS = _build_targets(KNIGHT_OFFSETS)
_KING_TARGETS = _build_targets(KING_OFFSETS)
_BISHOP_RAYS = _build_rays(BISHOP_DIRS)
_ROOK_RAYS = _build_rays(ROOK_DIRS)
_QUEEN_RAYS = _build_rays(QUEEN_DIRS)

_SLIDER_RAYS: dict[PieceType, tuple[tuple[tuple[Square, ...], ...], ...]] = {
    PieceType.BISHOP: _BISHOP_RAYS,
    PieceType.ROOK: _ROOK_RAYS,
    PieceType.QUEEN: _QUEEN_RAYS,
}


def squares_between(a: Square, b: Square) -> tuple[Square, ...] | None:
    """Squares strictly between *a* and *b* on a shared line or diagonal.

    Returns ``None`` when the two squares are not aligned.
    """
    df = file_of(b) - file_of(a)
    dr = rank_of(b) - rank_of(a)
    if (df, dr) == (0, 0):
        return None
    if df != 0 and dr != 0 and abs(df) != abs(dr):
        return None
    step_f = (df > 0) - (df < 0)
    step_r = (dr > 0) - (dr < 0)
    steps = max(abs(df), abs(dr))
    return tuple(
        make_square(file_of(a) + step_f * i, rank_of(a) + step_r * i)
        for i in range(1, steps)
    )


def can_reach_on_empty_board(
    piece_type: PieceType, color: Color, from_sq: Square, to_sq: Square
) -> bool:
    """Whether *piece_type* could travel *from_sq* → *to_sq* ignoring blockers.

    Pawns are checked for pushes and diagonal captures in *color*'s direction.
    """
    if from_sq == to_sq:
        return False
    if piece_type == PieceType.KNIGHT:
        return to_sq in _KNIGHT_TARGETS[from_sq]
    if piece_type == PieceType.KING:
        return to_sq in _KING_TARGETS[from_sq]
    if piece_type == PieceType.PAWN:
        forward = 1 if color == Color.WHITE else -1
        df = file_of(to_sq) - file_of(from_sq)
        dr = rank_of(to_sq) - rank_of(from_sq)
        start_rank = 1 if color == Color.WHITE else 6
        if df == 0:
            return dr == forward or (dr == 2 * forward and rank_of(from_sq) == start_rank)
        return abs(df) == 1 and dr == forward
    rays = _SLIDER_RAYS[piece_type][from_sq]
    return any(to_sq in ray for ray in rays)


class MoveGenerator:
    """Generates legal moves for a given :class:`Position`.

    The generator mutates the position via ``make_move`` / ``unmake_move``
    internally but always restores it before returning.
    """

    __slots__ = ("_pos", "_board")

    def __init__(self, position: Position) -> None:
        self._pos = position
        self._board = position.board

    # -- Public API ---------------------------------------------------------

    def generate_legal_moves(self) -> list[Move]:
        """All strictly legal moves for the side to move."""
        moving_color = self._pos.side_to_move
        return [
            move
            for move in self.generate_pseudo_legal_moves()
            if not self.leaves_king_in_check(move, moving_color)
        ]

    def generate_pseudo_legal_moves(self) -> list[Move]:
        """All pseudo-legal moves (may leave own king in check)."""
        moves: list[Move] = []
        color = self._pos.side_to_move
        for sq in self._board.all_pieces(color):
            piece = self._board[sq]
            assert piece is not None
            if piece.piece_type == PieceType.PAWN:
                self._gen_pawn(sq, color, moves)
            elif piece.piece_type == PieceType.KNIGHT:
                self._gen_stepper(sq, color, _KNIGHT_TARGETS[sq], moves)
            elif piece.piece_type == PieceType.KING:
                self._gen_stepper(sq, color, _KING_TARGETS[sq], moves)
                self._gen_castling(sq, color, moves)
            else:
                self._gen_sliding(sq, color, _SLIDER_RAYS[piece.piece_type][sq], moves)
        return moves

    def leaves_king_in_check(self, move: Move, color: Color) -> bool:
        """Whether playing *move* would leave *color*'s king attacked."""
        self._pos.make_move(move)
        try:
            return self.is_in_check(color)
        finally:
            self._pos.unmake_move(move)

    # -- Attack detection (public) -----------------------------------------

    def is_in_check(self, color: Color) -> bool:
        """Is *color*'s king attacked by the opponent?"""
        king_sq = self._board.king_square(color)
        return self.is_square_attacked(king_sq, color.opposite)

    def is_square_attacked(self, sq: Square, by_color: Color) -> bool:
        """Is *sq* attacked by any piece of *by_color*?"""
        board = self._board

        # A pawn attacking sq stands one rank behind it, from by_color's view.
        pawn_rank = rank_of(sq) - (1 if by_color == Color.WHITE else -1)
        for df in (-1, 1):
            pf = file_of(sq) + df
            if is_on_board(pf, pawn_rank):
                if board[make_square(pf, pawn_rank)] == Piece(by_color, PieceType.PAWN):
                    return True

        knight = Piece(by_color, PieceType.KNIGHT)
        if any(board[t] == knight for t in _KNIGHT_TARGETS[sq]):
            return True

        king = Piece(by_color, PieceType.KING)
        if any(board[t] == king for t in _KING_TARGETS[sq]):
            return True

        for rays, attackers in (
            (_BISHOP_RAYS[sq], (PieceType.BISHOP, PieceType.QUEEN)),
            (_ROOK_RAYS[sq], (PieceType.ROOK, PieceType.QUEEN)),
        ):
            for ray in rays:
                for to_sq in ray:
                    piece = board[to_sq]
                    if piece is None:
                        continue
                    if piece.color == by_color and piece.piece_type in attackers:
                        return True
                    break

        return False

    # -- Piece-specific generators (private) -------------------------------

    def _gen_pawn(self, sq: Square, color: Color, moves: list[Move]) -> None:
        board = self._board
        forward = 8 if color == Color.WHITE else -8
        start_rank = 1 if color == Color.WHITE else 6
        last_rank = 7 if color == Color.WHITE else 0
        file_idx = file_of(sq)

        def add(to_sq: Square, flag: MoveFlag = MoveFlag.NORMAL) -> None:
            if rank_of(to_sq) == last_rank:
                for pt in _PROMOTION_TYPES:
                    moves.append(Move(sq, to_sq, MoveFlag.PROMOTION, pt))
            else:
                moves.append(Move(sq, to_sq, flag))

        one_step = sq + forward
        if 0 <= one_step < 64 and board.is_empty(one_step):
            add(one_step)
            two_step = one_step + forward
            if rank_of(sq) == start_rank and board.is_empty(two_step):
                moves.append(Move(sq, two_step, MoveFlag.DOUBLE_PAWN))

        for df in (-1, 1):
            if not is_on_board(file_idx + df, rank_of(sq) + (1 if forward > 0 else -1)):
                continue
            cap_sq = one_step + df
            target = board[cap_sq]
            if target is not None and target.color != color:
                add(cap_sq)
            elif cap_sq == self._pos.en_passant:
                moves.append(Move(sq, cap_sq, MoveFlag.EN_PASSANT))

    def _gen_stepper(
        self,
        sq: Square,
        color: Color,
        targets: tuple[Square, ...],
        moves: list[Move],
    ) -> None:
        board = self._board
        for to_sq in targets:
            target = board[to_sq]
            if target is None or target.color != color:
                moves.append(Move(sq, to_sq))

    def _gen_sliding(
        self,
        sq: Square,
        color: Color,
        rays: tuple[tuple[Square, ...], ...],
        moves: list[Move],
    ) -> None:
        board = self._board
        for ray in rays:
            for to_sq in ray:
                target = board[to_sq]
                if target is None:
                    moves.append(Move(sq, to_sq))
                    continue
                if target.color != color:
                    moves.append(Move(sq, to_sq))
                break

    def _gen_castling(self, king_sq: Square, color: Color, moves: list[Move]) -> None:
        offset = 0 if color == Color.WHITE else 56
        if king_sq != offset + 4:
            return
        if self.is_in_check(color):
            return

        board = self._board
        opponent = color.opposite
        rook = Piece(color, PieceType.ROOK)

        if self._pos.castling & CastlingRights.kingside(color):
            f_sq, g_sq, h_sq = offset + 5, offset + 6, offset + 7
            if (
                board[h_sq] == rook
                and board.is_empty(f_sq)
                and board.is_empty(g_sq)
                and not self.is_square_attacked(f_sq, opponent)
                and not self.is_square_attacked(g_sq, opponent)
            ):
                moves.append(Move(king_sq, g_sq, MoveFlag.CASTLE_KINGSIDE))

        if self._pos.castling & CastlingRights.queenside(color):
            a_sq, b_sq, c_sq, d_sq = offset, offset + 1, offset + 2, offset + 3
            if (
                board[a_sq] == rook
                and board.is_empty(b_sq)
                and board.is_empty(c_sq)
                and board.is_empty(d_sq)
                and not self.is_square_attacked(c_sq, opponent)
                and not self.is_square_attacked(d_sq, opponent)
            ):
                moves.append(Move(king_sq, c_sq, MoveFlag.CASTLE_QUEENSIDE))
