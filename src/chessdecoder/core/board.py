"""Board - piece placement on an 8x8 board."""

from __future__ import annotations

from chessdecoder.core.enums import Color, PieceType
from chessdecoder.core.piece import Piece
from chessdecoder.core.types import Square, make_square

Placement = tuple[Piece | None, ...]

_BACK_RANK: tuple[PieceType, ...] = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)


class Board:
    """Mutable 64-square board with a cached king location per color."""

    __slots__ = ("_squares", "_king_squares")

    def __init__(self, placement: Placement | None = None) -> None:
        self._squares: list[Piece | None] = [None] * 64
        self._king_squares: list[Square | None] = [None, None]
        if placement is not None:
            if len(placement) != 64:
                raise ValueError("Board placement must have 64 squares")
            for sq, piece in enumerate(placement):
                if piece is not None:
                    self[sq] = piece

    # -- Element access -----------------------------------------------------

    def __getitem__(self, sq: Square) -> Piece | None:
        return self._squares[sq]

    def __setitem__(self, sq: Square, piece: Piece | None) -> None:
        old_piece = self._squares[sq]
        if (
            old_piece is not None
            and old_piece.piece_type == PieceType.KING
            and self._king_squares[int(old_piece.color)] == sq
        ):
            self._king_squares[int(old_piece.color)] = None

        self._squares[sq] = piece
        if piece is not None and piece.piece_type == PieceType.KING:
            self._king_squares[int(piece.color)] = sq

    def is_empty(self, sq: Square) -> bool:
        return self._squares[sq] is None

    # -- Query helpers ------------------------------------------------------

    def pieces(self, color: Color, piece_type: PieceType) -> list[Square]:
        """Squares occupied by *color*'s *piece_type*, in ascending order."""
        target = Piece(color, piece_type)
        return [sq for sq, piece in enumerate(self._squares) if piece == target]

    def has_piece(self, color: Color, piece_type: PieceType) -> bool:
        target = Piece(color, piece_type)
        return target in self._squares

    def all_pieces(self, color: Color) -> list[Square]:
        """All squares occupied by *color*."""
        return [
            sq
            for sq, piece in enumerate(self._squares)
            if piece is not None and piece.color == color
        ]

    def king_square(self, color: Color) -> Square:
        """Return the single king square for *color*."""
        sq = self._king_squares[int(color)]
        if sq is None:
            raise ValueError(f"No {color.name} king on board")
        return sq

    def placement(self) -> Placement:
        """Immutable copy of the 64 squares."""
        return tuple(self._squares)

    # -- Mutation / copying -------------------------------------------------

    def copy(self) -> Board:
        b = Board()
        b._squares = self._squares.copy()
        b._king_squares = self._king_squares.copy()
        return b

    def clear(self) -> None:
        self._squares = [None] * 64
        self._king_squares = [None, None]

    # -- Factory ------------------------------------------------------------

    @classmethod
    def initial(cls) -> Board:
        """Standard starting position."""
        b = cls()
        for f, pt in enumerate(_BACK_RANK):
            b[make_square(f, 0)] = Piece(Color.WHITE, pt)
            b[make_square(f, 1)] = Piece(Color.WHITE, PieceType.PAWN)
            b[make_square(f, 6)] = Piece(Color.BLACK, PieceType.PAWN)
            b[make_square(f, 7)] = Piece(Color.BLACK, pt)
        return b

    # -- Dunder helpers -----------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._squares == other._squares

    def __repr__(self) -> str:
        return render_placement(self.placement())


def render_placement(placement: Placement) -> str:
    """ASCII diagram, rank 8 on top."""
    rows: list[str] = []
    for rank in range(7, -1, -1):
        row = []
        for file in range(8):
            p = placement[make_square(file, rank)]
            row.append(str(p) if p else ".")
        rows.append(f"{rank + 1} {' '.join(row)}")
    rows.append("  a b c d e f g h")
    return "\n".join(rows)
