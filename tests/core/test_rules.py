"""Tests for Rules: check, checkmate, stalemate."""

from chessdecoder.core.enums import GameResult
from chessdecoder.core.notation import STARTING_FEN, position_from_fen
from chessdecoder.core.rules import Rules

FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"


class TestCheck:
    def test_start_is_quiet(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert not Rules.is_in_check(pos)
        assert Rules.game_result(pos) == GameResult.IN_PROGRESS

    def test_escapable_check(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/r3K3 w - - 0 1")
        assert Rules.is_in_check(pos)
        assert not Rules.is_checkmate(pos)
        assert Rules.game_result(pos) == GameResult.IN_PROGRESS


class TestTerminal:
    def test_fools_mate(self) -> None:
        pos = position_from_fen(FOOLS_MATE)
        assert Rules.is_checkmate(pos)
        assert Rules.game_result(pos) == GameResult.BLACK_WINS

    def test_back_rank_mate(self) -> None:
        pos = position_from_fen("R2k4/8/3K4/8/8/8/8/8 b - - 0 1")
        assert Rules.is_checkmate(pos)
        assert Rules.game_result(pos) == GameResult.WHITE_WINS

    def test_stalemate_is_draw(self) -> None:
        pos = position_from_fen("7k/8/5KQ1/8/8/8/8/8 b - - 0 1")
        assert Rules.is_stalemate(pos)
        assert not Rules.is_checkmate(pos)
        assert Rules.game_result(pos) == GameResult.DRAW

    def test_bare_kings_not_terminal(self) -> None:
        pos = position_from_fen("8/8/4k3/8/8/4K3/8/8 w - - 0 1")
        assert not Rules.is_stalemate(pos)
        assert Rules.game_result(pos) == GameResult.IN_PROGRESS
