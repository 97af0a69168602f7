"""Tests for the command-line entry point."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from chessdecoder.app import EXIT_GATEWAY, EXIT_INVALID_IMAGE, EXIT_OK, main
from chessdecoder.vision.image import load_image


@pytest.fixture(autouse=True)
def _isolated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("CHESSDECODER_EXPECTED_COLUMNS", raising=False)
    monkeypatch.delenv("CHESSDECODER_LANGUAGE", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def sheet_path(tmp_path: Path, handwritten_sheet: Callable[..., bytes]) -> Path:
    path = tmp_path / "sheet.png"
    path.write_bytes(handwritten_sheet())
    return path


class TestValidateCommand:
    def test_prints_pgn(self, capsys: pytest.CaptureFixture[str]) -> None:
        code = main(["validate", "--white", "e4", "Nf3", "--black", "e5"])
        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "1. e4 e5 2. Nf3 *" in out
        assert '[Result "*"]' in out

    def test_reports_rejected_moves(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["validate", "--white", "Bc4"])
        out = capsys.readouterr().out
        assert "1. Bc4: IllegalMove Path from f1 to c4 is blocked" in out

    def test_json_output_with_language(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["validate", "--white", "e4", "Sf3", "--black", "e5", "--language", "German", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["validation"]["isValid"] is True
        assert data["validation"]["moves"][1]["whiteMove"]["notation"] == "Nf3"
        assert data["diagnostics"] == []

    def test_reads_moves_from_pgn_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        game = tmp_path / "game.pgn"
        game.write_text(
            '[Event "Club"]\n\n1. e4 e5 2. Qh5 Nc6 3. Bc4 Nf6 4. Qxf7# 1-0\n', encoding="utf-8"
        )
        code = main(["validate", "--pgn", str(game)])
        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert '[Result "1-0"]' in out
        assert "4. Qxf7# 1-0" in out


class TestImageCommands:
    def test_boundaries(self, sheet_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["boundaries", str(sheet_path)]) == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["imageWidth"] == 700
        assert len(data["columnBoundaries"]) == 7

    def test_corners(self, sheet_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["corners", str(sheet_path)]) == EXIT_OK
        assert json.loads(capsys.readouterr().out)["found"] is True

    def test_crop(self, sheet_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "crop.png"
        assert main(["crop", str(sheet_path), "50", "20", "100", "50", "-o", str(out)]) == EXIT_OK
        assert load_image(out).size == (100, 50)

    def test_overlay(self, sheet_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "overlay.png"
        assert main(["overlay", str(sheet_path), "-o", str(out), "--columns", "6"]) == EXIT_OK
        assert load_image(out).size == (700, 400)


class TestExitCodes:
    def test_unreadable_image(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"not an image")
        assert main(["boundaries", str(bad)]) == EXIT_INVALID_IMAGE

    def test_missing_api_key(self, sheet_path: Path) -> None:
        assert main(["decode", str(sheet_path)]) == EXIT_GATEWAY

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == EXIT_OK
        assert "usage: chessdecoder" in capsys.readouterr().out
