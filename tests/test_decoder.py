"""End-to-end tests for the decode pipeline with stubbed OCR gateways."""

from __future__ import annotations

import threading
from collections.abc import Callable

import numpy as np
import pytest

from conftest import SHEET_SEPARATORS
from chessdecoder.config import DecoderSettings
from chessdecoder.core.enums import Color
from chessdecoder.decoder import ScoresheetDecoder, assemble_record, decode
from chessdecoder.errors import DiagnosticFlag, GatewayUnavailable, InvalidImage
from chessdecoder.validation.models import ValidationStatus
from chessdecoder.vision.image import Rectangle, load_image


class _StubGateway:
    def __init__(self, texts: list[str] | None = None, default: str = "[]") -> None:
        self._texts = list(texts or [])
        self._default = default
        self._lock = threading.Lock()
        self.calls: list[tuple[bytes, str, str | None]] = []

    def recognize(self, image: bytes, language: str = "English", *, prompt: str | None = None) -> str:
        with self._lock:
            self.calls.append((image, language, prompt))
            return self._texts.pop(0) if self._texts else self._default


class _FailingGateway:
    def __init__(self, fail_after: int = 0) -> None:
        self._remaining = fail_after
        self._lock = threading.Lock()

    def recognize(self, image: bytes, language: str = "English", *, prompt: str | None = None) -> str:
        with self._lock:
            if self._remaining <= 0:
                raise GatewayUnavailable("timed out")
            self._remaining -= 1
        return "[]"


COLUMN_TEXTS = ['["e4", "Nf3"]', '["e5", "Nc6"]', '["Bb5"]', '["a6"]', "[]", "[]"]


class TestColumnsMode:
    def test_columns_decode_to_pgn(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        gateway = _StubGateway(COLUMN_TEXTS)
        record = ScoresheetDecoder(gateway, settings).decode(handwritten_sheet())
        assert len(gateway.calls) == 6
        assert record.white_moves == ["e4", "Nf3", "Bb5"]
        assert record.black_moves == ["e5", "Nc6", "a6"]
        assert record.validation.is_valid
        assert record.pgn.splitlines()[-1] == "1. e4 e5 2. Nf3 Nc6 3. Bb5 a6 *"
        assert record.diagnostics == ()

    def test_gateway_receives_jpeg_and_prompt(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        gateway = _StubGateway()
        ScoresheetDecoder(gateway, settings).decode(handwritten_sheet(), language="German")
        image, language, prompt = gateway.calls[0]
        assert image.startswith(b"\xff\xd8")
        assert language == "German"
        assert prompt is not None and "German" in prompt

    def test_localized_moves_are_translated(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        gateway = _StubGateway(['["e4", "Sf3"]', '["e5", "Sc6"]'])
        record = ScoresheetDecoder(gateway, settings).decode(handwritten_sheet(), "German")
        assert record.white_moves == ["e4", "Nf3"]
        assert record.black_moves == ["e5", "Nc6"]

    def test_illegal_move_reported_not_dropped(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        gateway = _StubGateway(['["e4", "Bc5"]', '["e5"]'])
        record = ScoresheetDecoder(gateway, settings).decode(handwritten_sheet())
        statuses = [e.status for e in record.validation.entries]
        assert statuses == [ValidationStatus.VALID, ValidationStatus.VALID, ValidationStatus.ILLEGAL_MOVE]
        assert "2. Bc5" in record.pgn

    def test_blank_image_sets_low_confidence_flag(self, settings: DecoderSettings) -> None:
        blank = np.full((200, 300, 3), 255, dtype=np.uint8)
        gateway = _StubGateway()
        record = ScoresheetDecoder(gateway, settings).decode(blank)
        assert len(gateway.calls) == settings.expected_columns
        assert record.diagnostics == (DiagnosticFlag.BOUNDARY_LOW_CONFIDENCE,)
        assert record.to_dict()["diagnostics"] == ["BoundaryLowConfidence"]

    def test_decode_pages_continue_move_lists(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        gateway = _StubGateway(['["e4"]', '["e5"]', "[]", "[]", "[]", "[]", '["Nf3"]', '["Nc6"]'])
        record = ScoresheetDecoder(gateway, settings).decode_pages(
            [handwritten_sheet(), handwritten_sheet()]
        )
        assert record.white_moves == ["e4", "Nf3"]
        assert record.black_moves == ["e5", "Nc6"]
        assert len(gateway.calls) == 12

    def test_decode_pages_needs_an_image(self, settings: DecoderSettings) -> None:
        with pytest.raises(ValueError, match="at least one"):
            ScoresheetDecoder(_StubGateway(), settings).decode_pages([])


class TestOtherModes:
    def test_page_mode_is_one_call(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        gateway = _StubGateway(["1. e4 e5 2. Nf3 Nc6"])
        record = ScoresheetDecoder(gateway, settings).decode(handwritten_sheet(), mode="page")
        assert len(gateway.calls) == 1
        assert record.white_moves == ["e4", "Nf3"]
        assert record.black_moves == ["e5", "Nc6"]
        assert record.diagnostics == ()

    def test_cells_mode_calls_once_per_cell(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        gateway = _StubGateway()
        record = ScoresheetDecoder(gateway, settings).decode(handwritten_sheet(), mode="cells")
        assert len(gateway.calls) == settings.expected_columns * settings.expected_rows
        assert record.moves == ()
        # The sheet has no ruled rows, so row detection falls back to uniform spans.
        assert DiagnosticFlag.BOUNDARY_LOW_CONFIDENCE in record.diagnostics

    def test_cells_mode_failure_propagates(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        decoder = ScoresheetDecoder(_FailingGateway(fail_after=3), settings)
        with pytest.raises(GatewayUnavailable):
            decoder.decode(handwritten_sheet(), mode="cells")

    def test_unknown_mode(self, settings: DecoderSettings) -> None:
        with pytest.raises(ValueError, match="Unknown OCR mode"):
            ScoresheetDecoder(_StubGateway(), settings).decode(np.zeros((10, 10), np.uint8), mode="lines")


class TestFailures:
    def test_gateway_error_aborts_decode(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        with pytest.raises(GatewayUnavailable):
            ScoresheetDecoder(_FailingGateway(), settings).decode(handwritten_sheet())

    def test_empty_image_is_rejected_before_ocr(self, settings: DecoderSettings) -> None:
        gateway = _StubGateway()
        with pytest.raises(InvalidImage):
            ScoresheetDecoder(gateway, settings).decode(b"")
        assert gateway.calls == []

    def test_image_narrower_than_column_count(self, settings: DecoderSettings) -> None:
        gateway = _StubGateway()
        tiny = np.full((3, 3, 3), 255, np.uint8)
        with pytest.raises(InvalidImage, match="cannot hold 6 columns"):
            ScoresheetDecoder(gateway, settings).decode(tiny, mode="columns")
        assert gateway.calls == []


class TestDebugEntrypoints:
    def test_inspect_boundaries(self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings) -> None:
        info = ScoresheetDecoder(_StubGateway(), settings).inspect_boundaries(handwritten_sheet())
        assert info["tableFound"] is True
        assert info["lowConfidence"] is False
        assert info["columnMethod"] == "separators"
        for found, expected in zip(info["columnBoundaries"], SHEET_SEPARATORS):
            assert abs(found - expected) <= 3

    def test_crop_and_overlay_return_png(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        decoder = ScoresheetDecoder(_StubGateway(), settings)
        crop = decoder.crop(handwritten_sheet(), Rectangle(50, 20, 100, 50))
        assert load_image(crop).size == (100, 50)
        overlay = decoder.render_boundaries(handwritten_sheet())
        assert overlay.startswith(b"\x89PNG")

    def test_inspect_corners(self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings) -> None:
        info = ScoresheetDecoder(_StubGateway(), settings).inspect_corners(handwritten_sheet())
        assert info["found"] is True
        assert len(info["corners"]) == 4

    def test_raw_prompt_strips_backticks(self, settings: DecoderSettings) -> None:
        gateway = _StubGateway(['```json\n["e4"]\n```'])
        text = ScoresheetDecoder(gateway, settings).raw_prompt(
            np.zeros((10, 10), np.uint8), "List the moves"
        )
        assert text == 'json\n["e4"]\n'
        assert gateway.calls[0][2] == "List the moves"


class TestAssembly:
    def test_assemble_record_result_tag(self) -> None:
        record = assemble_record(["e4", "Qh5", "Bc4", "Qxf7#"], ["e5", "Nc6", "Nf6"])
        assert '[Result "1-0"]' in record.pgn
        assert record.pgn.endswith("4. Qxf7# 1-0")

    def test_diagnostics_deduplicated(self) -> None:
        flag = DiagnosticFlag.BOUNDARY_LOW_CONFIDENCE
        record = assemble_record([], [], [flag, flag])
        assert record.diagnostics == (flag,)
        assert record.moves == ()

    def test_moves_keep_color_order(self) -> None:
        record = assemble_record(["e4"], ["e5"])
        assert [m.color for m in record.moves] == [Color.WHITE, Color.BLACK]

    def test_module_decode_returns_response_dict(
        self, handwritten_sheet: Callable[..., bytes], settings: DecoderSettings
    ) -> None:
        result = decode(handwritten_sheet(), gateway=_StubGateway(COLUMN_TEXTS), settings=settings)
        assert set(result) == {"pgnContent", "validation", "diagnostics"}
        assert result["validation"]["isValid"] is True
        assert result["validation"]["moves"][0]["whiteMove"]["notation"] == "e4"
