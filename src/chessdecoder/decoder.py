"""Decode pipeline: scoresheet image → transcription → validation → PGN."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any

from chessdecoder.config import OCR_MODES, DecoderSettings, get_settings
from chessdecoder.core.enums import Color
from chessdecoder.core.notation.pgn import build_pgn, pgn_result_token
from chessdecoder.errors import DiagnosticFlag
from chessdecoder.recognition.gateway import OpenAIVisionGateway, TextRecognitionGateway
from chessdecoder.recognition.prompts import build_prompt
from chessdecoder.transcription.languages import NotationLanguage, get_language
from chessdecoder.transcription.tokens import (
    ParsedMove,
    RawMoveText,
    assign_columns,
    parse_moves,
    split_interleaved,
    tokens_from_raw,
)
from chessdecoder.validation.models import ValidationReport
from chessdecoder.validation.service import MoveValidator
from chessdecoder.vision.analyzer import (
    detect_columns_automatically,
    detect_rows_automatically,
    detect_table,
    get_detailed_corner_info,
)
from chessdecoder.vision.extractor import (
    Cell,
    build_grid,
    column_strips,
    create_image_with_boundaries,
    crop_image,
    extract_cells,
)
from chessdecoder.vision.image import PixelBuffer, Rectangle, load_image

_LOGGER = logging.getLogger(__name__)


def _column_color(index: int) -> Color:
    return Color.WHITE if index % 2 == 0 else Color.BLACK


@dataclass(frozen=True, slots=True)
class GameRecord:
    """Terminal artifact of one decode invocation."""

    moves: tuple[ParsedMove, ...]
    validation: ValidationReport
    pgn: str
    diagnostics: tuple[DiagnosticFlag, ...] = ()

    @property
    def white_moves(self) -> list[str]:
        return [m.notation for m in self.moves if m.color == Color.WHITE]

    @property
    def black_moves(self) -> list[str]:
        return [m.notation for m in self.moves if m.color == Color.BLACK]

    def to_dict(self) -> dict[str, Any]:
        return {
            "pgnContent": self.pgn,
            "validation": self.validation.to_dict(),
            "diagnostics": [str(flag) for flag in self.diagnostics],
        }


def assemble_record(
    white: Sequence[str],
    black: Sequence[str],
    diagnostics: Iterable[DiagnosticFlag] = (),
    headers: dict[str, str] | None = None,
) -> GameRecord:
    """Validate move lists and render them as a PGN document."""
    moves = parse_moves(white, black)
    report = MoveValidator().validate_parsed(moves)
    pgn = build_pgn(white, black, headers=headers, result_token=pgn_result_token(report.result))
    return GameRecord(moves, report, pgn, tuple(dict.fromkeys(diagnostics)))


class ScoresheetDecoder:
    """Runs the full pipeline against a :class:`TextRecognitionGateway`.

    The decoder holds no per-request state; one instance may serve
    concurrent requests.
    """

    def __init__(
        self, gateway: TextRecognitionGateway, settings: DecoderSettings | None = None
    ) -> None:
        self.gateway = gateway
        self.settings = settings if settings is not None else get_settings()

    # ── Decode entrypoints ───────────────────────────────────────────────

    def decode(
        self, image: Any, language: str | None = None, mode: str | None = None
    ) -> GameRecord:
        lang = get_language(language or self.settings.language)
        white, black, flags = self._transcribe(load_image(image), lang, self._mode(mode))
        record = assemble_record(white, black, flags)
        _LOGGER.info(
            "Decoded %d white / %d black moves, %d rejected",
            len(white),
            len(black),
            record.validation.invalid_count,
        )
        return record

    def decode_pages(
        self, images: Iterable[Any], language: str | None = None, mode: str | None = None
    ) -> GameRecord:
        """Decode a multi-page scoresheet; pages continue each other's moves."""
        lang = get_language(language or self.settings.language)
        ocr_mode = self._mode(mode)
        buffers = [load_image(image) for image in images]
        if not buffers:
            raise ValueError("decode_pages needs at least one image")

        white: list[str] = []
        black: list[str] = []
        flags: list[DiagnosticFlag] = []
        for page, buffer in enumerate(buffers, start=1):
            page_white, page_black, page_flags = self._transcribe(buffer, lang, ocr_mode)
            _LOGGER.debug("Page %d: %d white, %d black", page, len(page_white), len(page_black))
            white.extend(page_white)
            black.extend(page_black)
            flags.extend(page_flags)
        return assemble_record(white, black, flags)

    def _mode(self, mode: str | None) -> str:
        resolved = (mode or self.settings.ocr_mode).lower()
        if resolved not in OCR_MODES:
            raise ValueError(f"Unknown OCR mode {resolved!r} (expected one of {', '.join(OCR_MODES)})")
        return resolved

    # ── Transcription ────────────────────────────────────────────────────

    def _recognize(self, image: PixelBuffer, lang: NotationLanguage, scope: str) -> str:
        payload = image.to_jpeg_bytes(self.settings.max_image_dimension)
        return self.gateway.recognize(payload, lang.name, prompt=build_prompt(lang, scope))

    def _transcribe(
        self, image: PixelBuffer, lang: NotationLanguage, mode: str
    ) -> tuple[list[str], list[str], list[DiagnosticFlag]]:
        if mode == "page":
            tokens = tokens_from_raw(RawMoveText(lang.name, self._recognize(image, lang, "page")))
            if not tokens:
                _LOGGER.warning("Page transcription is empty")
            white, black = split_interleaved(tokens)
            return white, black, []

        flags: list[DiagnosticFlag] = []
        table = detect_table(image)
        columns = detect_columns_automatically(image, table.rect, self.settings.expected_columns)
        if not table.found or columns.low_confidence:
            flags.append(DiagnosticFlag.BOUNDARY_LOW_CONFIDENCE)

        if mode == "columns":
            column_tokens = []
            for idx, strip in enumerate(column_strips(image, columns, table.rect)):
                text = self._recognize(strip, lang, "columns")
                raw = RawMoveText(lang.name, text, _column_color(idx), idx)
                tokens = tokens_from_raw(raw)
                _LOGGER.debug("Column %d: %d tokens", idx, len(tokens))
                if not tokens:
                    _LOGGER.warning("Column %d transcription is empty", idx)
                column_tokens.append(tokens)
        else:
            rows = detect_rows_automatically(image, table.rect, self.settings.expected_rows)
            if rows.low_confidence and DiagnosticFlag.BOUNDARY_LOW_CONFIDENCE not in flags:
                flags.append(DiagnosticFlag.BOUNDARY_LOW_CONFIDENCE)
            column_tokens = self._transcribe_cells(image, lang, build_grid(columns, rows), columns.count)

        white, black = assign_columns(column_tokens)
        return white, black, flags

    def _transcribe_cells(
        self, image: PixelBuffer, lang: NotationLanguage, cells: Sequence[Cell], column_count: int
    ) -> list[list[str]]:
        crops = extract_cells(image, cells)
        texts: dict[tuple[int, int], RawMoveText] = {}
        with ThreadPoolExecutor(max_workers=self.settings.ocr_max_workers) as pool:
            futures: dict[Future[str], tuple[int, int]] = {
                pool.submit(self._recognize, crop, lang, "cells"): key
                for key, crop in crops.items()
            }
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            failed = next((f for f in done if f.exception() is not None), None)
            if failed is not None:
                for other in pending:
                    other.cancel()
                _LOGGER.error("Cell %s recognition failed; batch cancelled", futures[failed])
                raise failed.exception()  # type: ignore[misc]
            for future, (col, row) in futures.items():
                texts[(col, row)] = RawMoveText(lang.name, future.result(), _column_color(col), col)

        column_tokens: list[list[str]] = [[] for _ in range(column_count)]
        for col, row in sorted(texts):
            column_tokens[col].extend(tokens_from_raw(texts[(col, row)]))
        return column_tokens

    # ── Debug entrypoints ────────────────────────────────────────────────

    def inspect_boundaries(self, image: Any, expected_columns: int | None = None) -> dict[str, Any]:
        buffer = load_image(image)
        table = detect_table(buffer)
        columns = detect_columns_automatically(
            buffer, table.rect, expected_columns or self.settings.expected_columns
        )
        return {
            "imageWidth": buffer.width,
            "imageHeight": buffer.height,
            "table": table.rect.as_tuple(),
            "tableFound": table.found,
            "columnBoundaries": list(columns.offsets),
            "columnWidths": columns.widths(),
            "columnMethod": columns.method,
            "lowConfidence": columns.low_confidence or not table.found,
        }

    def inspect_corners(self, image: Any) -> dict[str, Any]:
        return get_detailed_corner_info(load_image(image))

    def crop(self, image: Any, rect: Rectangle) -> bytes:
        return crop_image(load_image(image), rect).to_png_bytes()

    def render_boundaries(self, image: Any, expected_columns: int | None = None) -> bytes:
        buffer = load_image(image)
        table = detect_table(buffer)
        columns = detect_columns_automatically(
            buffer, table.rect, expected_columns or self.settings.expected_columns
        )
        overlay = create_image_with_boundaries(buffer, columns=columns, table=table.rect)
        return overlay.to_png_bytes()

    def raw_prompt(self, image: Any, prompt_text: str, language: str | None = None) -> str:
        """Send *prompt_text* with the image and return the gateway text as-is."""
        buffer = load_image(image)
        lang = get_language(language or self.settings.language)
        text = self.gateway.recognize(
            buffer.to_jpeg_bytes(self.settings.max_image_dimension), lang.name, prompt=prompt_text
        )
        return text.replace("`", "")


def decode(
    image: Any,
    language: str = "English",
    gateway: TextRecognitionGateway | None = None,
    settings: DecoderSettings | None = None,
) -> dict[str, Any]:
    """One-shot decode returning ``{"pgnContent", "validation", "diagnostics"}``."""
    settings = settings if settings is not None else get_settings()
    if gateway is None:
        gateway = OpenAIVisionGateway(settings)
    return ScoresheetDecoder(gateway, settings).decode(image, language).to_dict()
