"""Runtime configuration loaded from the environment and ``.env`` files."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

OCR_MODES = ("columns", "cells", "page")


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True, slots=True)
class DecoderSettings:
    """Tunable knobs of the decode pipeline and the OCR client."""

    openai_api_key: str | None = None
    ocr_model: str = "gpt-4o"
    ocr_timeout: float = 60.0
    ocr_max_retries: int = 2
    ocr_max_workers: int = 4
    ocr_mode: str = "columns"
    expected_columns: int = 6
    expected_rows: int = 20
    max_image_dimension: int = 1024
    language: str = "English"

    def __post_init__(self) -> None:
        if self.ocr_mode not in OCR_MODES:
            raise ValueError(
                f"CHESSDECODER_OCR_MODE must be one of {', '.join(OCR_MODES)}, "
                f"got {self.ocr_mode!r}"
            )
        if self.expected_columns < 1 or self.expected_rows < 1:
            raise ValueError("Expected column and row counts must be positive")

    @classmethod
    def from_env(cls) -> DecoderSettings:
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            ocr_model=os.getenv("CHESSDECODER_OCR_MODEL", "gpt-4o"),
            ocr_timeout=_env_float("CHESSDECODER_OCR_TIMEOUT", 60.0),
            ocr_max_retries=_env_int("CHESSDECODER_OCR_MAX_RETRIES", 2, minimum=0),
            ocr_max_workers=_env_int("CHESSDECODER_OCR_MAX_WORKERS", 4),
            ocr_mode=os.getenv("CHESSDECODER_OCR_MODE", "columns").strip().lower(),
            expected_columns=_env_int("CHESSDECODER_EXPECTED_COLUMNS", 6),
            expected_rows=_env_int("CHESSDECODER_EXPECTED_ROWS", 20),
            max_image_dimension=_env_int("CHESSDECODER_MAX_IMAGE_DIMENSION", 1024, minimum=64),
            language=os.getenv("CHESSDECODER_LANGUAGE", "English"),
        )


def load_env_files(root: Path | None = None) -> None:
    """Load ``.env`` then ``.env.local`` (later overrides earlier)."""
    base = root if root is not None else Path.cwd()
    load_dotenv(base / ".env")
    load_dotenv(base / ".env.local", override=True)


@lru_cache
def get_settings() -> DecoderSettings:
    load_env_files()
    return DecoderSettings.from_env()
