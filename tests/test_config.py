"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from chessdecoder.config import DecoderSettings, get_settings, load_env_files

_VARS = (
    "OPENAI_API_KEY",
    "CHESSDECODER_OCR_MODEL",
    "CHESSDECODER_OCR_TIMEOUT",
    "CHESSDECODER_OCR_MAX_RETRIES",
    "CHESSDECODER_OCR_MAX_WORKERS",
    "CHESSDECODER_OCR_MODE",
    "CHESSDECODER_EXPECTED_COLUMNS",
    "CHESSDECODER_EXPECTED_ROWS",
    "CHESSDECODER_MAX_IMAGE_DIMENSION",
    "CHESSDECODER_LANGUAGE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in _VARS:
        # setenv first so values written by load_dotenv are undone afterwards
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


class TestFromEnv:
    def test_defaults(self) -> None:
        settings = DecoderSettings.from_env()
        assert settings == DecoderSettings()
        assert settings.ocr_mode == "columns"
        assert settings.expected_columns == 6

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-abc")
        monkeypatch.setenv("CHESSDECODER_OCR_MODE", " Cells ")
        monkeypatch.setenv("CHESSDECODER_OCR_TIMEOUT", "12.5")
        monkeypatch.setenv("CHESSDECODER_OCR_MAX_RETRIES", "0")
        monkeypatch.setenv("CHESSDECODER_EXPECTED_ROWS", "25")
        monkeypatch.setenv("CHESSDECODER_LANGUAGE", "Dutch")
        settings = DecoderSettings.from_env()
        assert settings.openai_api_key == "sk-abc"
        assert settings.ocr_mode == "cells"
        assert settings.ocr_timeout == 12.5
        assert settings.ocr_max_retries == 0
        assert settings.expected_rows == 25
        assert settings.language == "Dutch"

    @pytest.mark.parametrize(
        ("name", "value", "match"),
        [
            ("CHESSDECODER_EXPECTED_COLUMNS", "six", "CHESSDECODER_EXPECTED_COLUMNS must be an integer"),
            ("CHESSDECODER_OCR_MAX_WORKERS", "0", "CHESSDECODER_OCR_MAX_WORKERS must be >= 1"),
            ("CHESSDECODER_OCR_TIMEOUT", "-1", "CHESSDECODER_OCR_TIMEOUT must be positive"),
            ("CHESSDECODER_OCR_MODE", "rows", "CHESSDECODER_OCR_MODE must be one of"),
        ],
    )
    def test_invalid_values(
        self, monkeypatch: pytest.MonkeyPatch, name: str, value: str, match: str
    ) -> None:
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError, match=match):
            DecoderSettings.from_env()


class TestEnvFiles:
    def test_local_file_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        (tmp_path / ".env").write_text("CHESSDECODER_LANGUAGE=German\nCHESSDECODER_EXPECTED_ROWS=30\n")
        (tmp_path / ".env.local").write_text("CHESSDECODER_LANGUAGE=French\n")
        load_env_files(tmp_path)
        settings = DecoderSettings.from_env()
        assert settings.language == "French"
        assert settings.expected_rows == 30

    def test_get_settings_is_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHESSDECODER_OCR_MODEL", "gpt-4o-mini")
        first = get_settings()
        monkeypatch.setenv("CHESSDECODER_OCR_MODEL", "other")
        assert get_settings() is first
        assert first.ocr_model == "gpt-4o-mini"
