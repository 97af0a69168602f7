"""Tests for localized notation alphabets."""

from __future__ import annotations

import pytest

from chessdecoder.transcription.languages import LANGUAGES, get_language, supported_languages


class TestLanguages:
    @pytest.mark.parametrize(
        ("language", "token", "english"),
        [
            ("German", "Sf3", "Nf3"),
            ("German", "Dxd8+", "Qxd8+"),
            ("French", "Fb5", "Bb5"),
            ("French", "Rg1", "Kg1"),
            ("Spanish", "Axc6", "Bxc6"),
            ("Italian", "Cc3", "Nc3"),
            ("Dutch", "Pf6", "Nf6"),
            ("Greek", "Ιζ3", "Nf3"),
            ("Greek", "εxδ5", "exd5"),
            ("English", "Nf3", "Nf3"),
        ],
    )
    def test_translate_to_english(self, language: str, token: str, english: str) -> None:
        assert get_language(language).translate(token) == english

    def test_lookup_is_case_insensitive(self) -> None:
        assert get_language(" german ").name == "German"

    def test_unknown_language(self) -> None:
        with pytest.raises(ValueError, match="Unsupported notation language 'Klingon'"):
            get_language("Klingon")

    def test_english_is_identity(self) -> None:
        english = get_language("English")
        assert english.is_english
        assert not get_language("Dutch").is_english

    def test_prompt_characters_list_local_letters(self) -> None:
        chars = get_language("Greek").prompt_characters
        assert "Ι" in chars
        assert "ζ" in chars
        assert "N" not in chars
        assert "8" in chars and "x" in chars

    def test_registry_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            LANGUAGES["klingon"] = get_language("English")  # type: ignore[index]
        assert "English" in supported_languages()
        assert len(supported_languages()) == 7
