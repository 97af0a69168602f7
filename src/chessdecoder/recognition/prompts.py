"""OCR prompt texts sent with each image."""

from __future__ import annotations

from chessdecoder.transcription.languages import NotationLanguage, get_language

_BASE = (
    "You are an OCR engine. Transcribe all visible chess moves from this image "
    "exactly as they appear, but only include characters that are valid in a chess game. "
    "The characters are written in {language}, valid characters are: {characters}. "
    "Do not include any other characters, and preserve any misspellings or punctuation errors."
)

_SCOPES = {
    "columns": "\nReturn the raw text as a json list having all the moves, top to bottom.",
    "cells": "\nThe image holds a single move. Return it as a json list with one string, "
    "or an empty json list if the cell is blank.",
    "page": "\nReturn the raw text as a json list having all the moves in playing order, "
    "white and black alternating, without move numbers.",
}


def build_prompt(language: str | NotationLanguage = "English", scope: str = "columns") -> str:
    """Prompt for one OCR call; *scope* is ``columns``, ``cells`` or ``page``."""
    lang = language if isinstance(language, NotationLanguage) else get_language(language)
    try:
        tail = _SCOPES[scope]
    except KeyError:
        raise ValueError(f"Unknown prompt scope {scope!r}") from None
    return _BASE.format(language=lang.name, characters=", ".join(lang.prompt_characters)) + tail
