"""Move token parsing: raw OCR text to per-color SAN strings."""

from chessdecoder.transcription.languages import (
    LANGUAGES,
    NotationLanguage,
    get_language,
    supported_languages,
)
from chessdecoder.transcription.tokens import (
    ParsedMove,
    RawMoveText,
    assign_columns,
    fix_ocr_confusions,
    move_order,
    normalize_token,
    parse_moves,
    split_interleaved,
    split_raw_text,
    strip_labels,
    tokenize,
    tokens_from_raw,
)

__all__ = [
    "LANGUAGES",
    "NotationLanguage",
    "ParsedMove",
    "RawMoveText",
    "assign_columns",
    "fix_ocr_confusions",
    "get_language",
    "move_order",
    "normalize_token",
    "parse_moves",
    "split_interleaved",
    "split_raw_text",
    "strip_labels",
    "supported_languages",
    "tokenize",
    "tokens_from_raw",
]
