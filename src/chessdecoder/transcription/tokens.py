"""Turn raw OCR text into ordered per-color move strings.

This stage never drops a move token. Tokens that still do not match the SAN
grammar after normalisation are passed on verbatim; the validator decides
what they are.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from chessdecoder.core.enums import Color, MoveFlag, PieceType
from chessdecoder.core.notation.san import SanToken, parse_san_token
from chessdecoder.core.types import FILES, RANKS
from chessdecoder.transcription.languages import NotationLanguage, get_language

_LOGGER = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^\s*```[\w-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)
_MOVE_NUMBER_RE = re.compile(r"^\d+\s*\.*$")
_GLUED_NUMBER_RE = re.compile(r"^\d+\.+(?=\S)")
_RESULT_TOKENS = frozenset({"1-0", "0-1", "1/2-1/2", "½-½", "*"})
_EN_PASSANT_MARK_RE = re.compile(r"^e\.?p\.?$")

_CASTLE_RE = re.compile(r"^[0Oo]-[0Oo](?P<long>-[0Oo])?(?P<suffix>[+#])?$")
_PROMOTION_NO_EQ_RE = re.compile(r"^(?P<pawn>[a-h](?:x[a-h])?[18])(?P<piece>[QRBN])(?P<suffix>[+#]?)$")
_EN_PASSANT_RE = re.compile(r"\s*e\.?p\.?$")
_DASHES = str.maketrans({"–": "-", "—": "-", "‒": "-", "−": "-"})
_OCR_CONFUSIONS = str.maketrans({"l": "1", "I": "1", "|": "1", "×": "x", "X": "x", ":": "x"})


@dataclass(frozen=True, slots=True)
class RawMoveText:
    """Gateway output for one color column (or a whole page when ``color`` is None)."""

    language: str
    text: str
    color: Color | None = None
    column_index: int = 0


@dataclass(frozen=True, slots=True)
class ParsedMove:
    """One supplied move token with its SAN fields, if it parses."""

    move_number: int
    color: Color
    raw_token: str
    notation: str
    san: SanToken | None = field(default=None, repr=False)

    @property
    def is_parse_failure(self) -> bool:
        return self.san is None

    @property
    def piece(self) -> PieceType | None:
        return self.san.piece_type if self.san else None

    @property
    def from_file(self) -> str | None:
        if self.san is None or self.san.from_file is None:
            return None
        return FILES[self.san.from_file]

    @property
    def from_rank(self) -> str | None:
        if self.san is None or self.san.from_rank is None:
            return None
        return RANKS[self.san.from_rank]

    @property
    def capture(self) -> bool:
        return bool(self.san and self.san.capture)

    @property
    def to_square(self) -> str | None:
        return self.san.destination if self.san else None

    @property
    def promotion(self) -> PieceType | None:
        return self.san.promotion if self.san else None

    @property
    def castle(self) -> str | None:
        if self.san is None or self.san.castle is None:
            return None
        return "O-O-O" if self.san.castle == MoveFlag.CASTLE_QUEENSIDE else "O-O"

    @property
    def suffix(self) -> str:
        return self.san.suffix if self.san else ""


# ── Raw text → tokens ────────────────────────────────────────────────────


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE_RE.match(text)
    return match.group(1) if match else text


def _flatten(items: Iterable[object]) -> list[str]:
    out: list[str] = []
    for item in items:
        if isinstance(item, str):
            out.extend(item.split())
        elif isinstance(item, (int, float)):
            out.append(str(item))
        elif isinstance(item, list):
            out.extend(_flatten(item))
    return out


def split_raw_text(text: str) -> list[str]:
    """Whitespace tokens of gateway text, decoding a JSON list when present."""
    body = _strip_code_fence(text.strip())
    if body.startswith("[") or body.startswith("{"):
        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            _LOGGER.warning("Gateway text looks like JSON but does not parse; splitting on whitespace")
        else:
            if isinstance(data, dict):
                data = data.get("moves", list(data.values()))
            if isinstance(data, list):
                return _flatten(data)
    return body.replace(",", " ").split()


def strip_labels(tokens: Iterable[str]) -> list[str]:
    """Drop move-number labels and result markers; unglue ``12.e4`` → ``e4``."""
    out: list[str] = []
    for token in tokens:
        token = token.strip()
        if not token or token in _RESULT_TOKENS or _MOVE_NUMBER_RE.match(token):
            continue
        if set(token) <= {"."} or _EN_PASSANT_MARK_RE.match(token):
            continue
        token = _GLUED_NUMBER_RE.sub("", token)
        out.append(token)
    return out


# ── Normalisation ────────────────────────────────────────────────────────


def fix_ocr_confusions(token: str) -> str:
    """Apply the fixed substitution table for common OCR misreads."""
    fixed = token.translate(_DASHES).strip().rstrip("!?.,;")
    fixed = _EN_PASSANT_RE.sub("", fixed)

    castle = _CASTLE_RE.match(fixed)
    if castle:
        return ("O-O-O" if castle["long"] else "O-O") + (castle["suffix"] or "")

    fixed = fixed.translate(_OCR_CONFUSIONS).replace("-", "")
    promo = _PROMOTION_NO_EQ_RE.match(fixed)
    if promo:
        fixed = f"{promo['pawn']}={promo['piece']}{promo['suffix']}"
    return fixed


def normalize_token(token: str, language: str | NotationLanguage = "English") -> str:
    """Canonical English SAN for *token* when it can be recovered.

    Localized letters are always translated. OCR fixes are applied only when
    the translated token fails the grammar; if the fixed token still fails,
    the translated token is returned unchanged.
    """
    lang = language if isinstance(language, NotationLanguage) else get_language(language)
    translated = token.strip() if lang.is_english else lang.translate(token.strip())
    if parse_san_token(translated) is not None:
        return translated
    fixed = fix_ocr_confusions(translated)
    if fixed != translated and parse_san_token(fixed) is not None:
        _LOGGER.debug("Normalised %r to %r", token, fixed)
        return fixed
    return translated


def tokenize(text: str, language: str | NotationLanguage = "English") -> list[str]:
    """Raw gateway text → cleaned, normalised move strings."""
    lang = language if isinstance(language, NotationLanguage) else get_language(language)
    return [normalize_token(t, lang) for t in strip_labels(split_raw_text(text))]


def tokens_from_raw(raw: RawMoveText) -> list[str]:
    return tokenize(raw.text, raw.language)


# ── Color assignment ─────────────────────────────────────────────────────


def split_interleaved(tokens: Sequence[str]) -> tuple[list[str], list[str]]:
    """Alternate tokens of a whole-page transcription into white and black."""
    return list(tokens[0::2]), list(tokens[1::2])


def assign_columns(column_tokens: Sequence[Sequence[str]]) -> tuple[list[str], list[str]]:
    """Even column indices are White's moves, odd indices Black's."""
    white: list[str] = []
    black: list[str] = []
    for idx, tokens in enumerate(column_tokens):
        (white if idx % 2 == 0 else black).extend(tokens)
    return white, black


def move_order(white: Sequence[str], black: Sequence[str]) -> list[tuple[int, Color, str]]:
    """``(move_number, color, token)`` in playing order w1, b1, w2, b2, ..."""
    order: list[tuple[int, Color, str]] = []
    for idx in range(max(len(white), len(black))):
        if idx < len(white):
            order.append((idx + 1, Color.WHITE, white[idx]))
        if idx < len(black):
            order.append((idx + 1, Color.BLACK, black[idx]))
    return order


def parse_moves(white: Sequence[str], black: Sequence[str]) -> tuple[ParsedMove, ...]:
    """Attach move numbers, colors and SAN fields to both move lists."""
    return tuple(
        ParsedMove(
            move_number=number,
            color=color,
            raw_token=token,
            notation=token.strip().rstrip("!?"),
            san=parse_san_token(token.strip().rstrip("!?")),
        )
        for number, color, token in move_order(white, black)
    )
