"""Localized notation alphabets.

Each language is plain data: a piece-letter map, a file-letter map and the
extra symbols listed in the OCR prompt. Adding a language means adding a
:class:`NotationLanguage` entry to :data:`LANGUAGES`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

_ENGLISH_FILES = "abcdefgh"
_RANKS = "12345678"
_SYMBOLS = ("x", "+", "#", "0", "O", "-", "=")


@dataclass(frozen=True, slots=True)
class NotationLanguage:
    """Alphabet of one notation language, mapped onto English SAN letters."""

    name: str
    pieces: Mapping[str, str]
    files: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({f: f for f in _ENGLISH_FILES})
    )
    table: dict[int, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        mapping = {**self.pieces, **self.files}
        object.__setattr__(self, "table", str.maketrans(mapping))

    @property
    def is_english(self) -> bool:
        return self.name == "English"

    @property
    def prompt_characters(self) -> tuple[str, ...]:
        return (*self.pieces, *_SYMBOLS, *self.files, *_RANKS)

    def translate(self, token: str) -> str:
        """Rewrite localized piece and file letters as English SAN letters."""
        return token.translate(self.table)


def _language(name: str, pieces: dict[str, str], files: str | None = None) -> NotationLanguage:
    if files is None:
        return NotationLanguage(name, MappingProxyType(pieces))
    return NotationLanguage(
        name,
        MappingProxyType(pieces),
        MappingProxyType(dict(zip(files, _ENGLISH_FILES))),
    )


LANGUAGES: Mapping[str, NotationLanguage] = MappingProxyType(
    {
        lang.name.lower(): lang
        for lang in (
            _language("English", {"K": "K", "Q": "Q", "R": "R", "B": "B", "N": "N"}),
            # König, Dame, Turm, Läufer, Springer
            _language("German", {"K": "K", "D": "Q", "T": "R", "L": "B", "S": "N"}),
            # Roi, Dame, Tour, Fou, Cavalier
            _language("French", {"R": "K", "D": "Q", "T": "R", "F": "B", "C": "N"}),
            # Rey, Dama, Torre, Alfil, Caballo
            _language("Spanish", {"R": "K", "D": "Q", "T": "R", "A": "B", "C": "N"}),
            # Re, Donna, Torre, Alfiere, Cavallo
            _language("Italian", {"R": "K", "D": "Q", "T": "R", "A": "B", "C": "N"}),
            # Koning, Dame, Toren, Loper, Paard
            _language("Dutch", {"K": "K", "D": "Q", "T": "R", "L": "B", "P": "N"}),
            # Ρήγας, Βασίλισσα, Πύργος, Αξιωματικός, Ίππος
            _language(
                "Greek",
                {"Ρ": "K", "Β": "Q", "Π": "R", "Α": "B", "Ι": "N"},
                files="αβγδεζηθ",
            ),
        )
    }
)


def get_language(name: str) -> NotationLanguage:
    """Look up a language by name (case-insensitive)."""
    try:
        return LANGUAGES[name.strip().lower()]
    except KeyError:
        supported = ", ".join(lang.name for lang in LANGUAGES.values())
        raise ValueError(f"Unsupported notation language {name!r} (supported: {supported})") from None


def supported_languages() -> list[str]:
    return [lang.name for lang in LANGUAGES.values()]
