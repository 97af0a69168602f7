"""PGN movetext assembly and parsing helpers."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date

from chessdecoder.core.enums import GameResult
from chessdecoder.core.notation.models import ParsedPgn, PgnMove

_PGN_HEADER_RE = re.compile(r'^\[(\w+)\s+"((?:[^"\\]|\\.)*)"\]\s*$')
_PGN_RESULT_TOKENS = {"1-0", "0-1", "1/2-1/2", "*"}
_MOVE_NUMBER_RE = re.compile(r"^\d+\.(?:\.\.)?$")
_MOVE_NUMBER_PREFIX_RE = re.compile(r"^\d+\.+")

# Seven Tag Roster order; Event/Site/Round are unknown for a scanned sheet.
_DEFAULT_HEADERS: tuple[tuple[str, str], ...] = (
    ("Event", "?"),
    ("Site", "?"),
    ("Date", ""),
    ("Round", "?"),
    ("White", "??"),
    ("Black", "??"),
    ("Result", "*"),
)


def pgn_result_token(result: GameResult) -> str:
    """Convert :class:`GameResult` to a PGN result token."""
    if result == GameResult.WHITE_WINS:
        return "1-0"
    if result == GameResult.BLACK_WINS:
        return "0-1"
    if result == GameResult.DRAW:
        return "1/2-1/2"
    return "*"


def game_result_from_pgn(token: str) -> GameResult:
    """Convert PGN result token to :class:`GameResult`."""
    if token == "1-0":
        return GameResult.WHITE_WINS
    if token == "0-1":
        return GameResult.BLACK_WINS
    if token == "1/2-1/2":
        return GameResult.DRAW
    return GameResult.IN_PROGRESS


def _clean(tokens: Iterable[str] | None) -> list[str]:
    return [t.strip() for t in tokens] if tokens is not None else []


def generate_pgn(white_moves: Iterable[str], black_moves: Iterable[str]) -> str:
    """Render ``"{n}. {white} {black}"`` pairs as PGN movetext.

    Move strings are rendered verbatim, valid or not. Blank entries are
    skipped; a pair that only has a black move renders as ``"{n}... {black}"``.
    """
    white = _clean(white_moves)
    black = _clean(black_moves)
    parts: list[str] = []
    for idx in range(max(len(white), len(black))):
        w = white[idx] if idx < len(white) else ""
        b = black[idx] if idx < len(black) else ""
        if w:
            parts.append(f"{idx + 1}. {w}")
            if b:
                parts.append(b)
        elif b:
            parts.append(f"{idx + 1}... {b}")
    return " ".join(parts)


def build_pgn(
    white_moves: Iterable[str],
    black_moves: Iterable[str],
    headers: Mapping[str, str] | None = None,
    result_token: str = "*",
) -> str:
    """Build a single-game PGN document with a tag section and movetext."""
    if result_token not in _PGN_RESULT_TOKENS:
        raise ValueError(f"Invalid PGN result token: {result_token!r}")

    tags = dict(_DEFAULT_HEADERS)
    tags["Date"] = date.today().strftime("%Y.%m.%d")
    if headers:
        tags.update(headers)
    tags["Result"] = result_token

    lines: list[str] = []
    for key, value in tags.items():
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'[{key} "{escaped}"]')
    lines.append("")
    movetext = generate_pgn(white_moves, black_moves)
    lines.append(f"{movetext} {result_token}" if movetext else result_token)
    lines.append("")
    return "\n".join(lines)


def _append_comment(move: PgnMove, comment: str) -> None:
    clean = " ".join(comment.split())
    if not clean:
        return
    move.comment = f"{move.comment} {clean}" if move.comment else clean


def _parse_movetext(movetext: str) -> tuple[list[PgnMove], str]:
    """Mainline moves with comments plus the result token."""
    moves: list[PgnMove] = []
    result_token = "*"
    variation_depth = 0
    idx = 0
    total = len(movetext)

    while idx < total:
        ch = movetext[idx]

        if ch.isspace():
            idx += 1
            continue

        if ch in "{;":
            closer = "}" if ch == "{" else "\n"
            end = movetext.find(closer, idx + 1)
            if end < 0:
                end = total
            if variation_depth == 0 and moves:
                _append_comment(moves[-1], movetext[idx + 1 : end])
            idx = end + 1
            continue

        if ch == "(":
            variation_depth += 1
            idx += 1
            continue

        if ch == ")":
            variation_depth = max(0, variation_depth - 1)
            idx += 1
            continue

        token_end = idx
        while (
            token_end < total
            and not movetext[token_end].isspace()
            and movetext[token_end] not in "{};()"
        ):
            token_end += 1
        token = movetext[idx:token_end]
        idx = token_end

        if not token or variation_depth > 0:
            continue
        if token in _PGN_RESULT_TOKENS:
            result_token = token
            continue
        if _MOVE_NUMBER_RE.match(token):
            continue
        if token.startswith("$") and token[1:].isdigit():
            continue

        token = _MOVE_NUMBER_PREFIX_RE.sub("", token).lstrip(".")
        if token:
            moves.append(PgnMove(san=token))

    return moves, result_token


def parse_pgn_game(pgn_text: str) -> ParsedPgn:
    """Parse a single PGN game into headers, mainline moves and result."""
    headers: dict[str, str] = {}
    move_lines: list[str] = []

    for raw_line in pgn_text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("%"):
            continue
        if line.startswith("["):
            match = _PGN_HEADER_RE.match(line)
            if match is None:
                raise ValueError(f"Invalid PGN header line: {line}")
            key, raw_value = match.groups()
            headers[key] = raw_value.replace('\\"', '"').replace("\\\\", "\\")
            continue
        move_lines.append(line)

    moves, result_token = _parse_movetext("\n".join(move_lines))
    header_result = headers.get("Result")
    if result_token == "*" and header_result in _PGN_RESULT_TOKENS:
        result_token = header_result

    sans = [m.san for m in moves]
    return ParsedPgn(
        headers=headers,
        moves=moves,
        result_token=result_token,
        white=sans[0::2],
        black=sans[1::2],
    )


def extract_moves_from_pgn(pgn_text: str) -> tuple[list[str], list[str]]:
    """White and black SAN lists from a PGN document or bare movetext."""
    parsed = parse_pgn_game(pgn_text)
    return parsed.white, parsed.black
