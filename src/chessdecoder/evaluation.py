"""Score a decoded move list against a ground-truth game."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from chessdecoder.core.enums import GameResult
from chessdecoder.core.notation.pgn import game_result_from_pgn, parse_pgn_game
from chessdecoder.transcription.tokens import move_order

if TYPE_CHECKING:
    from chessdecoder.decoder import GameRecord

_LOGGER = logging.getLogger(__name__)

_EXACT_WEIGHT = 0.4
_POSITIONAL_WEIGHT = 0.3
_LEVENSHTEIN_WEIGHT = 0.2
_LCS_WEIGHT = 0.1


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    ground_truth: tuple[str, ...]
    extracted: tuple[str, ...]
    exact_match_score: float
    levenshtein_distance: int
    positional_accuracy: float
    longest_common_subsequence: int
    normalized_score: float
    result_match: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "normalizedScore": round(self.normalized_score, 4),
            "exactMatchScore": round(self.exact_match_score, 4),
            "positionalAccuracy": round(self.positional_accuracy, 4),
            "levenshteinDistance": self.levenshtein_distance,
            "longestCommonSubsequence": self.longest_common_subsequence,
            "groundTruthMoves": len(self.ground_truth),
            "extractedMoves": len(self.extracted),
            "resultMatch": self.result_match,
        }


def exact_match_score(truth: Sequence[str], extracted: Sequence[str]) -> float:
    """Share of positions (over the longer list) holding the same move."""
    if not truth:
        return 1.0 if not extracted else 0.0
    longest = max(len(truth), len(extracted))
    matches = sum(1 for a, b in zip(truth, extracted) if a == b)
    return matches / longest


def levenshtein_distance(truth: Sequence[str], extracted: Sequence[str]) -> int:
    """Edit distance counted in whole move tokens."""
    prev = list(range(len(extracted) + 1))
    for i, a in enumerate(truth, start=1):
        cur = [i] + [0] * len(extracted)
        for j, b in enumerate(extracted, start=1):
            if a == b:
                cur[j] = prev[j - 1]
            else:
                cur[j] = 1 + min(prev[j], cur[j - 1], prev[j - 1])
        prev = cur
    return prev[-1]


def positional_accuracy(truth: Sequence[str], extracted: Sequence[str]) -> float:
    if not truth:
        return 1.0 if not extracted else 0.0
    return sum(1 for a, b in zip(truth, extracted) if a == b) / len(truth)


def longest_common_subsequence(truth: Sequence[str], extracted: Sequence[str]) -> int:
    prev = [0] * (len(extracted) + 1)
    for a in truth:
        cur = [0] * (len(extracted) + 1)
        for j, b in enumerate(extracted, start=1):
            cur[j] = prev[j - 1] + 1 if a == b else max(prev[j], cur[j - 1])
        prev = cur
    return prev[-1]


def evaluate_moves(truth: Sequence[str], extracted: Sequence[str]) -> EvaluationResult:
    """Compare two move sequences in playing order; 1.0 is a perfect score."""
    exact = exact_match_score(truth, extracted)
    distance = levenshtein_distance(truth, extracted)
    positional = positional_accuracy(truth, extracted)
    lcs = longest_common_subsequence(truth, extracted)

    max_len = max(len(truth), len(extracted))
    min_len = min(len(truth), len(extracted))
    lev_component = distance / max_len if max_len else 0.0
    lcs_component = 1.0 - lcs / min_len if min_len else 1.0
    penalty = (
        _EXACT_WEIGHT * (1.0 - exact)
        + _POSITIONAL_WEIGHT * (1.0 - positional)
        + _LEVENSHTEIN_WEIGHT * lev_component
        + _LCS_WEIGHT * lcs_component
    )
    return EvaluationResult(
        tuple(truth),
        tuple(extracted),
        exact,
        distance,
        positional,
        lcs,
        1.0 - penalty,
    )


def _playing_order(white: Sequence[str], black: Sequence[str]) -> list[str]:
    return [token for _, _, token in move_order(white, black)]


def evaluate_pgn(ground_truth_pgn: str, record: GameRecord) -> EvaluationResult:
    """Score a decode result against a ground-truth PGN document.

    ``result_match`` compares the decided result of the ground truth with the
    result the replayed moves reach; it stays None for an undecided game.
    """
    parsed = parse_pgn_game(ground_truth_pgn)
    truth = _playing_order(parsed.white, parsed.black)
    extracted = [m.notation for m in record.moves]
    result = evaluate_moves(truth, extracted)
    expected = game_result_from_pgn(parsed.result_token)
    if expected != GameResult.IN_PROGRESS:
        result = replace(result, result_match=expected == record.validation.result)
    _LOGGER.info("Evaluation completed. Normalized score: %.3f", result.normalized_score)
    return result
