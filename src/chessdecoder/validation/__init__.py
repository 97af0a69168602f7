"""Move validation: replay transcribed moves and report per-move verdicts."""

from chessdecoder.validation.models import (
    ValidationEntry,
    ValidationPair,
    ValidationReport,
    ValidationStatus,
)
from chessdecoder.validation.service import MoveValidator, validate_moves

__all__ = [
    "MoveValidator",
    "ValidationEntry",
    "ValidationPair",
    "ValidationReport",
    "ValidationStatus",
    "validate_moves",
]
