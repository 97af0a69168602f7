"""chessdecoder: chess scoresheet photos to validated PGN.

Quick start::

    from chessdecoder import ScoresheetDecoder, OpenAIVisionGateway, get_settings

    settings = get_settings()
    decoder = ScoresheetDecoder(OpenAIVisionGateway(settings), settings)
    record = decoder.decode(open("sheet.jpg", "rb").read(), language="English")
    print(record.pgn)
"""

from chessdecoder.config import DecoderSettings, get_settings
from chessdecoder.core.notation.pgn import build_pgn, extract_moves_from_pgn, generate_pgn
from chessdecoder.decoder import GameRecord, ScoresheetDecoder, assemble_record, decode
from chessdecoder.errors import (
    DecoderError,
    DiagnosticFlag,
    GatewayError,
    GatewayUnauthorized,
    GatewayUnavailable,
    InvalidImage,
)
from chessdecoder.evaluation import EvaluationResult, evaluate_moves, evaluate_pgn
from chessdecoder.recognition.gateway import OpenAIVisionGateway, TextRecognitionGateway
from chessdecoder.validation import (
    MoveValidator,
    ValidationEntry,
    ValidationReport,
    ValidationStatus,
    validate_moves,
)

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "GameRecord",
    "ScoresheetDecoder",
    "assemble_record",
    "decode",
    # Configuration
    "DecoderSettings",
    "get_settings",
    # Errors
    "DecoderError",
    "DiagnosticFlag",
    "GatewayError",
    "GatewayUnauthorized",
    "GatewayUnavailable",
    "InvalidImage",
    # Recognition
    "OpenAIVisionGateway",
    "TextRecognitionGateway",
    # Validation / PGN
    "MoveValidator",
    "ValidationEntry",
    "ValidationReport",
    "ValidationStatus",
    "validate_moves",
    "build_pgn",
    "extract_moves_from_pgn",
    "generate_pgn",
    # Evaluation
    "EvaluationResult",
    "evaluate_moves",
    "evaluate_pgn",
]
