"""Command-line entry point.

Commands:

  decode      Decode one or more scoresheet pages into PGN.
  boundaries  Print the detected table and column boundaries.
  corners     Print table corner diagnostics.
  crop        Save a rectangle of an image as PNG.
  overlay     Save the image with detected boundaries drawn on it.
  prompt      Send a free-form prompt with an image to the OCR service.
  validate    Validate move lists offline and print the PGN.
  evaluate    Decode an image and score it against a ground-truth PGN.

Usage examples::

    chessdecoder decode sheet.jpg --language German --json
    chessdecoder validate --white e4 Nf3 Bb5 --black e5 Nc6
    chessdecoder validate --pgn game.pgn
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from chessdecoder.config import OCR_MODES, DecoderSettings, get_settings
from chessdecoder.core.notation.pgn import extract_moves_from_pgn
from chessdecoder.core.enums import Color
from chessdecoder.decoder import GameRecord, ScoresheetDecoder, assemble_record
from chessdecoder.errors import GatewayError, InvalidImage
from chessdecoder.evaluation import evaluate_pgn
from chessdecoder.recognition.gateway import OpenAIVisionGateway
from chessdecoder.transcription.languages import supported_languages
from chessdecoder.transcription.tokens import tokenize
from chessdecoder.vision.image import Rectangle

log = logging.getLogger("chessdecoder")

EXIT_OK = 0
EXIT_INVALID_IMAGE = 2
EXIT_GATEWAY = 3


def _decoder(settings: DecoderSettings) -> ScoresheetDecoder:
    return ScoresheetDecoder(OpenAIVisionGateway(settings), settings)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _print_record(record: GameRecord, as_json: bool) -> None:
    if as_json:
        _print_json(record.to_dict())
        return
    print(record.pgn)
    for entry in record.validation.entries:
        if not entry.is_valid or entry.message:
            dots = "." if entry.color == Color.WHITE else "..."
            print(
                f"  {entry.move_number}{dots} "
                f"{entry.notation}: {entry.status} {entry.message}".rstrip()
            )
    for flag in record.diagnostics:
        print(f"  diagnostic: {flag}")


# ═══════════════════════════════════════════════════════════════════════
# Commands
# ═══════════════════════════════════════════════════════════════════════


def cmd_decode(args: argparse.Namespace, settings: DecoderSettings) -> int:
    decoder = _decoder(settings)
    images = [Path(p) for p in args.images]
    if len(images) == 1:
        record = decoder.decode(images[0], args.language, args.mode)
    else:
        record = decoder.decode_pages(images, args.language, args.mode)
    _print_record(record, args.json)
    return EXIT_OK


def cmd_boundaries(args: argparse.Namespace, settings: DecoderSettings) -> int:
    _print_json(_decoder(settings).inspect_boundaries(Path(args.image), args.columns))
    return EXIT_OK


def cmd_corners(args: argparse.Namespace, settings: DecoderSettings) -> int:
    _print_json(_decoder(settings).inspect_corners(Path(args.image)))
    return EXIT_OK


def cmd_crop(args: argparse.Namespace, settings: DecoderSettings) -> int:
    rect = Rectangle(args.x, args.y, args.width, args.height)
    Path(args.output).write_bytes(_decoder(settings).crop(Path(args.image), rect))
    log.info("Cropped image saved to %s", args.output)
    return EXIT_OK


def cmd_overlay(args: argparse.Namespace, settings: DecoderSettings) -> int:
    png = _decoder(settings).render_boundaries(Path(args.image), args.columns)
    Path(args.output).write_bytes(png)
    log.info("Boundary overlay saved to %s", args.output)
    return EXIT_OK


def cmd_prompt(args: argparse.Namespace, settings: DecoderSettings) -> int:
    print(_decoder(settings).raw_prompt(Path(args.image), args.text, args.language))
    return EXIT_OK


def cmd_validate(args: argparse.Namespace, settings: DecoderSettings) -> int:
    if args.pgn:
        white, black = extract_moves_from_pgn(Path(args.pgn).read_text(encoding="utf-8"))
    else:
        language = args.language or settings.language
        white = tokenize(" ".join(args.white), language)
        black = tokenize(" ".join(args.black), language)
    _print_record(assemble_record(white, black), args.json)
    return EXIT_OK


def cmd_evaluate(args: argparse.Namespace, settings: DecoderSettings) -> int:
    ground_truth = Path(args.ground_truth).read_text(encoding="utf-8")
    record = _decoder(settings).decode(Path(args.image), args.language, args.mode)
    _print_json(evaluate_pgn(ground_truth, record).to_dict())
    return EXIT_OK


# ═══════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chessdecoder",
        description="Turn chess scoresheet photos into validated PGN.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands")
    languages = supported_languages()

    # ── decode ──
    p_dec = sub.add_parser("decode", help="Decode scoresheet image(s) to PGN")
    p_dec.add_argument("images", nargs="+", help="Image file(s); several files are pages of one game")
    p_dec.add_argument("--language", default=None, choices=languages)
    p_dec.add_argument("--mode", default=None, choices=OCR_MODES)
    p_dec.add_argument("--json", action="store_true", help="Print the JSON response")

    # ── boundaries ──
    p_bnd = sub.add_parser("boundaries", help="Show detected table/column boundaries")
    p_bnd.add_argument("image")
    p_bnd.add_argument("--columns", type=int, default=None)

    # ── corners ──
    p_cor = sub.add_parser("corners", help="Show table corner diagnostics")
    p_cor.add_argument("image")

    # ── crop ──
    p_crop = sub.add_parser("crop", help="Crop a rectangle out of an image")
    p_crop.add_argument("image")
    p_crop.add_argument("x", type=int)
    p_crop.add_argument("y", type=int)
    p_crop.add_argument("width", type=int)
    p_crop.add_argument("height", type=int)
    p_crop.add_argument("-o", "--output", required=True)

    # ── overlay ──
    p_ovl = sub.add_parser("overlay", help="Draw detected boundaries on the image")
    p_ovl.add_argument("image")
    p_ovl.add_argument("-o", "--output", required=True)
    p_ovl.add_argument("--columns", type=int, default=None)

    # ── prompt ──
    p_prm = sub.add_parser("prompt", help="Send a raw prompt with an image to the OCR service")
    p_prm.add_argument("image")
    p_prm.add_argument("text")
    p_prm.add_argument("--language", default=None, choices=languages)

    # ── validate ──
    p_val = sub.add_parser("validate", help="Validate move lists without an image")
    p_val.add_argument("--white", nargs="*", default=[])
    p_val.add_argument("--black", nargs="*", default=[])
    p_val.add_argument("--pgn", default=None, help="Read both move lists from a PGN file instead")
    p_val.add_argument("--language", default=None, choices=languages)
    p_val.add_argument("--json", action="store_true")

    # ── evaluate ──
    p_evl = sub.add_parser("evaluate", help="Score a decode against a ground-truth PGN")
    p_evl.add_argument("image")
    p_evl.add_argument("ground_truth")
    p_evl.add_argument("--language", default=None, choices=languages)
    p_evl.add_argument("--mode", default=None, choices=OCR_MODES)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    dispatch = {
        "decode": cmd_decode,
        "boundaries": cmd_boundaries,
        "corners": cmd_corners,
        "crop": cmd_crop,
        "overlay": cmd_overlay,
        "prompt": cmd_prompt,
        "validate": cmd_validate,
        "evaluate": cmd_evaluate,
    }

    try:
        return dispatch[args.command](args, get_settings())
    except InvalidImage as exc:
        log.error("Invalid image: %s", exc)
        return EXIT_INVALID_IMAGE
    except GatewayError as exc:
        log.error("Recognition service failed: %s", exc)
        return EXIT_GATEWAY


if __name__ == "__main__":
    sys.exit(main())
