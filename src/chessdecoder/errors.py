"""Exception hierarchy and non-fatal diagnostic flags for the decode pipeline."""

from __future__ import annotations

from enum import StrEnum


class DecoderError(Exception):
    """Base class for failures that abort a decode request."""


class InvalidImage(DecoderError, ValueError):
    """The input buffer is empty, unreadable, or has a zero dimension."""


class GatewayError(DecoderError):
    """The text recognition gateway could not produce text."""


class GatewayUnauthorized(GatewayError):
    """Credentials for the recognition service are missing or rejected."""


class GatewayUnavailable(GatewayError):
    """The recognition service timed out or is unreachable."""


class DiagnosticFlag(StrEnum):
    """Non-fatal conditions reported next to a decode result."""

    BOUNDARY_LOW_CONFIDENCE = "BoundaryLowConfidence"
