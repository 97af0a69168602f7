"""Text recognition gateway: image bytes in, raw transcription out."""

from __future__ import annotations

import base64
import logging
from typing import Protocol

import openai
from openai import OpenAI

from chessdecoder.config import DecoderSettings
from chessdecoder.errors import GatewayUnauthorized, GatewayUnavailable
from chessdecoder.recognition.prompts import build_prompt

_LOGGER = logging.getLogger(__name__)


class TextRecognitionGateway(Protocol):
    """Anything that can turn an encoded image into text.

    Implementations raise :class:`GatewayUnauthorized` for credential
    problems and :class:`GatewayUnavailable` for timeouts and outages.
    """

    def recognize(
        self, image: bytes, language: str = "English", *, prompt: str | None = None
    ) -> str: ...


def _mime_type(image: bytes) -> str:
    if image.startswith(b"\x89PNG"):
        return "image/png"
    return "image/jpeg"


class OpenAIVisionGateway:
    """Chat-completions vision call with an inline base64 image."""

    def __init__(self, settings: DecoderSettings, client: OpenAI | None = None) -> None:
        self._settings = settings
        self._client = client
        self.max_tokens = 1000

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self._settings.openai_api_key:
                raise GatewayUnauthorized("OPENAI_API_KEY not set")
            self._client = OpenAI(
                api_key=self._settings.openai_api_key,
                timeout=self._settings.ocr_timeout,
                max_retries=self._settings.ocr_max_retries,
            )
        return self._client

    def recognize(
        self, image: bytes, language: str = "English", *, prompt: str | None = None
    ) -> str:
        text = prompt if prompt is not None else build_prompt(language)
        data_url = f"data:{_mime_type(image)};base64,{base64.b64encode(image).decode('ascii')}"
        try:
            resp = self.client.chat.completions.create(
                model=self._settings.ocr_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": text},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    }
                ],
                max_tokens=self.max_tokens,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            _LOGGER.error("Recognition service rejected credentials: %s", exc)
            raise GatewayUnauthorized(str(exc)) from exc
        except openai.APIError as exc:
            # Timeouts, connection failures, rate limits and 5xx all land here.
            _LOGGER.error("Recognition service unavailable: %s", exc)
            raise GatewayUnavailable(str(exc)) from exc

        content = resp.choices[0].message.content if resp.choices else None
        return (content or "").strip()
