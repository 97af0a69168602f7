"""Tests for the OpenAI vision gateway and OCR prompts."""

from __future__ import annotations

import base64
from types import SimpleNamespace
from typing import Any

import httpx
import openai
import pytest

from chessdecoder.config import DecoderSettings
from chessdecoder.errors import GatewayUnauthorized, GatewayUnavailable
from chessdecoder.recognition import OpenAIVisionGateway, build_prompt

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class _FakeClient:
    def __init__(self, content: str | None = "e4 e5", error: Exception | None = None) -> None:
        self.requests: list[dict[str, Any]] = []
        self._content = content
        self._error = error
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs: Any) -> SimpleNamespace:
        self.requests.append(kwargs)
        if self._error is not None:
            raise self._error
        message = SimpleNamespace(content=self._content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def api_settings() -> DecoderSettings:
    return DecoderSettings(openai_api_key="sk-test", ocr_model="gpt-4o-mini")


class TestPrompts:
    def test_columns_prompt_lists_characters(self) -> None:
        prompt = build_prompt("German")
        assert "written in German" in prompt
        assert "S, " in prompt
        assert "json list" in prompt

    def test_scopes_differ(self) -> None:
        assert build_prompt("English", "cells") != build_prompt("English", "page")

    def test_unknown_scope(self) -> None:
        with pytest.raises(ValueError, match="scope"):
            build_prompt("English", "diagonal")


class TestOpenAIVisionGateway:
    def test_request_shape(self, api_settings: DecoderSettings) -> None:
        client = _FakeClient(content="  [\"e4\"]\n")
        gateway = OpenAIVisionGateway(api_settings, client=client)  # type: ignore[arg-type]
        png = b"\x89PNG\r\n\x1a\nrest"
        assert gateway.recognize(png, "English", prompt="read it") == '["e4"]'

        request = client.requests[0]
        assert request["model"] == "gpt-4o-mini"
        assert request["max_tokens"] == 1000
        text_part, image_part = request["messages"][0]["content"]
        assert text_part == {"type": "text", "text": "read it"}
        expected = "data:image/png;base64," + base64.b64encode(png).decode("ascii")
        assert image_part["image_url"]["url"] == expected

    def test_default_prompt_and_jpeg_mime(self, api_settings: DecoderSettings) -> None:
        client = _FakeClient()
        OpenAIVisionGateway(api_settings, client=client).recognize(b"\xff\xd8jpeg", "French")  # type: ignore[arg-type]
        content = client.requests[0]["messages"][0]["content"]
        assert content[0]["text"] == build_prompt("French")
        assert content[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")

    def test_empty_content(self, api_settings: DecoderSettings) -> None:
        gateway = OpenAIVisionGateway(api_settings, client=_FakeClient(content=None))  # type: ignore[arg-type]
        assert gateway.recognize(b"\xff\xd8") == ""

    def test_missing_key(self) -> None:
        gateway = OpenAIVisionGateway(DecoderSettings(openai_api_key=None))
        with pytest.raises(GatewayUnauthorized, match="OPENAI_API_KEY"):
            gateway.recognize(b"\xff\xd8")

    def test_rejected_credentials(self, api_settings: DecoderSettings) -> None:
        error = openai.AuthenticationError(
            "bad key", response=httpx.Response(401, request=_REQUEST), body=None
        )
        gateway = OpenAIVisionGateway(api_settings, client=_FakeClient(error=error))  # type: ignore[arg-type]
        with pytest.raises(GatewayUnauthorized):
            gateway.recognize(b"\xff\xd8")

    def test_connection_failure(self, api_settings: DecoderSettings) -> None:
        error = openai.APIConnectionError(request=_REQUEST)
        gateway = OpenAIVisionGateway(api_settings, client=_FakeClient(error=error))  # type: ignore[arg-type]
        with pytest.raises(GatewayUnavailable):
            gateway.recognize(b"\xff\xd8")

    def test_client_built_from_settings(self) -> None:
        settings = DecoderSettings(openai_api_key="sk-test", ocr_timeout=5.0, ocr_max_retries=0)
        client = OpenAIVisionGateway(settings).client
        assert client.api_key == "sk-test"
        assert client.max_retries == 0
