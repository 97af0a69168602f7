"""Text recognition boundary: prompts and gateway implementations."""

from chessdecoder.recognition.gateway import OpenAIVisionGateway, TextRecognitionGateway
from chessdecoder.recognition.prompts import build_prompt

__all__ = ["OpenAIVisionGateway", "TextRecognitionGateway", "build_prompt"]
