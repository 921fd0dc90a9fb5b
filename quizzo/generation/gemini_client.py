"""
Gemini generation client.

Single-shot request/response boundary to the Gemini ``generateContent``
REST endpoint. The client never retries; UpstreamError.retryable tells the
caller whether a retry could help.
"""

from __future__ import annotations

import base64
import mimetypes
from typing import TYPE_CHECKING, Any

import httpx
from loguru import logger

from ..errors import InputError, MissingCredentialError, UnsupportedFormatError, UpstreamError
from .models import Difficulty
from .prompts import build_quiz_prompt, build_text_prompt

if TYPE_CHECKING:
    from config import Settings

DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"

# Container formats the generation service cannot read
UNSUPPORTED_MIME_MARKERS = ("zip", "officedocument", "msword")

_MAGIC_SIGNATURES: list[tuple[bytes, str]] = [
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1", "application/msword"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
]

_SNIFF_LENGTH = 512


def detect_mime_type(data: bytes, filename: str | None = None) -> str:
    """
    Guess the MIME type of raw upload bytes.

    Magic numbers win over the filename; the filename is only consulted
    when the content itself is not recognised.
    """
    head = data[:_SNIFF_LENGTH]
    if not head:
        return "application/octet-stream"

    for signature, mime_type in _MAGIC_SIGNATURES:
        if head.startswith(signature):
            return mime_type

    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed

    lowered = head.lstrip().lower()
    if lowered.startswith((b"<!doctype html", b"<html")):
        return "text/html"

    try:
        head.decode("utf-8")
    except UnicodeDecodeError:
        return "application/octet-stream"
    return "text/plain"


def is_supported_mime_type(mime_type: str) -> bool:
    return not any(marker in mime_type for marker in UNSUPPORTED_MIME_MARKERS)


def ensure_supported_upload(data: bytes, filename: str | None = None) -> str:
    """
    Sniff an upload and reject container formats the generation service cannot read.

    Returns:
        The detected MIME type

    Raises:
        UnsupportedFormatError: zip, office or msword container
    """
    mime_type = detect_mime_type(data, filename)
    if not is_supported_mime_type(mime_type):
        raise UnsupportedFormatError(
            f"file mime type {mime_type} not supported by the generation service. "
            "Please extract the archive and upload a supported file (PDF, TXT, HTML, image), "
            "or provide the extracted content as text"
        )
    return mime_type


class QuizGenerationClient:
    """
    Send source material to Gemini and return its raw textual answer.

    The payload is either extracted text (sent inside the prompt) or the
    original file bytes (sent inline as base64 next to the prompt).
    """

    def __init__(
        self,
        http_client: httpx.Client,
        api_key: str | None,
        model_name: str = DEFAULT_MODEL,
        api_url: str = DEFAULT_API_URL,
        temperature: float = 0.7,
        max_output_tokens: int = 8127,
    ):
        """
        Initialize the client.

        Args:
            http_client: Shared HTTP client; its timeout bounds every request
            api_key: Gemini API key (None defers the failure to generate())
            model_name: Gemini model id
            api_url: Base URL of the Gemini REST API
            temperature: Sampling temperature
            max_output_tokens: Cap on generated tokens
        """
        self.http_client = http_client
        self.api_key = api_key
        self.model_name = model_name
        self.api_url = api_url.rstrip("/")
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.Client) -> QuizGenerationClient:
        return cls(
            http_client=http_client,
            api_key=settings.gemini_api_key,
            model_name=settings.ai_model,
            api_url=settings.gemini_api_url,
            temperature=settings.generation_temperature,
            max_output_tokens=settings.generation_max_output_tokens,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.api_url}/models/{self.model_name}:generateContent"

    def generate(
        self,
        payload: str | bytes,
        question_count: int,
        difficulty: Difficulty | str,
        filename: str | None = None,
    ) -> str:
        """
        Request a quiz and return the model's raw text.

        Args:
            payload: Extracted text, or the original file bytes
            question_count: Number of questions to ask for
            difficulty: easy | medium | hard
            filename: Declared upload name, used to refine MIME detection

        Raises:
            MissingCredentialError: No API key configured (do not retry)
            UnsupportedFormatError: File is a zip/office container
            UpstreamError: Transport failure or non-2xx answer
        """
        if not self.api_key:
            raise MissingCredentialError()
        if question_count < 1:
            raise InputError("question count must be at least 1")
        level = Difficulty.parse(difficulty)

        body = self._build_request(payload, question_count, level, filename)

        logger.info(
            f"Requesting {question_count} {level.value} questions from {self.model_name}"
        )
        try:
            response = self.http_client.post(
                self.endpoint,
                json=body,
                headers={"x-goog-api-key": self.api_key},
            )
        except httpx.TransportError as e:
            logger.error(f"Generation request failed: {e}")
            raise UpstreamError(f"generation service unreachable: {e}", retryable=True) from e

        if not response.is_success:
            status = response.status_code
            logger.error(f"Generation service returned status {status}: {response.text[:500]}")
            raise UpstreamError(
                f"generation service returned status {status}",
                status_code=status,
                body=response.text,
                retryable=status == 429 or status >= 500,
            )

        try:
            envelope = response.json()
        except ValueError as e:
            raise UpstreamError(
                "generation service returned a non-JSON envelope",
                status_code=response.status_code,
                body=response.text,
            ) from e

        text = self._candidate_text(envelope)
        if text is None:
            raise UpstreamError(
                "no candidates or parts found in generation response",
                status_code=response.status_code,
                body=response.text,
            )

        logger.debug(f"Generation returned {len(text)} chars")
        return text

    def _build_request(
        self,
        payload: str | bytes,
        question_count: int,
        difficulty: Difficulty,
        filename: str | None,
    ) -> dict[str, Any]:
        if isinstance(payload, str):
            if not payload.strip():
                raise InputError("no text could be extracted from the uploaded file")
            parts: list[dict[str, Any]] = [
                {"text": build_text_prompt(question_count, difficulty.value, payload)},
            ]
        else:
            data = bytes(payload)
            mime_type = ensure_supported_upload(data, filename)
            parts = [
                {"text": build_quiz_prompt(question_count, difficulty.value)},
                {
                    "inline_data": {
                        "mime_type": mime_type,
                        "data": base64.b64encode(data).decode("ascii"),
                    }
                },
            ]

        return {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

    @staticmethod
    def _candidate_text(envelope: Any) -> str | None:
        """Text of the first candidate, or None when the envelope has none."""
        if not isinstance(envelope, dict):
            return None
        candidates = envelope.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return None
        parts = (candidates[0].get("content") or {}).get("parts") or []
        texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
        if not texts:
            return None
        return "".join(texts)
