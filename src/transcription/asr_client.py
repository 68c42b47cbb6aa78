"""
HTTP client for the remote speech-to-text service.
"""

import asyncio
import json
import logging
from typing import Any, Dict

import aiohttp

from pipeline.errors import TranscriptionFailed

logger = logging.getLogger(__name__)


class TranscriptionClient:
    """Client for an OpenAI-compatible ``/v1/audio/transcriptions`` endpoint."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        endpoint: str,
        model: str = "ggml-large-v3-turbo",
        timeout: float = 900.0,
        filename: str = "audio.mp3",
    ):
        """
        Initialize the transcription client.

        Args:
            session: Shared aiohttp session
            endpoint: Full URL of the transcription endpoint
            model: Model identifier sent in the ``model`` form field
            timeout: Total timeout for one upload, in seconds
            filename: File name announced for the uploaded payload
        """
        self.session = session
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout
        self.filename = filename

    def _build_form(self, audio: bytes) -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field("model", self.model)
        form.add_field(
            "file",
            audio,
            filename=self.filename,
            content_type="application/octet-stream",
        )
        return form

    async def transcribe(self, audio: bytes) -> str:
        """
        Upload ``audio`` and return the recognized text.

        Raises:
            TranscriptionFailed: on transport errors, a non-200 status, or a
                body that is not JSON with a string ``text`` field.
        """
        try:
            async with self.session.post(
                self.endpoint,
                data=self._build_form(audio),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                status = response.status
                body = await response.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TranscriptionFailed(None, repr(e)) from e

        if status != 200:
            raise TranscriptionFailed(status, body)

        try:
            result: Dict[str, Any] = json.loads(body)
            text = result["text"]
        except (ValueError, KeyError, TypeError):
            raise TranscriptionFailed(status, body) from None
        if not isinstance(text, str):
            raise TranscriptionFailed(status, body)

        logger.debug(f"Received {len(text)} characters of transcript from {self.endpoint}")
        return text

