"""
Video to audio transcoding, either through a local FFmpeg process or a remote
conversion service.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import aiohttp

from pipeline.errors import DownloadFailed, TranscodeFailed
from video.media_fetcher import MediaFetcher

logger = logging.getLogger(__name__)


class MediaTranscoder(ABC):
    """Produces an audio-only payload for a video asset."""

    @abstractmethod
    async def transcode(self, source_url: str) -> bytes:
        """Return encoded audio for the asset at ``source_url``."""


class FFmpegTranscoder(MediaTranscoder):
    """Transcoder running FFmpeg locally, piping the video through stdin/stdout."""

    def __init__(
        self,
        fetcher: MediaFetcher,
        ffmpeg_binary: str = "ffmpeg",
        timeout: float = 600.0,
        output_format: str = "mp3",
    ):
        self.fetcher = fetcher
        self.ffmpeg_binary = ffmpeg_binary
        self.timeout = timeout
        self.output_format = output_format

    def _command(self) -> List[str]:
        return [
            self.ffmpeg_binary,
            '-hide_banner',
            '-loglevel', 'error',
            '-i', 'pipe:0',
            '-vn',  # No video
            '-f', self.output_format,
            'pipe:1',
        ]

    async def transcode(self, source_url: str) -> bytes:
        video = await self.fetcher.fetch(source_url)
        return await self.convert(video)

    async def convert(self, video: bytes) -> bytes:
        """
        Extract the audio stream of ``video``.

        Args:
            video: Raw container bytes (mp4, mov, ...)

        Returns:
            Encoded audio bytes in ``output_format``

        Raises:
            TranscodeFailed: on a non-zero exit, a timeout or empty output.
                The FFmpeg stderr text is attached as the diagnostic.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *self._command(),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise TranscodeFailed("could not start ffmpeg", str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(input=video), timeout=self.timeout)
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            raise TranscodeFailed(f"ffmpeg timed out after {self.timeout}s") from None

        diagnostic = stderr.decode(errors="replace")
        if process.returncode != 0:
            raise TranscodeFailed(f"ffmpeg exited with status {process.returncode}", diagnostic)
        if not stdout:
            raise TranscodeFailed("ffmpeg produced no audio", diagnostic)

        logger.debug(f"Transcoded {len(video)} bytes of video into {len(stdout)} bytes of audio")
        return stdout


class RemoteTranscoder(MediaTranscoder):
    """Transcoder delegating to a conversion service that returns a download URL."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        endpoint: str,
        fetcher: MediaFetcher,
        api_key: Optional[str] = None,
        timeout: float = 600.0,
    ):
        self.session = session
        self.endpoint = endpoint
        self.fetcher = fetcher
        self.api_key = api_key
        self.timeout = timeout

    async def transcode(self, source_url: str) -> bytes:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key

        try:
            async with self.session.post(
                self.endpoint,
                json={"media_uri": source_url},
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                status = response.status
                body = await response.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TranscodeFailed("transcoding service unreachable", repr(e)) from e

        if not 200 <= status < 300:
            raise TranscodeFailed(f"transcoding service returned status {status}", body)

        try:
            audio_url = json.loads(body)["url"]
        except (ValueError, KeyError, TypeError):
            raise TranscodeFailed("transcoding service returned an unexpected body", body) from None
        if not isinstance(audio_url, str) or not audio_url:
            raise TranscodeFailed("transcoding service returned an empty url", body)

        try:
            return await self.fetcher.fetch(audio_url)
        except DownloadFailed as e:
            raise TranscodeFailed("converted audio could not be fetched", str(e)) from e


def build_transcoder(config, session: aiohttp.ClientSession, fetcher: MediaFetcher) -> MediaTranscoder:
    """Create the transcoder selected by ``config.transcoder_mode``."""
    if config.transcoder_mode == "remote":
        if not config.transcoder_endpoint:
            raise ValueError("TRANSCODER_ENDPOINT is required when TRANSCODER_MODE=remote")
        return RemoteTranscoder(
            session,
            config.transcoder_endpoint,
            fetcher,
            api_key=config.transcoder_api_key,
            timeout=config.transcode_timeout,
        )
    return FFmpegTranscoder(
        fetcher,
        ffmpeg_binary=config.ffmpeg_binary,
        timeout=config.transcode_timeout,
    )
