"""
Download helper for remote media assets.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from pipeline.errors import DownloadFailed

logger = logging.getLogger(__name__)

# Longest error body carried into log lines
_MAX_ERROR_BODY = 500


class MediaFetcher:
    """Fetches a whole asset body into memory."""

    def __init__(self, session: aiohttp.ClientSession, timeout: float = 300.0, user_agent: Optional[str] = None):
        self.session = session
        self.timeout = timeout
        self.user_agent = user_agent

    async def fetch(self, url: str) -> bytes:
        headers = {"User-Agent": self.user_agent} if self.user_agent else {}
        try:
            async with self.session.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if not 200 <= response.status < 300:
                    body = await response.text(errors="replace")
                    raise DownloadFailed(
                        f"download returned status {response.status}: {body[:_MAX_ERROR_BODY]}"
                    )
                data = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadFailed(f"download failed: {e!r}") from e

        logger.debug(f"Fetched {len(data)} bytes")
        return data
