"""
Metadata-only size probe for remote media assets.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from pipeline.errors import SizeUnknown

logger = logging.getLogger(__name__)


class SizeProber:
    """Reads the Content-Length of an asset with a HEAD request."""

    def __init__(self, session: aiohttp.ClientSession, timeout: float = 30.0, user_agent: Optional[str] = None):
        self.session = session
        self.timeout = timeout
        self.user_agent = user_agent

    async def probe(self, url: str) -> int:
        """
        Return the size of the asset at ``url`` in bytes.

        Raises:
            SizeUnknown: if the request fails, the status is not 2xx, or the
                length header is missing or malformed.
        """
        headers = {"User-Agent": self.user_agent} if self.user_agent else {}
        try:
            async with self.session.head(
                url,
                headers=headers,
                allow_redirects=True,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                status = response.status
                raw_length = response.headers.get("Content-Length")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SizeUnknown(f"size probe failed: {e!r}") from e

        if not 200 <= status < 300:
            raise SizeUnknown(f"size probe returned status {status}")
        if raw_length is None:
            raise SizeUnknown("size probe response has no Content-Length")
        try:
            size = int(raw_length.strip())
        except ValueError:
            raise SizeUnknown(f"unparseable Content-Length: {raw_length!r}") from None
        if size < 0:
            raise SizeUnknown(f"negative Content-Length: {size}")

        logger.debug(f"Probed {size} bytes")
        return size
