"""
Common interface for the stores holding transcription candidates.
"""

import asyncio
import functools
from abc import ABC, abstractmethod
from typing import Any, Callable, List

from pipeline.models import MediaItem, MediaKind


class CandidateStore(ABC):
    """Reads candidates and writes results for one media kind.

    Implementations wrap blocking drivers; calls are pushed to the default
    executor so the event loop keeps serving trigger requests.
    """

    kind: MediaKind
    supports_download_flag: bool = False

    @abstractmethod
    async def fetch_candidates(self) -> List[MediaItem]:
        """Return eligible, untranscribed items, newest first.

        Raises:
            StoreUnavailable: if the query cannot be executed.
        """

    @abstractmethod
    async def set_transcription(self, item_id: str, transcription: str) -> None:
        """Store ``transcription`` for ``item_id``.

        Raises:
            PersistFailed: if the update fails or matches nothing.
        """

    @abstractmethod
    async def set_download_failed(self, item_id: str) -> None:
        """Flag ``item_id`` as not downloadable.

        Only called when ``supports_download_flag`` is set.

        Raises:
            PersistFailed: if the update fails or the kind has no such flag.
        """

    async def _run_blocking(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))
