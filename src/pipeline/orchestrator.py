"""
Run loop of the transcription pipeline.

One run selects every candidate of a media kind and processes them one by one:

    probe size -> route -> [transcode] -> transcribe -> persist

A failure while handling an item only skips that item. Only a failing
candidate query ends the run early.
"""

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pipeline.config import SizeThresholds
from pipeline.errors import (
    DownloadFailed,
    PersistFailed,
    PipelineError,
    SizeUnknown,
    StoreUnavailable,
)
from pipeline.ledger import OversizeLedger
from pipeline.models import MediaItem
from pipeline.routing import Route, decide_route
from store.base import CandidateStore
from transcription.asr_client import TranscriptionClient
from transcription.postprocess import DEFAULT_ARTIFACT_MARKER, clean_transcript
from video.media_fetcher import MediaFetcher
from video.size_prober import SizeProber
from video.transcoder import MediaTranscoder

logger = logging.getLogger(__name__)


class ItemOutcome(str, Enum):
    TRANSCRIBED = "transcribed"
    OVERSIZE = "oversize"      # recorded in the ledger
    TOO_LARGE = "too_large"    # middle band, not recorded
    SKIPPED = "skipped"        # failed at some stage


@dataclass
class RunSummary:
    """Outcome counts of one pipeline run."""

    kind: str
    candidates: int = 0
    outcomes: Counter = field(default_factory=Counter)
    aborted: bool = False
    duration_seconds: float = 0.0

    def count(self, outcome: ItemOutcome) -> int:
        return self.outcomes[outcome]


class TranscriptionPipeline:
    """Processes the candidates of one media kind, strictly sequentially."""

    def __init__(
        self,
        store: CandidateStore,
        prober: SizeProber,
        fetcher: MediaFetcher,
        transcoder: MediaTranscoder,
        transcriber: TranscriptionClient,
        ledger: OversizeLedger,
        thresholds: SizeThresholds,
        artifact_marker: str = DEFAULT_ARTIFACT_MARKER,
    ):
        self.store = store
        self.prober = prober
        self.fetcher = fetcher
        self.transcoder = transcoder
        self.transcriber = transcriber
        self.ledger = ledger
        self.thresholds = thresholds
        self.artifact_marker = artifact_marker
        self._run_lock = asyncio.Lock()

    @property
    def kind(self) -> str:
        return self.store.kind.value

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    async def run(self) -> Optional[RunSummary]:
        """
        Execute one run.

        Returns:
            The run summary, or ``None`` when another run of this pipeline was
            already in progress and this one was skipped.
        """
        if self._run_lock.locked():
            logger.warning(f"{self.kind} transcription run already in progress, skipping")
            return None

        async with self._run_lock:
            return await self._run()

    async def _run(self) -> RunSummary:
        summary = RunSummary(kind=self.kind)
        started = time.monotonic()
        logger.info(f"Starting {self.kind} transcription job")

        try:
            items = await self.store.fetch_candidates()
        except StoreUnavailable as e:
            logger.error(f"Error getting {self.kind} candidates: {e}")
            summary.aborted = True
            summary.duration_seconds = time.monotonic() - started
            return summary

        summary.candidates = len(items)
        logger.info(f"Found {len(items)} {self.kind} items to transcribe")

        for item in items:
            outcome = await self.process_item(item)
            summary.outcomes[outcome] += 1

        summary.duration_seconds = time.monotonic() - started
        logger.info(
            "%s transcription job completed in %.1fs: %d transcribed, %d oversize, %d too large, %d skipped",
            self.kind,
            summary.duration_seconds,
            summary.count(ItemOutcome.TRANSCRIBED),
            summary.count(ItemOutcome.OVERSIZE),
            summary.count(ItemOutcome.TOO_LARGE),
            summary.count(ItemOutcome.SKIPPED),
        )
        return summary

    async def process_item(self, item: MediaItem) -> ItemOutcome:
        """Run one item through the pipeline. Never raises."""
        logger.info(f"Processing {self.kind} ID: {item.id}")
        try:
            return await self._process(item)
        except Exception:
            logger.exception(f"Unexpected error processing {self.kind} ID {item.id}")
            return ItemOutcome.SKIPPED

    async def _process(self, item: MediaItem) -> ItemOutcome:
        try:
            size = await self.prober.probe(item.source_url)
        except SizeUnknown as e:
            logger.warning(f"Error checking video size for {self.kind} ID {item.id}: {e}")
            await self._mark_download_failed(item)
            return ItemOutcome.SKIPPED

        route = decide_route(size, self.thresholds)

        if route is Route.LEDGER:
            self.ledger.mark_oversize(item.id)
            logger.info(
                f"{self.kind} ID {item.id} is larger than {self.thresholds.ledger_above} bytes "
                f"({size} bytes), recorded as oversize and skipped"
            )
            return ItemOutcome.OVERSIZE

        if route is Route.REJECT:
            logger.info(f"Video too large for {self.kind} ID {item.id}: {size} bytes")
            return ItemOutcome.TOO_LARGE

        try:
            audio = await self._acquire_audio(item, route)
            text = await self.transcriber.transcribe(audio)
        except DownloadFailed as e:
            logger.warning(f"Error downloading video for {self.kind} ID {item.id}: {e}")
            await self._mark_download_failed(item)
            return ItemOutcome.SKIPPED
        except PipelineError as e:
            logger.warning(f"Error transcribing {self.kind} ID {item.id} via {route.value} path: {e}")
            return ItemOutcome.SKIPPED

        text = clean_transcript(text, self.artifact_marker)

        try:
            await self.store.set_transcription(item.id, text)
        except PersistFailed as e:
            logger.error(f"Error updating {self.kind} ID {item.id}: {e}")
            return ItemOutcome.SKIPPED

        logger.info(f"Successfully transcribed {self.kind} ID: {item.id}")
        return ItemOutcome.TRANSCRIBED

    async def _acquire_audio(self, item: MediaItem, route: Route) -> bytes:
        if route is Route.DIRECT:
            # The ASR service accepts the raw container as-is
            return await self.fetcher.fetch(item.source_url)
        return await self.transcoder.transcode(item.source_url)

    async def _mark_download_failed(self, item: MediaItem) -> None:
        if not self.store.supports_download_flag:
            return
        try:
            await self.store.set_download_failed(item.id)
        except PersistFailed as e:
            logger.error(f"Error marking {self.kind} ID {item.id} as not downloaded: {e}")
