"""
Wiring of pipeline components from a ``PipelineConfig``.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

import aiohttp

from pipeline.config import PipelineConfig
from pipeline.ledger import OversizeLedger
from pipeline.orchestrator import TranscriptionPipeline
from pipeline.scheduler import PipelineScheduler
from store.base import CandidateStore
from transcription.asr_client import TranscriptionClient
from video.media_fetcher import MediaFetcher
from video.size_prober import SizeProber
from video.transcoder import build_transcoder

logger = logging.getLogger(__name__)


def build_store(kind: str, config: PipelineConfig):
    """Connect the store for ``kind``. Returns the store and its close callback."""
    if kind == "post":
        from store.postgres import PostStore, create_post_engine

        if not config.supabase_dsn:
            raise ValueError("SUPABASE_DSN is required for post transcription")
        engine = create_post_engine(config.supabase_dsn, timeout=config.store_timeout)
        return PostStore(engine), engine.dispose

    if kind == "story":
        from store.mongo import StoryStore, connect_story_collection

        if not config.mongo_uri:
            raise ValueError("MONGO_URI is required for story transcription")
        collection = connect_story_collection(
            config.mongo_uri,
            config.mongo_database,
            config.mongo_collection,
            timeout=config.store_timeout,
        )
        store = StoryStore(collection, config.story_url_template, timeout=config.store_timeout)
        return store, collection.database.client.close

    raise ValueError(f"Unknown media kind: {kind}")


def build_pipeline(
    kind: str,
    config: PipelineConfig,
    session: aiohttp.ClientSession,
    store: CandidateStore,
    ledger: OversizeLedger,
) -> TranscriptionPipeline:
    settings = config.kind_settings(kind)
    fetcher = MediaFetcher(session, timeout=config.download_timeout, user_agent=config.http_user_agent)
    return TranscriptionPipeline(
        store=store,
        prober=SizeProber(session, timeout=config.probe_timeout, user_agent=config.http_user_agent),
        fetcher=fetcher,
        transcoder=build_transcoder(config, session, fetcher),
        transcriber=TranscriptionClient(
            session,
            settings.asr_endpoint,
            model=config.asr_model,
            timeout=config.transcription_timeout,
        ),
        ledger=ledger,
        thresholds=settings.thresholds,
        artifact_marker=config.artifact_marker,
    )


@dataclass
class Runtime:
    """Everything a process needs to run pipelines, plus teardown."""

    session: Optional[aiohttp.ClientSession] = None
    schedulers: Dict[str, PipelineScheduler] = field(default_factory=dict)
    closers: List[Callable[[], None]] = field(default_factory=list)

    async def close(self) -> None:
        for scheduler in self.schedulers.values():
            await scheduler.stop()
        if self.session is not None:
            await self.session.close()
        for close in self.closers:
            try:
                close()
            except Exception as e:
                logger.warning(f"Failed to close store connection: {e}")


async def build_runtime(config: PipelineConfig, kinds: Optional[Iterable[str]] = None) -> Runtime:
    """Create the HTTP session, stores and one scheduler per kind."""
    session = aiohttp.ClientSession()
    runtime = Runtime(session=session)
    ledger = OversizeLedger(config.oversize_ledger_path)
    try:
        for kind in kinds if kinds is not None else config.enabled_kinds:
            store, close = build_store(kind, config)
            runtime.closers.append(close)
            pipeline = build_pipeline(kind, config, session, store, ledger)
            runtime.schedulers[kind] = PipelineScheduler(
                pipeline,
                interval_seconds=config.kind_settings(kind).interval_seconds,
            )
    except Exception:
        await runtime.close()
        raise
    return runtime
