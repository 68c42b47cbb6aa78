"""FastAPI server exposing HTTP endpoints to launch transcription runs.

Run with:
uvicorn server.app:app --host 0.0.0.0 --port 8080

POST /cron/run-post-transcription
POST /cron/run-story-transcription

No body is required. The server starts the run as a background task and
responds immediately with a 202 status; the outcome of the run is only
visible through logs and the stored transcriptions. Each enabled kind also
runs on its own interval timer while the server is up.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from pydantic import BaseModel

from pipeline.bootstrap import Runtime, build_runtime
from pipeline.config import PipelineConfig

logger = logging.getLogger(__name__)

RuntimeFactory = Callable[[], Awaitable[Runtime]]


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------
class TriggerResponse(BaseModel):
    message: str
    task_id: str


class PipelineStatus(BaseModel):
    kind: str
    running: bool
    interval_seconds: float


class HealthResponse(BaseModel):
    status: str = "ok"
    pipelines: List[PipelineStatus] = []


async def _runtime_from_env() -> Runtime:
    return await build_runtime(PipelineConfig.from_env())


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
router = APIRouter()


def _trigger(request: Request, kind: str) -> TriggerResponse:
    runtime: Runtime = request.app.state.runtime
    scheduler = runtime.schedulers.get(kind)
    if scheduler is None:
        raise HTTPException(status_code=404, detail=f"{kind} transcription is not enabled")
    task_id = scheduler.trigger()
    return TriggerResponse(message=f"{kind.capitalize()} transcription job started", task_id=task_id)


@router.post("/cron/run-post-transcription", response_model=TriggerResponse, status_code=202)
async def run_post_transcription(request: Request):
    return _trigger(request, "post")


@router.post("/cron/run-story-transcription", response_model=TriggerResponse, status_code=202)
async def run_story_transcription(request: Request):
    return _trigger(request, "story")


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    runtime: Runtime = request.app.state.runtime
    return HealthResponse(
        pipelines=[
            PipelineStatus(
                kind=kind,
                running=scheduler.pipeline.is_running,
                interval_seconds=scheduler.interval_seconds,
            )
            for kind, scheduler in runtime.schedulers.items()
        ]
    )


def create_app(runtime_factory: Optional[RuntimeFactory] = None, start_timers: bool = True) -> FastAPI:
    """Build the API. ``runtime_factory`` defaults to wiring from environment variables."""
    factory = runtime_factory or _runtime_from_env

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        runtime = await factory()
        app.state.runtime = runtime
        if start_timers:
            for scheduler in runtime.schedulers.values():
                scheduler.start()
        logger.info("Transcription pipelines ready: %s", ", ".join(runtime.schedulers) or "none")
        try:
            yield
        finally:
            await runtime.close()
            logger.info("Transcription pipelines stopped")

    application = FastAPI(title="Media Transcription Pipeline API", lifespan=lifespan)
    application.include_router(router)
    return application


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
app = create_app()
