from fastapi.testclient import TestClient

from pipeline.bootstrap import Runtime
from pipeline.scheduler import PipelineScheduler
from server.app import create_app


class FakePipeline:
    kind = "post"
    is_running = False

    def __init__(self):
        self.runs = 0

    async def run(self):
        self.runs += 1


def make_client(schedulers):
    async def factory():
        return Runtime(schedulers=schedulers)

    return TestClient(create_app(factory, start_timers=False))


def test_post_trigger_accepted():
    pipeline = FakePipeline()
    with make_client({"post": PipelineScheduler(pipeline, 3600)}) as client:
        response = client.post("/cron/run-post-transcription")

    assert response.status_code == 202
    body = response.json()
    assert body["message"] == "Post transcription job started"
    assert body["task_id"]


def test_disabled_kind_is_not_found():
    with make_client({"post": PipelineScheduler(FakePipeline(), 3600)}) as client:
        response = client.post("/cron/run-story-transcription")
    assert response.status_code == 404


def test_story_trigger_accepted():
    pipeline = FakePipeline()
    pipeline.kind = "story"
    with make_client({"story": PipelineScheduler(pipeline, 3600)}) as client:
        response = client.post("/cron/run-story-transcription")
    assert response.status_code == 202
    assert response.json()["message"] == "Story transcription job started"


def test_health_lists_pipelines():
    with make_client({"post": PipelineScheduler(FakePipeline(), 21600)}) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "pipelines": [{"kind": "post", "running": False, "interval_seconds": 21600.0}],
    }
