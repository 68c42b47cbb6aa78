import pytest

from pipeline import main
from pipeline.orchestrator import ItemOutcome, RunSummary


def fake_run_once(summary):
    calls = []

    async def run_once(config, kind):
        calls.append((config, kind))
        return summary

    return run_once, calls


def test_completed_run_exits_zero(monkeypatch):
    summary = RunSummary(kind="story", candidates=1)
    summary.outcomes[ItemOutcome.TRANSCRIBED] += 1
    run_once, calls = fake_run_once(summary)
    monkeypatch.setattr(main, "run_once", run_once)

    assert main.main(["--kind", "story", "--ledger", "/tmp/ids.txt"]) == 0
    config, kind = calls[0]
    assert kind == "story"
    assert config.oversize_ledger_path == "/tmp/ids.txt"


def test_aborted_run_exits_one(monkeypatch):
    run_once, _ = fake_run_once(RunSummary(kind="post", aborted=True))
    monkeypatch.setattr(main, "run_once", run_once)
    assert main.main(["--kind", "post"]) == 1


def test_kind_is_required():
    with pytest.raises(SystemExit):
        main.main([])
