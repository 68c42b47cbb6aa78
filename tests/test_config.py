import pytest

from pipeline.config import MB, PipelineConfig


def test_defaults(monkeypatch):
    for name in ("ENABLED_KINDS", "POST_REJECT_ABOVE_MB", "TRANSCODER_MODE", "ASR_MODEL"):
        monkeypatch.delenv(name, raising=False)
    config = PipelineConfig.from_env()
    assert config.enabled_kinds == ("post",)
    assert config.asr_model == "ggml-large-v3-turbo"
    assert config.oversize_ledger_path == "large_media_ids.txt"
    assert config.post.thresholds.direct_below == 29 * MB
    assert config.post.thresholds.reject_above == 100 * MB
    assert config.post.thresholds.ledger_above == 500 * MB
    assert config.story.thresholds.reject_above is None
    assert config.story.thresholds.ledger_above == 300 * MB
    assert config.post.interval_seconds == 6 * 60 * 60


def test_from_env_overrides(monkeypatch):
    monkeypatch.setenv("ENABLED_KINDS", "post, story")
    monkeypatch.setenv("POST_REJECT_ABOVE_MB", "none")
    monkeypatch.setenv("STORY_LEDGER_ABOVE_MB", "250")
    monkeypatch.setenv("STORY_ASR_ENDPOINT", "http://asr.internal/v1/audio/transcriptions")
    monkeypatch.setenv("PROBE_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("TRANSCODER_MODE", "remote")
    monkeypatch.setenv("TRANSCODER_ENDPOINT", "http://convert.internal/convert")

    config = PipelineConfig.from_env()

    assert config.enabled_kinds == ("post", "story")
    assert config.post.thresholds.reject_above is None
    assert config.story.thresholds.ledger_above == 250 * MB
    assert config.kind_settings("story").asr_endpoint == "http://asr.internal/v1/audio/transcriptions"
    assert config.probe_timeout == 5.0
    assert config.transcoder_mode == "remote"
    assert config.transcoder_endpoint == "http://convert.internal/convert"


def test_required_band_cannot_be_disabled(monkeypatch):
    monkeypatch.setenv("POST_DIRECT_BELOW_MB", "off")
    with pytest.raises(ValueError):
        PipelineConfig.from_env()


def test_invalid_number_raises(monkeypatch):
    monkeypatch.setenv("DOWNLOAD_TIMEOUT_SECONDS", "soon")
    with pytest.raises(ValueError):
        PipelineConfig.from_env()


def test_invalid_mode_and_kind():
    with pytest.raises(ValueError):
        PipelineConfig(transcoder_mode="cloud")
    with pytest.raises(ValueError):
        PipelineConfig(enabled_kinds=("reel",))
    with pytest.raises(ValueError):
        PipelineConfig().kind_settings("reel")
