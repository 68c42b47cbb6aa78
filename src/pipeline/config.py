"""
Configuration management for the media transcription pipeline.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

MB = 1024 * 1024


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_mb(name: str, default: Optional[int], optional: bool = False) -> Optional[int]:
    """Read a size in megabytes, returning bytes. "none" disables optional bands."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    raw = raw.strip().lower()
    if raw in ("none", "off"):
        if not optional:
            raise ValueError(f"{name} cannot be disabled")
        return None
    return int(float(raw) * MB)


@dataclass
class SizeThresholds:
    """Size bands used by the routing policy, in bytes.

    ``reject_above`` is the optional middle band: assets larger than it but not
    larger than ``ledger_above`` are skipped without being recorded. When it is
    ``None`` every asset between ``direct_below`` and ``ledger_above`` is
    transcoded.
    """

    direct_below: int
    ledger_above: int
    reject_above: Optional[int] = None

    def __post_init__(self):
        if self.direct_below <= 0:
            raise ValueError("direct_below must be positive")
        if self.reject_above is not None and not (
            self.direct_below <= self.reject_above <= self.ledger_above
        ):
            raise ValueError("thresholds must satisfy direct_below <= reject_above <= ledger_above")
        if self.ledger_above < self.direct_below:
            raise ValueError("ledger_above must not be smaller than direct_below")


@dataclass
class KindSettings:
    """Per media kind settings."""

    asr_endpoint: str
    thresholds: SizeThresholds
    interval_seconds: float = 6 * 60 * 60


def _default_post_settings() -> KindSettings:
    return KindSettings(
        asr_endpoint="http://127.0.0.1:8080/v1/audio/transcriptions",
        thresholds=SizeThresholds(
            direct_below=29 * MB,
            reject_above=100 * MB,
            ledger_above=500 * MB,
        ),
    )


def _default_story_settings() -> KindSettings:
    return KindSettings(
        asr_endpoint="http://127.0.0.1:8080/v1/audio/transcriptions",
        thresholds=SizeThresholds(
            direct_below=29 * MB,
            ledger_above=300 * MB,
        ),
    )


@dataclass
class PipelineConfig:
    """Configuration for the transcription pipeline."""

    # Which kinds get a timer and a trigger endpoint
    enabled_kinds: tuple = ("post",)

    # Stores
    supabase_dsn: Optional[str] = None
    mongo_uri: Optional[str] = None
    mongo_database: str = "story_harvester"
    mongo_collection: str = "stories"
    story_url_template: str = "https://media.example.com/story_harvester/s/{inst_account}/v/{story_id}"

    # ASR service
    asr_model: str = "ggml-large-v3-turbo"
    artifact_marker: str = "Altyazı M.K."

    # Transcoding
    transcoder_mode: str = "local"  # local, remote
    transcoder_endpoint: Optional[str] = None
    transcoder_api_key: Optional[str] = None
    ffmpeg_binary: str = "ffmpeg"

    # Oversize ledger
    oversize_ledger_path: str = "large_media_ids.txt"

    # HTTP
    http_user_agent: str = "toolbox-transcription"

    # Per-call timeouts (seconds)
    probe_timeout: float = 30.0
    download_timeout: float = 300.0
    transcode_timeout: float = 600.0
    transcription_timeout: float = 900.0
    store_timeout: float = 30.0

    post: KindSettings = field(default_factory=_default_post_settings)
    story: KindSettings = field(default_factory=_default_story_settings)

    def __post_init__(self):
        if self.transcoder_mode not in ("local", "remote"):
            raise ValueError(f"Unknown transcoder mode: {self.transcoder_mode}")
        unknown = set(self.enabled_kinds) - {"post", "story"}
        if unknown:
            raise ValueError(f"Unknown media kinds: {unknown}")

    def kind_settings(self, kind: str) -> KindSettings:
        if kind == "post":
            return self.post
        if kind == "story":
            return self.story
        raise ValueError(f"Unknown media kind: {kind}")

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Create configuration from environment variables."""
        post_default = _default_post_settings()
        story_default = _default_story_settings()
        enabled = os.getenv("ENABLED_KINDS", "post")
        return cls(
            enabled_kinds=tuple(k.strip() for k in enabled.split(",") if k.strip()),
            supabase_dsn=os.getenv("SUPABASE_DSN", cls.supabase_dsn),
            mongo_uri=os.getenv("MONGO_URI", cls.mongo_uri),
            mongo_database=os.getenv("MONGO_DATABASE", cls.mongo_database),
            mongo_collection=os.getenv("MONGO_COLLECTION", cls.mongo_collection),
            story_url_template=os.getenv("STORY_URL_TEMPLATE", cls.story_url_template),
            asr_model=os.getenv("ASR_MODEL", cls.asr_model),
            artifact_marker=os.getenv("ARTIFACT_MARKER", cls.artifact_marker),
            transcoder_mode=os.getenv("TRANSCODER_MODE", cls.transcoder_mode),
            transcoder_endpoint=os.getenv("TRANSCODER_ENDPOINT", cls.transcoder_endpoint),
            transcoder_api_key=os.getenv("TRANSCODER_API_KEY", cls.transcoder_api_key),
            ffmpeg_binary=os.getenv("FFMPEG_BINARY", cls.ffmpeg_binary),
            oversize_ledger_path=os.getenv("OVERSIZE_LEDGER_PATH", cls.oversize_ledger_path),
            http_user_agent=os.getenv("HTTP_USER_AGENT", cls.http_user_agent),
            probe_timeout=_env_float("PROBE_TIMEOUT_SECONDS", cls.probe_timeout),
            download_timeout=_env_float("DOWNLOAD_TIMEOUT_SECONDS", cls.download_timeout),
            transcode_timeout=_env_float("TRANSCODE_TIMEOUT_SECONDS", cls.transcode_timeout),
            transcription_timeout=_env_float("TRANSCRIPTION_TIMEOUT_SECONDS", cls.transcription_timeout),
            store_timeout=_env_float("STORE_TIMEOUT_SECONDS", cls.store_timeout),
            post=KindSettings(
                asr_endpoint=os.getenv("POST_ASR_ENDPOINT", post_default.asr_endpoint),
                thresholds=SizeThresholds(
                    direct_below=_env_mb("POST_DIRECT_BELOW_MB", post_default.thresholds.direct_below),
                    reject_above=_env_mb("POST_REJECT_ABOVE_MB", post_default.thresholds.reject_above, optional=True),
                    ledger_above=_env_mb("POST_LEDGER_ABOVE_MB", post_default.thresholds.ledger_above),
                ),
                interval_seconds=_env_float("POST_TRANSCRIPTION_INTERVAL_SECONDS", post_default.interval_seconds),
            ),
            story=KindSettings(
                asr_endpoint=os.getenv("STORY_ASR_ENDPOINT", story_default.asr_endpoint),
                thresholds=SizeThresholds(
                    direct_below=_env_mb("STORY_DIRECT_BELOW_MB", story_default.thresholds.direct_below),
                    reject_above=_env_mb("STORY_REJECT_ABOVE_MB", story_default.thresholds.reject_above, optional=True),
                    ledger_above=_env_mb("STORY_LEDGER_ABOVE_MB", story_default.thresholds.ledger_above),
                ),
                interval_seconds=_env_float("STORY_TRANSCRIPTION_INTERVAL_SECONDS", story_default.interval_seconds),
            ),
        )
