import json

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from pipeline.errors import PersistFailed, StoreUnavailable
from pipeline.models import MediaKind
from store.postgres import PostStore, _normalize_db_url, parse_url_expiry

NOW = 1_700_000_000
FUTURE = format(NOW + 86_400, "x")
PAST = format(NOW - 86_400, "x")


def cdn_url(name, expiry):
    return f"https://scontent.cdninstagram.com/{name}.mp4?_nc_ht=x&oe={expiry}&_nc_sid=1"


def memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def engine():
    engine = memory_engine()
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE n8n_influencer_accounts (id INTEGER PRIMARY KEY, collect_stories BOOLEAN)"))
        conn.execute(
            text(
                "CREATE TABLE n8n_influencer_posts ("
                "id INTEGER PRIMARY KEY, account_id INTEGER, video_url TEXT, "
                "transcription TEXT, taken_at TEXT)"
            )
        )
        conn.execute(text("INSERT INTO n8n_influencer_accounts VALUES (1, 1), (2, 0)"))
        rows = [
            (1, 1, cdn_url("a", FUTURE), None, "2024-01-01T10:00:00"),
            (2, 1, cdn_url("b", FUTURE), None, "2024-03-01T10:00:00"),
            (3, 1, cdn_url("c", PAST), None, "2024-04-01T10:00:00"),
            (4, 1, "https://cdn.example.com/d.mp4", None, "2024-05-01T10:00:00"),
            (5, 2, cdn_url("e", FUTURE), None, "2024-06-01T10:00:00"),
            (6, 1, cdn_url("f", FUTURE), "already done", "2024-07-01T10:00:00"),
            (7, 1, None, None, "2024-08-01T10:00:00"),
        ]
        for row in rows:
            conn.execute(
                text("INSERT INTO n8n_influencer_posts VALUES (:id, :account_id, :video_url, :transcription, :taken_at)"),
                dict(zip(("id", "account_id", "video_url", "transcription", "taken_at"), row)),
            )
    yield engine
    engine.dispose()


def test_parse_url_expiry():
    assert parse_url_expiry(cdn_url("a", "6650A1B2")) == 0x6650A1B2
    assert parse_url_expiry("https://cdn.example.com/a.mp4") is None
    assert parse_url_expiry(None) is None


def test_normalize_db_url():
    assert _normalize_db_url("postgres://u:p@db:5432/app") == "postgresql+psycopg2://u:p@db:5432/app"
    assert _normalize_db_url("postgresql://u:p@db/app") == "postgresql://u:p@db/app"


async def test_candidates_are_eligible_and_newest_first(engine):
    store = PostStore(engine, clock=lambda: NOW)

    posts = await store.fetch_candidates()

    assert [p.id for p in posts] == ["2", "1"]
    assert all(p.kind is MediaKind.POST for p in posts)
    assert posts[0].source_url == cdn_url("b", FUTURE)
    assert posts[0].account_id == 1
    assert posts[0].transcription is None


async def test_set_transcription_updates_row(engine):
    store = PostStore(engine, clock=lambda: NOW)

    await store.set_transcription("1", "merhaba dünya")

    with engine.connect() as conn:
        value = conn.execute(text("SELECT transcription FROM n8n_influencer_posts WHERE id = 1")).scalar()
    assert value == "merhaba dünya"
    assert [p.id for p in await store.fetch_candidates()] == ["2"]


async def test_set_transcription_unknown_id(engine):
    with pytest.raises(PersistFailed):
        await PostStore(engine).set_transcription("999", "text")


async def test_query_failure_is_store_unavailable():
    store = PostStore(memory_engine())
    with pytest.raises(StoreUnavailable):
        await store.fetch_candidates()


async def test_update_failure_is_persist_failed():
    store = PostStore(memory_engine())
    with pytest.raises(PersistFailed):
        await store.set_transcription("1", "text")


async def test_unencodable_transcription_is_persist_failed(engine):
    text_with_surrogate = json.loads('{"text": "bad \\ud83d surrogate"}')["text"]
    with pytest.raises(PersistFailed):
        await PostStore(engine).set_transcription("1", text_with_surrogate)


async def test_posts_have_no_download_flag(engine):
    store = PostStore(engine)
    assert store.supports_download_flag is False
    with pytest.raises(PersistFailed):
        await store.set_download_failed("1")
