"""
Recommendation cache tests: keys, expiry and defensive payload reading
"""
from datetime import datetime, timedelta
import pytest

from cineai.models.recommendation_cache import AIRecommendationCache
from cineai.schemas.recommendation import RecommendationSet, RecommendedMovie
from cineai.services.recommendation_cache import (
    ItemsPayload,
    RecommendationCache,
    UnreadablePayload,
    WrappedPayload,
    classify_payload,
    prompt_hash,
)


class FrozenClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 5, 1, 12, 0, 0))


@pytest.fixture
def cache(session_factory, clock):
    return RecommendationCache(session_factory, ttl_hours=24, clock=clock)


def sample_result(title="Inception", explanation="Dreams"):
    return RecommendationSet(
        explanation=explanation,
        items=[RecommendedMovie(imdb_id="tt1375666", title=title, year=2010, imdb_rating=8.8, ai_reason="Layers")],
    )


def insert_raw(session_factory, prompt, payload, expires_at):
    db = session_factory()
    try:
        db.add(AIRecommendationCache(
            prompt_hash=prompt_hash(prompt),
            user_prompt=prompt,
            recommendations=payload,
            created_at=expires_at - timedelta(hours=24),
            expires_at=expires_at,
        ))
        db.commit()
    finally:
        db.close()


class TestPromptHash:

    def test_equal_after_trim_and_casefold(self):
        assert prompt_hash("  Dark Thriller ") == prompt_hash("dark thriller")
        assert prompt_hash("STRASSE") == prompt_hash("straße")

    def test_different_prompts_differ(self):
        assert prompt_hash("dark thriller") != prompt_hash("light comedy")

    def test_is_sha256_hex(self):
        assert len(prompt_hash("anything")) == 64


class TestGetPut:

    def test_put_then_get(self, cache):
        cache.put("Dark Thriller", sample_result())
        hit = cache.get("  dark thriller")

        assert hit is not None
        assert hit.result.explanation == "Dreams"
        assert hit.result.items[0].title == "Inception"
        assert hit.prompt_text == "Dark Thriller"
        assert hit.expires_at == hit.created_at + timedelta(hours=24)

    def test_unknown_prompt_is_a_miss(self, cache):
        assert cache.get("never asked") is None

    def test_expired_entry_is_a_miss_even_though_row_exists(self, cache, clock):
        cache.put("dark thriller", sample_result())
        clock.now += timedelta(hours=24, seconds=1)

        assert cache.get("dark thriller") is None
        assert cache.count_live() == 0

    def test_last_write_wins(self, cache, session_factory):
        cache.put("dark thriller", sample_result(title="First"))
        cache.put("DARK THRILLER", sample_result(title="Second"))

        db = session_factory()
        try:
            assert db.query(AIRecommendationCache).count() == 1
        finally:
            db.close()
        assert cache.get("dark thriller").result.items[0].title == "Second"

    def test_purge_removes_only_expired_rows(self, cache, clock):
        cache.put("old prompt", sample_result())
        clock.now += timedelta(hours=12)
        cache.put("new prompt", sample_result())
        clock.now += timedelta(hours=13)

        assert cache.purge_expired() == 1
        assert cache.get("old prompt") is None
        assert cache.get("new prompt") is not None


class TestStoredShapes:

    def test_bare_list_payload(self, cache, session_factory, clock):
        items = [{"imdb_id": "tt0133093", "title": "The Matrix", "ai_reason": "Classic"}]
        insert_raw(session_factory, "matrix", items, clock.now + timedelta(hours=1))

        hit = cache.get("matrix")
        assert hit.result.items[0].title == "The Matrix"
        assert hit.result.explanation

    @pytest.mark.parametrize("key", ["items", "recommendations", "data"])
    def test_wrapped_payloads(self, cache, session_factory, clock, key):
        payload = {"explanation": "Wrapped", key: [{"title": "Heat", "ai_reason": "Crime"}]}
        insert_raw(session_factory, "heat", payload, clock.now + timedelta(hours=1))

        hit = cache.get("heat")
        assert hit.result.explanation == "Wrapped"
        assert [item.title for item in hit.result.items] == ["Heat"]

    @pytest.mark.parametrize("payload", [
        "not json at all",
        {"unexpected": "object"},
        [{"no_title": True}],
        42,
    ])
    def test_garbage_payload_is_a_miss(self, cache, session_factory, clock, payload):
        insert_raw(session_factory, "garbage", payload, clock.now + timedelta(hours=1))
        assert cache.get("garbage") is None

    def test_classify_payload_variants(self):
        assert isinstance(classify_payload([]), ItemsPayload)
        assert isinstance(classify_payload('{"data": []}'), WrappedPayload)
        assert isinstance(classify_payload(b'[{"title": "Heat"}]'), ItemsPayload)
        assert isinstance(classify_payload(b"\xff\xfe"), UnreadablePayload)
        assert isinstance(classify_payload(None), UnreadablePayload)
