"""
Trending aggregator tests: cache-first, watchlist fetch and degraded paths
"""
import pytest

from cineai.services.movie_cache_service import MovieCacheStore
from cineai.services.trending_service import WATCHLIST_TITLES, TrendingAggregator
from cineai.utils.errors import UpstreamUnavailable
from tests.conftest import make_movie


@pytest.fixture
def store(session_factory):
    return MovieCacheStore(session_factory)


def watchlist_movies(count):
    return {
        title: make_movie(f"tt90000{index:02d}", title, 1990 + index, 8.0 + index / 10)
        for index, title in enumerate(WATCHLIST_TITLES[:count])
    }


def test_empty_cache_fetches_watchlist_and_keeps_partial_results(deps, metadata_client, store):
    metadata_client.movies = watchlist_movies(7)
    metadata_client.failures = {
        WATCHLIST_TITLES[7]: UpstreamUnavailable("OMDb"),
        WATCHLIST_TITLES[8]: RuntimeError("unexpected payload"),
    }

    result = TrendingAggregator(deps, movie_store=store).get_trending(force_refresh=False)

    assert result.source == "omdb"
    assert len(result.movies) == 7
    assert [m.title for m in result.movies] == WATCHLIST_TITLES[:7]
    assert len(metadata_client.calls) == len(WATCHLIST_TITLES)

    # Detached cache writes land once the runner drains
    deps.task_runner.shutdown(wait=True)
    assert store.count() == 7


def test_well_stocked_cache_is_served_without_provider_calls(deps, metadata_client, store):
    for index in range(12):
        store.upsert(make_movie(f"tt80000{index:02d}", f"Cached {index}", rating=7.0 + index / 10))

    result = TrendingAggregator(deps, movie_store=store).get_trending()

    assert result.source == "cache"
    assert len(result.movies) == 12
    ratings = [m.imdb_rating for m in result.movies]
    assert ratings == sorted(ratings, reverse=True)
    assert metadata_client.calls == []


def test_force_refresh_bypasses_cache(deps, metadata_client, store):
    for index in range(12):
        store.upsert(make_movie(f"tt80000{index:02d}", f"Cached {index}", rating=9.0))
    metadata_client.movies = watchlist_movies(10)

    result = TrendingAggregator(deps, movie_store=store).get_trending(force_refresh=True)

    assert result.source == "omdb"
    assert len(result.movies) == 10


def test_total_outage_degrades_to_lower_rated_cache(deps, metadata_client, store):
    metadata_client.failures = {title: UpstreamUnavailable("OMDb") for title in WATCHLIST_TITLES}
    store.upsert(make_movie("tt7000001", "Decent", rating=6.5))
    store.upsert(make_movie("tt7000002", "Good", rating=7.5))
    store.upsert(make_movie("tt7000003", "Poor", rating=4.0))

    result = TrendingAggregator(deps, movie_store=store).get_trending()

    assert result.source == "degraded"
    assert [m.title for m in result.movies] == ["Good", "Decent"]


def test_unconfigured_provider_skips_fetch(deps, metadata_client, store):
    metadata_client.configured = False

    result = TrendingAggregator(deps, movie_store=store).get_trending()

    assert result.source == "degraded"
    assert result.movies == []
    assert metadata_client.calls == []


def test_failed_detached_write_does_not_affect_response(deps, metadata_client, store, monkeypatch):
    metadata_client.movies = watchlist_movies(3)

    def broken_upsert(record):
        raise RuntimeError("database is gone")

    monkeypatch.setattr(store, "upsert", broken_upsert)

    result = TrendingAggregator(deps, movie_store=store).get_trending()
    deps.task_runner.shutdown(wait=True)

    assert result.source == "omdb"
    assert len(result.movies) == 3
