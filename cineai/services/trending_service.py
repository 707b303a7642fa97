"""
Trending movies

Cache-first: enough well-rated cached records are served as-is. Otherwise a
fixed watchlist of well-known titles is resolved through OMDb; each hit is
written back to the cache in a detached task so the response never waits on
(or fails because of) the write. A total OMDb outage degrades to a looser
cache query.
"""
from typing import List, Optional
import logging

from cineai.schemas.movie import MovieRecord, TrendingResult
from cineai.services.movie_cache_service import MovieCacheStore
from cineai.utils.dependencies import Dependencies
from cineai.utils.errors import NotFound, UpstreamUnavailable

logger = logging.getLogger(__name__)

WATCHLIST_TITLES = [
    "The Dark Knight",
    "Inception",
    "Pulp Fiction",
    "The Shawshank Redemption",
    "Forrest Gump",
    "The Matrix",
    "Goodfellas",
    "The Godfather",
    "Interstellar",
    "Fight Club",
]


class TrendingAggregator:
    CACHE_MIN_RATING = 7.0
    CACHE_LIMIT = 20
    CACHE_MIN_RESULTS = 10
    DEGRADED_MIN_RATING = 6.0

    def __init__(
        self,
        deps: Dependencies,
        movie_store: Optional[MovieCacheStore] = None,
        watchlist: Optional[List[str]] = None,
    ):
        self._metadata = deps.metadata_client
        self._tasks = deps.task_runner
        self._store = movie_store or MovieCacheStore(deps.db)
        self.watchlist = list(watchlist or WATCHLIST_TITLES)

    def get_trending(self, force_refresh: bool = False) -> TrendingResult:
        if not force_refresh:
            cached = self._store.find_trending_candidates(self.CACHE_MIN_RATING, self.CACHE_LIMIT)
            if len(cached) >= self.CACHE_MIN_RESULTS:
                logger.info(f"Trending served from cache ({len(cached)} movies)")
                return TrendingResult(source="cache", movies=cached)
            logger.info(f"Only {len(cached)} trending candidates cached, fetching watchlist from OMDb")

        movies = self._fetch_watchlist()
        if movies:
            return TrendingResult(source="omdb", movies=movies)

        logger.warning("Watchlist fetch returned nothing, falling back to degraded cache query")
        degraded = self._store.find_trending_candidates(self.DEGRADED_MIN_RATING, self.CACHE_LIMIT)
        return TrendingResult(source="degraded", movies=degraded)

    def _fetch_watchlist(self) -> List[MovieRecord]:
        if not self._metadata.is_configured:
            logger.warning("OMDb API key not configured, skipping watchlist fetch")
            return []

        movies: List[MovieRecord] = []
        for title in self.watchlist:
            try:
                record = self._metadata.resolve_title(title)
            except NotFound:
                logger.info(f"Watchlist title not found in OMDb: {title}")
                continue
            except UpstreamUnavailable as e:
                logger.warning(f"Error fetching {title}: {e.detail}")
                continue
            except Exception as e:
                logger.error(f"Error fetching {title}: {str(e)}", exc_info=True)
                continue

            movies.append(record)
            self._tasks.submit(self._store.upsert, record, description=f"cache trending movie {record.imdb_id}")

        return movies
