"""
Movie catalog: cache-first title search and detail lookups
"""
from typing import Optional
import logging

from cineai.models.search_history import SearchType
from cineai.schemas.movie import MovieDetailResponse, MovieListResponse
from cineai.services.movie_cache_service import MovieCacheStore
from cineai.services.search_history_service import SearchHistoryStore
from cineai.utils.dependencies import Dependencies
from cineai.utils.errors import NotFound, UpstreamUnavailable

logger = logging.getLogger(__name__)


class MovieCatalogService:
    CACHE_SEARCH_LIMIT = 10
    # Full details are fetched (and cached) for this many search hits
    DETAIL_FETCH_LIMIT = 8

    def __init__(self, deps: Dependencies, movie_store: Optional[MovieCacheStore] = None):
        self._metadata = deps.metadata_client
        self._store = movie_store or MovieCacheStore(deps.db)
        self._history = SearchHistoryStore(deps.db)

    def search(
        self,
        title: str,
        year: Optional[int] = None,
        page: int = 1,
        user_id: Optional[int] = None,
    ) -> MovieListResponse:
        """
        Search by title, serving cached records when any match.

        Raises:
            NotFound: OMDb has no match
            UpstreamUnavailable: OMDb could not be reached
        """
        if user_id:
            self._history.record(user_id, title, SearchType.TITLE)

        cached = self._store.find_by_title_substring(title, limit=self.CACHE_SEARCH_LIMIT)
        if year is not None:
            cached = [movie for movie in cached if movie.year == year]
        if cached:
            logger.info(f"Search for '{title}' served from cache ({len(cached)} movies)")
            return MovieListResponse(source="cache", movies=cached, total_results=len(cached))

        hits = self._metadata.fetch_by_title(title, year, page)
        movies = []
        for hit in hits[:self.DETAIL_FETCH_LIMIT]:
            try:
                movie = self._metadata.fetch_by_id(hit.imdb_id)
            except (NotFound, UpstreamUnavailable) as e:
                logger.warning(f"Could not fetch details for {hit.imdb_id}: {e.detail}")
                continue
            try:
                movie = self._store.upsert(movie)
            except Exception as e:
                logger.error(f"Cache movie error for {movie.imdb_id}: {str(e)}")
            movies.append(movie)

        if not movies:
            raise NotFound(f"No movies found for '{title}'")
        return MovieListResponse(source="omdb", movies=movies, total_results=len(movies))

    def details(self, imdb_id: str) -> MovieDetailResponse:
        cached = self._store.find_by_id(imdb_id)
        if cached is not None:
            return MovieDetailResponse(source="cache", movie=cached)

        movie = self._metadata.fetch_by_id(imdb_id)
        try:
            movie = self._store.upsert(movie)
        except Exception as e:
            logger.error(f"Cache movie error for {imdb_id}: {str(e)}")
        return MovieDetailResponse(source="omdb", movie=movie)
