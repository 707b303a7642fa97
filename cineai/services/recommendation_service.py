"""
Recommendation Service
Cache-wrapped AI recommendations plus the cache-only list endpoints
"""
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
import logging

from cineai.models.search_history import SearchType
from cineai.schemas.movie import MovieRecord
from cineai.schemas.recommendation import AIRecommendationResponse
from cineai.services.movie_cache_service import MovieCacheStore
from cineai.services.recommendation_cache import RecommendationCache
from cineai.services.recommendation_engine import RecommendationEngine, validate_prompt
from cineai.services.search_history_service import SearchHistoryStore
from cineai.utils.dependencies import Dependencies

logger = logging.getLogger(__name__)


class RecommendationService:
    # Cache-only list thresholds
    TRENDING_MIN_RATING = 7.0
    TRENDING_SINCE_YEAR = 2020
    GENRE_MIN_RATING = 6.0

    def __init__(self, deps: Dependencies):
        self.movie_store = MovieCacheStore(deps.db)
        self.engine = RecommendationEngine(deps, movie_store=self.movie_store)
        self.cache = RecommendationCache(deps.db, ttl_hours=deps.config.recommendation_cache_ttl_hours)
        self.history = SearchHistoryStore(deps.db)

    def recommend(self, prompt: str, user_id: Optional[int] = None) -> AIRecommendationResponse:
        """
        Answer a free-text request, from cache when a live entry exists.

        Cache writes and history logging are best effort: their failures are
        logged and the freshly generated response is still returned.
        """
        prompt = validate_prompt(prompt)

        cached = self.cache.get(prompt)
        if cached is not None:
            response = AIRecommendationResponse(
                source="cache",
                explanation=cached.result.explanation,
                recommendations=cached.result.items,
                original_prompt=cached.prompt_text,
            )
        else:
            result = self.engine.recommend(prompt)
            try:
                self.cache.put(prompt, result)
            except SQLAlchemyError as e:
                logger.error(f"Cache error: {str(e)}")
            response = AIRecommendationResponse(
                source="ai",
                explanation=result.explanation,
                recommendations=result.items,
                original_prompt=prompt,
            )

        if user_id:
            self.history.record(user_id, prompt, SearchType.AI_PROMPT)
        return response

    def trending_recent(self, limit: int = 10) -> List[MovieRecord]:
        """Highly rated recent movies already in the cache"""
        return self.movie_store.find_recent_top_rated(
            min_rating=self.TRENDING_MIN_RATING,
            since_year=self.TRENDING_SINCE_YEAR,
            limit=limit,
        )

    def by_genre(self, genre: str, limit: int = 10, user_id: Optional[int] = None) -> List[MovieRecord]:
        movies = self.movie_store.find_by_genre(genre, min_rating=self.GENRE_MIN_RATING, limit=limit)
        if user_id:
            self.history.record(user_id, genre, SearchType.GENRE_FILTER)
        return movies

    def purge_expired_cache(self) -> int:
        deleted = self.cache.purge_expired()
        logger.info(f"Purged {deleted} expired recommendation cache entries")
        return deleted

    def search_history(self, user_id: int, limit: int = 10):
        return self.history.list_for_user(user_id, limit=limit)

    def clear_search_history(self, user_id: int) -> int:
        return self.history.clear_for_user(user_id)
