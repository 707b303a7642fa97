"""
Import all models to ensure they are registered with SQLAlchemy
"""
from cineai.models.movie_cache import MovieCache
from cineai.models.recommendation_cache import AIRecommendationCache
from cineai.models.search_history import SearchHistory, SearchType

__all__ = [
    "MovieCache",
    "AIRecommendationCache",
    "SearchHistory",
    "SearchType"
]
