"""
Recommendation Routes
AI recommendations from free-text prompts plus cache-backed lists
"""
from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError

from cineai.schemas.recommendation import (
    AIRecommendationRequest,
    AIRecommendationResponse,
    MovieListRecommendation,
    SearchHistoryResponse,
)
from cineai.schemas.validation import GenreSchema
from cineai.services.recommendation_service import RecommendationService
from cineai.utils.dependencies import Dependencies, get_dependencies
from cineai.utils.errors import InvalidInput
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["Recommendations"])


@router.post("/ai", response_model=AIRecommendationResponse)
def get_ai_recommendations(
    request: AIRecommendationRequest,
    deps: Dependencies = Depends(get_dependencies)
):
    """
    Get 5 movie recommendations for a free-text request

    **Example body:**
    ```
    {"prompt": "mind-bending sci-fi like Inception", "user_id": 1}
    ```

    Identical prompts (ignoring case and surrounding whitespace) are answered
    from cache for 24 hours (`source: cache`).
    """
    return RecommendationService(deps).recommend(request.prompt, user_id=request.user_id)


@router.get("/trending", response_model=MovieListRecommendation)
def get_trending_recommendations(deps: Dependencies = Depends(get_dependencies)):
    """Highly rated (>= 7.0) cached movies released in 2020 or later"""
    movies = RecommendationService(deps).trending_recent()
    return MovieListRecommendation(
        source="trending",
        explanation="Highly rated recent movies",
        recommendations=movies,
    )


@router.get("/genre/{genre}", response_model=MovieListRecommendation)
def get_genre_recommendations(
    genre: str,
    limit: int = Query(10, ge=1, le=50, description="Number of movies (1-50)"),
    deps: Dependencies = Depends(get_dependencies)
):
    """Top-rated cached movies whose genre contains the given text"""
    try:
        genre = GenreSchema(genre=genre).genre
    except ValidationError:
        raise InvalidInput("Invalid genre")

    movies = RecommendationService(deps).by_genre(genre, limit=limit)
    return MovieListRecommendation(
        source="genre",
        genre=genre,
        explanation=f"Top-rated {genre} movies",
        recommendations=movies,
    )


@router.get("/test-groq")
def test_groq_connection(deps: Dependencies = Depends(get_dependencies)):
    """Check that the language model provider is reachable with the configured key"""
    return deps.llm_client.check_connection()


@router.delete("/cache")
def clear_expired_cache(deps: Dependencies = Depends(get_dependencies)):
    """Delete expired AI recommendation cache entries"""
    deleted = RecommendationService(deps).purge_expired_cache()
    return {"message": "Cache cleared successfully", "deletedRows": deleted}


@router.get("/history/{user_id}", response_model=SearchHistoryResponse)
def get_search_history(
    user_id: int,
    limit: int = Query(10, ge=1, le=100),
    deps: Dependencies = Depends(get_dependencies)
):
    history = RecommendationService(deps).search_history(user_id, limit=limit)
    return {"history": history}


@router.delete("/history/{user_id}")
def clear_search_history(user_id: int, deps: Dependencies = Depends(get_dependencies)):
    deleted = RecommendationService(deps).clear_search_history(user_id)
    logger.info(f"Cleared {deleted} search history entries for user {user_id}")
    return {"message": "Search history cleared successfully", "deletedRows": deleted}
