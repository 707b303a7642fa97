"""
Recommendation schemas
Wire shapes for AI recommendations, genre/trending lists and search history
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional, List
from cineai.schemas.validation import SafeStringMixin
from cineai.schemas.movie import MovieRecord
from cineai.models.search_history import SearchType


class RecommendedMovie(BaseModel):
    """
    A movie record annotated with the model's rationale.

    Placeholder items (titles that could not be resolved) have no imdb_id,
    carry "Unknown"/"unavailable" sentinel values and set `error`.
    They are never persisted to movies_cache.
    """
    imdb_id: Optional[str] = None
    title: str
    year: Optional[int] = None
    genre: Optional[str] = None
    director: Optional[str] = None
    actors: Optional[str] = None
    plot: Optional[str] = None
    poster_url: Optional[str] = None
    imdb_rating: Optional[float] = None
    runtime: Optional[str] = None
    language: Optional[str] = None
    country: Optional[str] = None
    ai_reason: str = "Recommended by AI"
    error: Optional[str] = None


class RecommendationSet(BaseModel):
    """Canonical result of one recommendation run, in the model's order"""
    explanation: str
    items: List[RecommendedMovie] = []


class CachedRecommendation(BaseModel):
    """A live recommendation cache hit"""
    prompt_text: str
    result: RecommendationSet
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class AIRecommendationRequest(BaseModel, SafeStringMixin):
    """Body of POST /api/recommendations/ai. Length rules are enforced by the engine."""
    prompt: str = ""
    user_id: Optional[int] = Field(None, ge=1, description="Logged-in user, used for search history only")

    @field_validator('prompt')
    @classmethod
    def clean_prompt(cls, v):
        return cls.validate_no_script(v)


class AIRecommendationResponse(BaseModel):
    source: str = Field(..., description="'ai' or 'cache'")
    explanation: str
    recommendations: List[RecommendedMovie]
    original_prompt: str


class MovieListRecommendation(BaseModel):
    """Genre and trending lists served straight from movies_cache"""
    source: str
    explanation: str
    genre: Optional[str] = None
    recommendations: List[MovieRecord]


class SearchHistoryEntry(BaseModel):
    search_query: str
    search_type: SearchType
    searched_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SearchHistoryResponse(BaseModel):
    history: List[SearchHistoryEntry]
