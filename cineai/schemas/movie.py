"""
Movie schemas
MovieRecord is the canonical, provider-agnostic shape shared by every component
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List


class MovieRecord(BaseModel):
    """Canonical movie record as stored in movies_cache"""
    imdb_id: str = Field(..., min_length=1, max_length=20)
    title: str
    year: Optional[int] = None
    genre: Optional[str] = None
    director: Optional[str] = None
    actors: Optional[str] = None
    plot: Optional[str] = None
    poster_url: Optional[str] = None
    imdb_rating: Optional[float] = Field(None, ge=0.0, le=10.0)
    runtime: Optional[str] = None
    language: Optional[str] = None
    country: Optional[str] = None
    cached_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MovieListResponse(BaseModel):
    """Response for title search"""
    source: str = Field(..., description="'cache' or 'omdb'")
    movies: List[MovieRecord]
    total_results: int


class MovieDetailResponse(BaseModel):
    source: str
    movie: MovieRecord


class TrendingResult(BaseModel):
    """Trending movies plus where they came from ('cache', 'omdb' or 'degraded')"""
    source: str
    movies: List[MovieRecord] = []
