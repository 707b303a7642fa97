"""
Movie Routes
Cache-first title search, details and trending movies
"""
from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError
from typing import Optional

from cineai.schemas.movie import MovieDetailResponse, MovieListResponse, TrendingResult
from cineai.schemas.validation import TitleSearchSchema
from cineai.services.movie_service import MovieCatalogService
from cineai.services.trending_service import TrendingAggregator
from cineai.utils.dependencies import Dependencies, get_dependencies
from cineai.utils.errors import InvalidInput

router = APIRouter(prefix="/api/movies", tags=["Movies"])


@router.get("/search", response_model=MovieListResponse)
def search_movies(
    title: Optional[str] = Query(None, description="Movie title (substring match against the cache)"),
    year: Optional[int] = Query(None, description="Release year"),
    page: int = Query(1, description="OMDb result page"),
    user_id: Optional[int] = Query(None, ge=1, description="Logged-in user, used for search history only"),
    deps: Dependencies = Depends(get_dependencies)
):
    """
    Search movies by title

    - Cached movies matching the title are returned first (`source: cache`)
    - Otherwise OMDb is searched and full details for the first hits are cached
      (`source: omdb`)
    """
    if not title or not title.strip():
        raise InvalidInput("Title parameter is required")
    try:
        params = TitleSearchSchema(title=title, year=year, page=page)
    except ValidationError as e:
        raise InvalidInput(e.errors()[0]["msg"])

    return MovieCatalogService(deps).search(params.title, params.year, params.page, user_id=user_id)


@router.get("/details/{imdb_id}", response_model=MovieDetailResponse)
def get_movie_details(imdb_id: str, deps: Dependencies = Depends(get_dependencies)):
    """Full details for one IMDb ID, from cache when available"""
    return MovieCatalogService(deps).details(imdb_id)


@router.get("/trending", response_model=TrendingResult)
def get_trending_movies(
    force: Optional[str] = Query(None, description="'1' or 'true' bypasses the cache"),
    source: Optional[str] = Query(None, description="'omdb' bypasses the cache"),
    deps: Dependencies = Depends(get_dependencies)
):
    """
    Trending movies

    Served from cache when at least 10 well-rated movies are cached, otherwise
    fetched from OMDb for a fixed list of popular titles.
    """
    force_refresh = force in ("1", "true") or source == "omdb"
    return TrendingAggregator(deps).get_trending(force_refresh=force_refresh)
