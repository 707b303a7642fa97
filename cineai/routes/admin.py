"""
Admin Routes for Background Jobs Management
Provides endpoints to monitor and trigger scheduled jobs

All endpoints require the X-Admin-Token header to match ADMIN_API_TOKEN
"""

from fastapi import APIRouter, Depends, Request, status
from datetime import datetime, timezone

from cineai.services.background_jobs import BackgroundJobService
from cineai.utils.dependencies import require_admin_token

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin - Background Jobs"],
    dependencies=[Depends(require_admin_token)]
)


def get_background_jobs(request: Request) -> BackgroundJobService:
    return request.app.state.background_jobs


@router.get("/jobs/status", status_code=status.HTTP_200_OK)
def get_jobs_status(jobs: BackgroundJobService = Depends(get_background_jobs)):
    """
    Get status of all background jobs

    Returns:
    - Job IDs and names
    - Next run times
    - Last execution times, status and errors
    """
    return jobs.get_job_stats()


@router.post("/jobs/trigger/purge", status_code=status.HTTP_200_OK)
def trigger_cache_purge(jobs: BackgroundJobService = Depends(get_background_jobs)):
    """Manually purge expired AI recommendation cache entries"""
    result = jobs.purge_expired_recommendations()
    return {
        "message": "Recommendation cache purge completed",
        "job": "purge_expired_recommendations",
        "triggered_at": datetime.now(timezone.utc).isoformat(),
        "result": result
    }


@router.post("/jobs/trigger/trending", status_code=status.HTTP_200_OK)
def trigger_trending_refresh(jobs: BackgroundJobService = Depends(get_background_jobs)):
    """Manually refresh trending movies from OMDb (bypasses the cache)"""
    result = jobs.refresh_trending()
    return {
        "message": "Trending movies refresh completed",
        "job": "refresh_trending",
        "triggered_at": datetime.now(timezone.utc).isoformat(),
        "result": result
    }
