"""
Background Jobs Service
Purges expired AI recommendation cache rows and keeps trending movies warm

Features:
- Scheduled jobs using APScheduler
- Configurable timezone
- Job monitoring and statistics
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import datetime
from typing import Callable, Dict
from pytz import timezone
import logging

from cineai.services.recommendation_cache import RecommendationCache
from cineai.services.trending_service import TrendingAggregator
from cineai.utils.dependencies import Dependencies

logger = logging.getLogger(__name__)

PURGE_JOB = 'purge_expired_recommendations'
TRENDING_JOB = 'refresh_trending'


class BackgroundJobService:
    """
    Manages scheduled background jobs

    Jobs:
    - Purge expired recommendation cache (hourly)
    - Refresh trending movies from OMDb (daily at 3 AM)

    Usage:
        jobs = BackgroundJobService(deps)
        jobs.start()  # Start all scheduled jobs
        jobs.shutdown()  # Stop all jobs gracefully
    """

    def __init__(self, deps: Dependencies):
        self.enabled = deps.config.enable_background_jobs
        self.timezone = timezone(deps.config.timezone)
        self.scheduler = BackgroundScheduler(timezone=self.timezone)
        self.cache = RecommendationCache(deps.db, ttl_hours=deps.config.recommendation_cache_ttl_hours)
        self.trending = TrendingAggregator(deps)

        # Track job execution statistics
        self.job_stats = {
            PURGE_JOB: {'last_run': None, 'status': 'idle', 'error': None, 'result': None},
            TRENDING_JOB: {'last_run': None, 'status': 'idle', 'error': None, 'result': None},
        }

    def start(self):
        """Start all scheduled jobs unless ENABLE_BACKGROUND_JOBS is false"""
        if not self.enabled:
            logger.info("Background jobs disabled via ENABLE_BACKGROUND_JOBS environment variable")
            return

        self.scheduler.add_job(
            func=self.purge_expired_recommendations,
            trigger=CronTrigger(minute=0, timezone=self.timezone),  # Every hour at :00
            id=PURGE_JOB,
            name='Purge expired AI recommendation cache',
            replace_existing=True,
            max_instances=1
        )
        logger.info("Scheduled: Purge expired recommendation cache (hourly)")

        self.scheduler.add_job(
            func=self.refresh_trending,
            trigger=CronTrigger(hour=3, minute=0, timezone=self.timezone),
            id=TRENDING_JOB,
            name='Refresh trending movies from OMDb',
            replace_existing=True,
            max_instances=1
        )
        logger.info("Scheduled: Refresh trending movies (daily 3:00 AM)")

        self.scheduler.start()
        logger.info(f"Background jobs started (timezone: {self.timezone}, jobs: {len(self.scheduler.get_jobs())})")

    def shutdown(self):
        """Shutdown scheduler gracefully"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Background jobs stopped gracefully")

    def get_job_stats(self) -> Dict:
        """
        Get statistics for all jobs including next run times

        Jobs that are not scheduled (scheduler disabled) are still listed with
        their last manual run.
        """
        scheduled = {job.id: job for job in self.scheduler.get_jobs()}
        jobs_info = []
        for job_id, stats in self.job_stats.items():
            job = scheduled.get(job_id)
            jobs_info.append({
                'id': job_id,
                'name': job.name if job else job_id,
                'next_run': job.next_run_time.isoformat() if job and job.next_run_time else None,
                'last_run': stats['last_run'],
                'status': stats['status'],
                'error': stats['error'],
                'result': stats['result'],
            })

        return {
            'enabled': self.enabled,
            'scheduler_running': self.scheduler.running,
            'timezone': str(self.timezone),
            'jobs': jobs_info
        }

    # ============================================
    # Job Methods
    # ============================================

    def purge_expired_recommendations(self) -> Dict:
        return self._run(PURGE_JOB, lambda: {'deleted': self.cache.purge_expired()})

    def refresh_trending(self) -> Dict:
        def refresh():
            result = self.trending.get_trending(force_refresh=True)
            return {'source': result.source, 'movies': len(result.movies)}
        return self._run(TRENDING_JOB, refresh)

    def _run(self, job_id: str, work: Callable[[], Dict]) -> Dict:
        """Run one job body, recording status, timing and errors in job_stats"""
        stats = self.job_stats[job_id]
        stats['status'] = 'running'
        stats['error'] = None
        start_time = datetime.now()

        try:
            logger.info(f"[{job_id}] Starting...")
            result = work()
            elapsed = (datetime.now() - start_time).total_seconds()
            logger.info(f"[{job_id}] Completed in {elapsed:.2f}s - {result}")
            stats['status'] = 'success'
            stats['result'] = result
            return result
        except Exception as e:
            elapsed = (datetime.now() - start_time).total_seconds()
            logger.error(f"[{job_id}] Failed after {elapsed:.2f}s: {str(e)}", exc_info=True)
            stats['status'] = 'failed'
            stats['error'] = str(e)
            raise
        finally:
            stats['last_run'] = datetime.now().isoformat()
