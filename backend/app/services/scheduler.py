"""
Background job scheduler for cache maintenance

This module handles scheduled tasks like:
- Sweeping expired threat level cache entries
"""
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.metrics import record_sweep_evictions, update_cache_size
from app.services.ttl_cache import TTLCache

logger = logging.getLogger(__name__)


class CacheSweepScheduler:
    """Scheduler that periodically evicts expired cache entries"""

    def __init__(self, cache: TTLCache, interval_seconds: int = 300):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self.scheduler = BackgroundScheduler()
        self._started = False

    def start(self):
        """Start the scheduler"""
        if self._started:
            logger.warning("Scheduler already started")
            return

        self.scheduler.add_job(
            func=self._sweep_cache_job,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id='sweep_threat_cache',
            name='Sweep expired threat level cache entries',
            replace_existing=True
        )

        self.scheduler.start()
        self._started = True
        logger.info(f"Cache sweep scheduled every {self.interval_seconds} seconds")

    def stop(self):
        """Stop the scheduler"""
        if not self._started:
            return

        self.scheduler.shutdown(wait=False)
        self._started = False
        logger.info("Cache sweep scheduler stopped")

    @property
    def running(self) -> bool:
        return self._started

    def _sweep_cache_job(self) -> int:
        """Background job to evict expired cache entries"""
        try:
            evicted = self.cache.sweep()
            record_sweep_evictions(evicted)
            update_cache_size(len(self.cache))
            return evicted
        except Exception as e:
            logger.error(f"Error in scheduled cache sweep: {str(e)}", exc_info=True)
            return 0
