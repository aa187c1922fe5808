"""
Privacy Background Tasks Manager

Runs the periodic privacy maintenance jobs: eviction of expired
deduplication cache entries (with audit log retention purging) and
automatic retention cleanup.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from privacy_core.dedup.deduplication_cache import DeduplicationCache
from privacy_core.compliance.audit_log import AuditLog
from privacy_core.exceptions import CleanupAlreadyRunningError
from .retention_manager import RetentionManager

logger = logging.getLogger(__name__)


class PrivacyBackgroundTaskManager:
    """Manages background tasks for the dedup cache and retention manager."""

    def __init__(
        self,
        dedup_cache: DeduplicationCache,
        retention_manager: RetentionManager,
        audit_log: Optional[AuditLog] = None,
        cache_sweep_interval_minutes: Optional[int] = None,
        cleanup_interval_minutes: Optional[int] = None
    ):
        self.dedup_cache = dedup_cache
        self.retention_manager = retention_manager
        self.audit_log = audit_log
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.running = False

        self.cache_sweep_interval_minutes = (
            cache_sweep_interval_minutes or dedup_cache.config.cache_sweep_interval_minutes
        )
        self.cleanup_interval_minutes = (
            cleanup_interval_minutes or retention_manager.config.cleanup_interval_minutes
        )

    async def start(self):
        """Start the background task scheduler."""
        if self.running:
            logger.warning("Privacy background task manager is already running")
            return

        try:
            self.scheduler = AsyncIOScheduler(
                timezone='UTC',
                job_defaults={
                    'coalesce': True,
                    'max_instances': 1,
                    'misfire_grace_time': 300  # 5 minutes
                }
            )

            self.scheduler.add_job(
                func=self.run_cache_sweep,
                trigger=IntervalTrigger(minutes=self.cache_sweep_interval_minutes),
                id='dedup_cache_sweep',
                name='Deduplication Cache Sweep',
                replace_existing=True
            )

            self.scheduler.add_job(
                func=self.run_retention_cleanup,
                trigger=IntervalTrigger(minutes=self.cleanup_interval_minutes),
                id='retention_cleanup',
                name='Automatic Retention Cleanup',
                replace_existing=True
            )

            self.scheduler.start()
            self.running = True

            logger.info(
                f"Privacy background tasks started (cache sweep every {self.cache_sweep_interval_minutes} minutes, "
                f"retention cleanup every {self.cleanup_interval_minutes} minutes)"
            )

        except Exception as e:
            logger.error(f"Failed to start privacy background tasks: {e}")
            raise

    async def stop(self):
        """Stop the background task scheduler."""
        if not self.running:
            logger.warning("Privacy background task manager is not running")
            return

        try:
            if self.scheduler:
                self.scheduler.shutdown(wait=False)
                self.scheduler = None

            self.running = False
            logger.info("Privacy background tasks stopped")

        except Exception as e:
            logger.error(f"Error stopping privacy background tasks: {e}")
            raise

    async def run_cache_sweep(self) -> int:
        """Evict expired deduplication cache entries and purge aged audit entries."""
        try:
            logger.debug("Starting dedup cache sweep")
            evicted = await self.dedup_cache.sweep_expired()
            if self.audit_log is not None:
                await self.audit_log.purge_expired_logs()
            if not evicted:
                logger.debug("No expired dedup cache entries to evict")
            return evicted

        except Exception as e:
            logger.error(f"Dedup cache sweep failed: {e}")
            return 0

    async def run_retention_cleanup(self) -> int:
        """Run automatic retention cleanup; returns the number of tasks executed."""
        try:
            logger.debug("Starting automatic retention cleanup")
            tasks = await self.retention_manager.run_automatic_cleanup()

            if tasks:
                deleted = sum(task.records_deleted for task in tasks)
                logger.info(f"Automatic retention cleanup ran {len(tasks)} tasks, deleted {deleted} records")
            else:
                logger.debug("No expired retention records to clean up")
            return len(tasks)

        except CleanupAlreadyRunningError:
            logger.info("Retention cleanup already in progress, skipping this cycle")
            return 0
        except Exception as e:
            logger.error(f"Automatic retention cleanup failed: {e}")
            return 0

    def get_status(self) -> dict:
        """Get status of background tasks."""
        status = {
            "running": self.running,
            "scheduler_state": None,
            "jobs": []
        }

        if self.scheduler:
            status["scheduler_state"] = "running" if self.scheduler.running else "stopped"

            for job in self.scheduler.get_jobs():
                status["jobs"].append({
                    "id": job.id,
                    "name": job.name,
                    "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                    "trigger": str(job.trigger)
                })

        return status
