"""
Background Job Scheduler - runs periodic maintenance for the marketplace.

Currently one job: the quote expiry sweep, which moves pending quotes past
their expiresAt to expired. Reads never expire quotes on their own.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from database.connection import get_db_session

logger = logging.getLogger(__name__)

# Global scheduler instance
_scheduler = None

QUOTE_SWEEP_JOB = 'expire_quotes'


class ScheduledJob:
    """A function plus its interval and run bookkeeping."""

    def __init__(self, func: Callable, interval_seconds: int, run_immediately: bool = False,
                 kwargs: Dict = None):
        self.func = func
        self.interval = interval_seconds
        self.kwargs = kwargs or {}
        self.last_run: Optional[datetime] = None
        self.last_result: Any = None
        self.last_error: Optional[str] = None
        self.run_count = 0
        self.next_run = datetime.utcnow()
        if not run_immediately:
            self.next_run += timedelta(seconds=interval_seconds)

    def is_due(self, now: datetime) -> bool:
        return self.next_run <= now

    def to_dict(self) -> Dict[str, Any]:
        return {
            'interval': self.interval,
            'last_run': self.last_run.isoformat() if self.last_run else None,
            'next_run': self.next_run.isoformat(),
            'run_count': self.run_count,
            'last_result': self.last_result,
            'last_error': self.last_error
        }


class BackgroundScheduler:
    """Runs registered jobs on a daemon thread."""

    def __init__(self, tick_seconds: float = 1.0):
        self.jobs: Dict[str, ScheduledJob] = {}
        self.running = False
        self.tick_seconds = tick_seconds
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()

    def add_job(self, job_id: str, func: Callable, interval_seconds: int,
                run_immediately: bool = False, kwargs: Dict = None):
        with self._lock:
            self.jobs[job_id] = ScheduledJob(func, interval_seconds, run_immediately, kwargs)
        logger.info(f"Added job '{job_id}' with interval {interval_seconds}s")

    def remove_job(self, job_id: str):
        with self._lock:
            if self.jobs.pop(job_id, None) is not None:
                logger.info(f"Removed job '{job_id}'")

    def get_job_status(self) -> Dict[str, Any]:
        with self._lock:
            return {job_id: job.to_dict() for job_id, job in self.jobs.items()}

    def start(self):
        """Start the scheduler in a background thread."""
        if self.running:
            logger.warning("Scheduler is already running")
            return
        self.running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name='marketplace-scheduler', daemon=True)
        self._thread.start()
        logger.info("Background scheduler started")

    def stop(self):
        self.running = False
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
        logger.info("Background scheduler stopped")

    def _run_loop(self):
        while self.running and not self._stop_event.is_set():
            now = datetime.utcnow()
            with self._lock:
                due = [(job_id, job) for job_id, job in self.jobs.items() if job.is_due(now)]
            for job_id, job in due:
                self._execute(job_id, job)
            self._stop_event.wait(self.tick_seconds)

    def _execute(self, job_id: str, job: ScheduledJob):
        started = datetime.utcnow()
        try:
            job.last_result = job.func(**job.kwargs)
            job.last_error = None
            logger.debug(f"Job '{job_id}' finished: {job.last_result}")
        except Exception as e:
            # A failing job must not kill the loop; it is retried next interval
            job.last_error = str(e)
            logger.error(f"Job '{job_id}' failed: {e}", exc_info=True)
        job.last_run = started
        job.run_count += 1
        job.next_run = started + timedelta(seconds=job.interval)

    def run_job_now(self, job_id: str) -> Any:
        """Run a job immediately, outside its schedule."""
        with self._lock:
            job = self.jobs.get(job_id)
        if job is None:
            raise KeyError(f"Job '{job_id}' not found")
        self._execute(job_id, job)
        if job.last_error:
            raise RuntimeError(job.last_error)
        return job.last_result


def get_scheduler() -> BackgroundScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = BackgroundScheduler()
    return _scheduler


# =============================================================================
# JOBS
# =============================================================================

def expire_quotes_job(validity_days: int = 30) -> int:
    """Expire every pending quote whose expiresAt has passed."""
    from services.quote_service import QuoteRepository

    with get_db_session() as session:
        expired = QuoteRepository(session, validity_days=validity_days).expire_overdue()
    if expired:
        logger.info(f"Quote sweep expired {expired} quote(s)")
    return expired


def init_scheduler(interval_seconds: int = 3600, start: bool = True) -> BackgroundScheduler:
    """Register the marketplace jobs and start the scheduler."""
    scheduler = get_scheduler()
    scheduler.add_job(QUOTE_SWEEP_JOB, expire_quotes_job, interval_seconds, run_immediately=True)
    if start:
        scheduler.start()
    return scheduler
