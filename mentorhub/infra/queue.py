"""
Queue infrastructure configuration

Redis Queue (RQ) abstraction for background jobs. Used to hand off
member-profile cleanup that a cascading group delete could not finish.
"""

from typing import Any, Dict, Optional

from redis import Redis
from rq import Queue
from rq.job import Job

from mentorhub.core.config import settings
from mentorhub.core.logging import get_logger

logger = get_logger(__name__)


class JobQueue:
    """Wrapper around RQ Queue"""

    def __init__(self, redis_conn: Redis, queue_name: str = "default"):
        self.redis = redis_conn
        self.queue_name = queue_name
        self.queue = Queue(queue_name, connection=self.redis)

    def enqueue(
        self,
        func: str,  # "module.path.to.func"
        args: Optional[tuple] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        timeout: int = settings.worker_job_timeout,
        result_ttl: int = settings.worker_result_ttl,
        job_id: Optional[str] = None,
    ) -> Job:
        """Enqueue a job"""
        try:
            job = self.queue.enqueue(
                func,
                args=args,
                kwargs=kwargs,
                result_ttl=result_ttl,
                job_timeout=timeout,
                job_id=job_id,
            )
            logger.info(
                "queue.enqueued",
                job_id=job.id,
                function=func,
                queue=self.queue_name,
            )
            return job
        except Exception as e:
            logger.error("queue.enqueue_failed", function=func, error=str(e))
            raise


def build_cleanup_queue() -> Optional[JobQueue]:
    """Cleanup queue when enabled in settings, else None."""
    if not settings.cleanup_queue_enabled:
        return None
    return JobQueue(Redis.from_url(settings.redis_url), settings.cleanup_queue_name)
