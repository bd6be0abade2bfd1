# priorart/workers/queue.py

from typing import Any, Callable

from redis import Redis
from rq import Queue

from priorart.core.config import settings

_redis_conn: Redis | None = None


def get_redis_connection() -> Redis:
    global _redis_conn
    if _redis_conn is None:
        _redis_conn = Redis.from_url(settings.REDIS_URL)
    return _redis_conn


def get_queue(name: str | None = None) -> Queue:
    return Queue(name or settings.RECOMPUTE_QUEUE_NAME, connection=get_redis_connection())


def enqueue_job(
    func: Callable[..., Any],
    *args: Any,
    queue_name: str | None = None,
    **kwargs: Any,
) -> str:
    q = get_queue(queue_name)
    job = q.enqueue(func, *args, **kwargs)
    return job.id


def enqueue_recompute_task(challenge_id: str) -> str:
    """Ask a worker to rebuild the leaderboard of a challenge whose data changed."""
    from priorart.workers.tasks import recompute_leaderboard_task

    return enqueue_job(recompute_leaderboard_task, challenge_id)
