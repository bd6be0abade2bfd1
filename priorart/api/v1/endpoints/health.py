# priorart/api/v1/endpoints/health.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.orm import Session

from priorart.core.config import settings
from priorart.db.session import get_db
from priorart.workers.queue import get_queue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
def liveness():
    return {"status": "ok"}


@router.get("/db")
def db_health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"status": "ok"}


@router.get("/queue")
def recompute_queue_health():
    """
    Pending leaderboard recomputations. Reports ``disabled`` when the
    service runs without a worker.
    """
    if not settings.ENQUEUE_RECOMPUTE:
        return {"status": "disabled", "queue": settings.RECOMPUTE_QUEUE_NAME}

    try:
        pending = get_queue().count
    except RedisError as e:
        logger.error(f"Recompute queue unreachable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Recompute queue unreachable",
        )
    return {"status": "ok", "queue": settings.RECOMPUTE_QUEUE_NAME, "pending": pending}
