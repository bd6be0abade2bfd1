"""
Leaderboard recompute tasks for the worker.
Enqueued whenever an evaluation is saved or scores are published. The result
is stored as the challenge's leaderboard snapshot, which the API serves.
"""

import logging

from priorart.db.session import SessionLocal
from priorart.services.errors import ChallengeError
from priorart.services.leaderboard_service import challenge_leaderboard, save_snapshot

logger = logging.getLogger(__name__)

_TOP_N = 3


def recompute_leaderboard_task(challenge_id: str) -> dict:
    """
    Worker task: reload the challenge snapshot, rebuild the internal
    and the public leaderboard and store both.

    Args:
        challenge_id: ID of the overall challenge whose data changed

    Returns:
        Dictionary summarising the recomputed leaderboards
    """
    db = SessionLocal()
    try:
        logger.info(f"Recomputing leaderboard for challenge {challenge_id}")

        internal = challenge_leaderboard(db, challenge_id=challenge_id, public=False, use_cache=False)
        public = challenge_leaderboard(db, challenge_id=challenge_id, public=True, use_cache=False)
        row = save_snapshot(db, internal=internal, public=public)

        top = [(e.name, e.total_score) for e in internal.entries[:_TOP_N]]
        logger.info(f"Challenge {challenge_id} top {_TOP_N}: {top}")

        return {
            "status": "success",
            "challenge_id": challenge_id,
            "trainees": len(internal.entries),
            "computed_at": row.computed_at.isoformat(),
            "leaderboard": [e.model_dump() for e in internal.entries],
            "public_leaderboard": [e.model_dump() for e in public.entries],
        }

    except ChallengeError as e:
        logger.error(f"Recompute failed for challenge {challenge_id}: {e}")
        return {
            "status": "error",
            "challenge_id": challenge_id,
            "error": str(e),
        }

    except Exception as e:
        logger.error(
            f"Unexpected error recomputing leaderboard for challenge {challenge_id}: {e}",
            exc_info=True,
        )
        return {
            "status": "error",
            "challenge_id": challenge_id,
            "error": str(e),
        }

    finally:
        db.close()
