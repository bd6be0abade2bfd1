# priorart/models/leaderboard.py
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey

from priorart.db.base_class import Base


class LeaderboardSnapshot(Base):
    """
    Last leaderboard computed by the recompute worker for one challenge.
    Deleted whenever a grade or publication changes the scores.
    """
    __tablename__ = "leaderboard_snapshots"

    challenge_id = Column(
        String(36), ForeignKey("overall_challenges.id"), primary_key=True
    )
    name = Column(String(255), nullable=False)

    # RankedEntry dicts, best first
    entries = Column(JSON, nullable=False, default=list)
    public_entries = Column(JSON, nullable=False, default=list)

    computed_at = Column(DateTime(timezone=True), nullable=False)
