# priorart/models/submission.py
import uuid

from sqlalchemy import (
    Column,
    String,
    DateTime,
    JSON,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from priorart.db.base_class import Base


class Submission(Base):
    __tablename__ = "submissions"
    # one submission per trainee per sub-challenge
    __table_args__ = (
        UniqueConstraint("sub_challenge_id", "trainee_id", name="uq_submission_trainee"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    sub_challenge_id = Column(
        String(36), ForeignKey("sub_challenges.id"), nullable=False, index=True
    )
    trainee_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    submitted_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # JSON blobs, validated in services.snapshot
    results = Column(JSON, nullable=True)
    report_file = Column(JSON, nullable=True)
    evaluation = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
