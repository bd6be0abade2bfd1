# priorart/models/challenge.py
import uuid

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    JSON,
    ForeignKey,
)
from sqlalchemy.sql import func

from priorart.db.base_class import Base


class OverallChallenge(Base):
    __tablename__ = "overall_challenges"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)

    # profile id lists
    manager_ids = Column(JSON, nullable=False, default=list)
    trainee_ids = Column(JSON, nullable=False, default=list)
    evaluator_ids = Column(JSON, nullable=False, default=list)

    # set by a manager to close the whole challenge
    ended_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SubChallenge(Base):
    __tablename__ = "sub_challenges"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    overall_challenge_id = Column(
        String(36), ForeignKey("overall_challenges.id"), nullable=False, index=True
    )

    title = Column(String(255), nullable=False)
    patent_number = Column(String(100), nullable=True)

    submission_end_time = Column(DateTime(timezone=True), nullable=False)
    report_end_time = Column(DateTime(timezone=True), nullable=True)

    # null / empty: graded by the overall challenge's managers
    evaluator_ids = Column(JSON, nullable=True)
    evaluation_rules = Column(JSON, nullable=False)

    scores_published_at = Column(DateTime(timezone=True), nullable=True)
    submission_limit = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
