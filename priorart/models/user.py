# priorart/models/user.py
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from priorart.db.base_class import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False)  # Manager / Trainee / Evaluator / Mentor
    avatar_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
