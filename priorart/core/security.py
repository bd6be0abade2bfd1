# priorart/core/security.py
"""
Caller identity. Authentication happens upstream; by the time a request gets
here the profile id is in ``settings.ACTOR_HEADER``.
"""
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from priorart.core.config import settings
from priorart.db.session import get_db
from priorart.models.user import Profile
from priorart.schemas.enums import Role
from priorart.schemas.user import Actor, ProfilePublic


def get_current_profile(
    request: Request,
    db: Session = Depends(get_db),
) -> ProfilePublic:
    profile_id = request.headers.get(settings.ACTOR_HEADER)
    if not profile_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )

    profile = db.get(Profile, profile_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown caller",
        )
    return ProfilePublic.model_validate(profile)


def get_current_actor(
    profile: ProfilePublic = Depends(get_current_profile),
) -> Actor:
    return profile.as_actor()


def get_current_trainee(
    actor: Actor = Depends(get_current_actor),
) -> Actor:
    if actor.role != Role.TRAINEE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only trainees can do this",
        )
    return actor
