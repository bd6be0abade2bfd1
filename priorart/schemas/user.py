# priorart/schemas/user.py
from pydantic import BaseModel

from priorart.schemas.enums import Role


class Actor(BaseModel):
    """Whoever is asking: only identity and role matter to the engine."""
    id: str
    role: Role


class ProfilePublic(BaseModel):
    id: str
    name: str
    # stored as imported; not re-validated on read
    email: str
    role: Role
    avatar_url: str | None = None

    model_config = {"from_attributes": True}

    def as_actor(self) -> Actor:
        return Actor(id=self.id, role=self.role)
