from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr


class CurrentIdentity(BaseModel):
    """Verified caller identity from the session token."""

    user_id: str  # External identity id (`sub`)
    email: Optional[str] = None


class CurrentTeacher(BaseModel):
    """Identity resolved to its users row."""

    id: UUID
    user_id: str
    name: str
    email: EmailStr
    role: str
