"""User directory model for the Cupid match engine."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class User(BaseModel):
    """
    User model.

    Only identity is tracked here. Profiles, photos and credentials belong to
    other services.
    """

    id: str
    username: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id")
    @classmethod
    def id_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("User ID cannot be empty")
        return v

    model_config = ConfigDict(from_attributes=True)
