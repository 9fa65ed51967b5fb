import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Report(BaseModel):
    """Represents a user report record."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    reporter_id: str
    target_id: str
    reason: str
    created_at: datetime

    @field_validator("reason")
    @classmethod
    def reason_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Report reason cannot be empty")
        return v

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "f47ac10b-58cc-4372-a567-0e02b2c3d479",
                "reporter_id": "user_abc_123",
                "target_id": "user_def_456",
                "reason": "Sends spam links",
                "created_at": "2023-10-27T10:00:00Z",
            }
        },
    )


class Block(BaseModel):
    """One entry of a user's block set."""

    blocker_id: str
    blocked_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
