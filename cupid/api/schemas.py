"""Request and response bodies of the HTTP surface."""

from pydantic import BaseModel, Field


class InteractionResponse(BaseModel):
    success: bool = True
    liked: bool
    matched: bool


class AckResponse(BaseModel):
    message: str


class BlockListResponse(BaseModel):
    blocked: list[str] = Field(default_factory=list)


class ReportRequest(BaseModel):
    reason: str


class SendMessageRequest(BaseModel):
    receiver_id: str
    content: str
