"""HTTP routes of the match engine. Each handler delegates to one service call."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from cupid.api.dependencies import get_current_user_id, get_services, require_admin
from cupid.api.schemas import (
    AckResponse,
    BlockListResponse,
    InteractionResponse,
    ReportRequest,
    SendMessageRequest,
)
from cupid.models.interaction import MatchView
from cupid.models.message import ConversationSummary, Message
from cupid.models.moderation import Report
from cupid.services.container import ServiceContainer

router = APIRouter()


@router.post("/like/{target_id}", response_model=InteractionResponse, tags=["matchmaking"])
def like_user(
    target_id: str,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> InteractionResponse:
    result = services.interactions.like(user_id, target_id)
    return InteractionResponse(liked=result.liked, matched=result.matched)


@router.post("/dislike/{target_id}", response_model=InteractionResponse, tags=["matchmaking"])
def dislike_user(
    target_id: str,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> InteractionResponse:
    result = services.interactions.dislike(user_id, target_id)
    return InteractionResponse(liked=result.liked, matched=result.matched)


@router.post("/unmatch/{other_id}", response_model=AckResponse, tags=["matchmaking"])
def unmatch_user(
    other_id: str,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> AckResponse:
    services.matches.unmatch(user_id, other_id)
    return AckResponse(message="Unmatched successfully")


@router.get("/matches", response_model=List[MatchView], tags=["matchmaking"])
def list_matches(
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> List[MatchView]:
    return services.matches.get_user_matches(user_id)


@router.post("/block/{target_id}", response_model=AckResponse, tags=["moderation"])
def block_user(
    target_id: str,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> AckResponse:
    services.moderation.block(user_id, target_id)
    return AckResponse(message="User blocked successfully")


@router.delete("/block/{target_id}", response_model=AckResponse, tags=["moderation"])
def unblock_user(
    target_id: str,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> AckResponse:
    services.moderation.unblock(user_id, target_id)
    return AckResponse(message="User unblocked successfully")


@router.get("/blocks", response_model=BlockListResponse, tags=["moderation"])
def list_blocks(
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> BlockListResponse:
    return BlockListResponse(blocked=services.moderation.list_blocked(user_id))


@router.post("/report/{target_id}", response_model=Report, status_code=status.HTTP_201_CREATED, tags=["moderation"])
def report_user(
    target_id: str,
    body: ReportRequest,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> Report:
    return services.moderation.report(user_id, target_id, body.reason)


@router.get("/reports", response_model=List[Report], tags=["admin"])
def list_reports(
    target_id: Optional[str] = None,
    _admin_id: str = Depends(require_admin),
    services: ServiceContainer = Depends(get_services),
) -> List[Report]:
    return services.moderation.list_reports(target_id)


@router.post("/messages", response_model=Message, status_code=status.HTTP_201_CREATED, tags=["messaging"])
def send_message(
    body: SendMessageRequest,
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> Message:
    return services.messaging.send_message(user_id, body.receiver_id, body.content)


@router.get("/messages/{other_id}", response_model=List[Message], tags=["messaging"])
def get_conversation(
    other_id: str,
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> List[Message]:
    return services.messaging.get_conversation(user_id, other_id, limit=limit, offset=offset)


@router.get("/conversations", response_model=List[ConversationSummary], tags=["messaging"])
def list_conversations(
    user_id: str = Depends(get_current_user_id),
    services: ServiceContainer = Depends(get_services),
) -> List[ConversationSummary]:
    return services.messaging.list_conversations(user_id)
