"""Wiring of the engine's services around one storage handle."""

from dataclasses import dataclass
from typing import Optional

from cupid.services.discovery import DiscoveryFilter
from cupid.services.interaction_service import InteractionRecorder
from cupid.services.match_service import MatchService
from cupid.services.message_store import MessageStore
from cupid.services.messaging_service import MessagingGate, MessagingService
from cupid.services.moderation_service import ModerationService
from cupid.services.notifications import NotificationDispatcher, build_dispatcher
from cupid.services.relationship_store import RelationshipStore
from cupid.services.user_directory import UserDirectory
from cupid.utils.database import Database


@dataclass
class ServiceContainer:
    """Every service of the engine, sharing one `Database` and one dispatcher."""

    db: Database
    dispatcher: NotificationDispatcher
    users: UserDirectory
    interactions: InteractionRecorder
    matches: MatchService
    gate: MessagingGate
    messaging: MessagingService
    moderation: ModerationService
    discovery: DiscoveryFilter


def build_services(db: Database, dispatcher: Optional[NotificationDispatcher] = None) -> ServiceContainer:
    """
    Build the service graph.

    Args:
        db: Injected storage handle.
        dispatcher: Notification sink; picked from settings when omitted.
    """
    dispatcher = dispatcher if dispatcher is not None else build_dispatcher()
    store = RelationshipStore()
    users = UserDirectory(db, store)
    gate = MessagingGate(db, store)

    return ServiceContainer(
        db=db,
        dispatcher=dispatcher,
        users=users,
        interactions=InteractionRecorder(db, users, dispatcher, store),
        matches=MatchService(db, users, store),
        gate=gate,
        messaging=MessagingService(db, users, gate, MessageStore()),
        moderation=ModerationService(db, users, store),
        discovery=DiscoveryFilter(db, store),
    )
