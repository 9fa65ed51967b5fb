"""Services package for the Cupid match engine."""

from cupid.services.container import ServiceContainer, build_services
from cupid.services.discovery import DiscoveryFilter
from cupid.services.interaction_service import InteractionRecorder
from cupid.services.match_service import MatchService
from cupid.services.messaging_service import MessagingGate, MessagingService
from cupid.services.moderation_service import ModerationService
from cupid.services.notifications import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    RedisNotificationDispatcher,
    dispatch_safely,
)
from cupid.services.user_directory import UserDirectory

__all__ = [
    "DiscoveryFilter",
    "InteractionRecorder",
    "LoggingNotificationDispatcher",
    "MatchService",
    "MessagingGate",
    "MessagingService",
    "ModerationService",
    "NotificationDispatcher",
    "RedisNotificationDispatcher",
    "ServiceContainer",
    "UserDirectory",
    "build_services",
    "dispatch_safely",
]
