"""Notification dispatch for match and like events.

Delivery itself (push, websockets, email) belongs to another service. The
engine only hands events to a sink and never lets a sink failure reach the
caller.
"""

from typing import Optional, Protocol

import redis
import sentry_sdk

from cupid.config import get_settings
from cupid.models.notification import NotificationEvent
from cupid.utils.errors import ExternalServiceError
from cupid.utils.logging import get_logger, log_error

logger = get_logger(__name__)


class NotificationDispatcher(Protocol):
    """Sink for notification events."""

    def dispatch(self, event: NotificationEvent) -> None: ...


class LoggingNotificationDispatcher:
    """Dispatcher that only logs events. Used when no Redis is configured."""

    def dispatch(self, event: NotificationEvent) -> None:
        logger.info(
            "Notification event",
            type=event.type.value,
            recipient=event.recipient_id,
            from_user=event.from_user_id,
        )


class RedisNotificationDispatcher:
    """
    Publish notification events to a Redis channel as JSON.

    The client is created on first use from `redis_url` unless one is passed
    in. Connection failures surface as `ExternalServiceError`; callers that
    must not fail go through `dispatch_safely`.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        channel: Optional[str] = None,
        client: Optional[redis.Redis] = None,
    ) -> None:
        settings = get_settings()
        self.redis_url = redis_url or settings.REDIS_URL
        self.channel = channel or settings.NOTIFICATION_CHANNEL
        self._client = client

    def get_client(self) -> redis.Redis:
        if self._client is None:
            if not self.redis_url:
                raise ExternalServiceError("REDIS_URL is not configured", service="redis")
            pool = redis.ConnectionPool.from_url(
                self.redis_url,
                max_connections=10,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=pool)
            logger.info("Redis client initialized", channel=self.channel)
        return self._client

    def dispatch(self, event: NotificationEvent) -> None:
        with sentry_sdk.start_span(op="notification.publish", name=event.type.value) as span:
            try:
                receivers = self.get_client().publish(self.channel, event.model_dump_json())
            except redis.RedisError as e:
                span.set_status("internal_error")
                raise ExternalServiceError(
                    "Failed to publish notification",
                    service="redis",
                    details={"error": str(e), "type": event.type.value},
                ) from e
            span.set_data("receivers", receivers)
            logger.debug("Notification published", type=event.type.value, recipient=event.recipient_id)


def dispatch_safely(dispatcher: NotificationDispatcher, event: NotificationEvent) -> bool:
    """
    Hand an event to the dispatcher, logging and swallowing any failure.

    Returns:
        True if the dispatcher accepted the event.
    """
    try:
        dispatcher.dispatch(event)
        return True
    except Exception as e:
        log_error(
            logger,
            e,
            "Notification dispatch failed",
            extra={"type": event.type.value, "recipient": event.recipient_id},
        )
        return False


def build_dispatcher(redis_url: Optional[str] = None) -> NotificationDispatcher:
    """Pick the Redis dispatcher when a URL is configured, the logging one otherwise."""
    redis_url = redis_url or get_settings().REDIS_URL
    if redis_url:
        return RedisNotificationDispatcher(redis_url=redis_url)
    logger.warning("No Redis configuration found, notifications will only be logged")
    return LoggingNotificationDispatcher()
