"""Event consumer for the notification service."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy.orm import Session

from inventory_hub.core.config_file import get_settings
from inventory_hub.core.db.session import get_session_factory
from inventory_hub.core.pubsub import EventConsumer, RabbitMQClient, topics
from inventory_hub.core.pubsub.models import Envelope
from inventory_hub.core.pubsub.payloads import (
    ApprovalRequestCancelledEvent,
    ApprovalRequestCreatedEvent,
    ApprovalRequestProcessedEvent,
    ProductCreatedEvent,
    ProductDeletedEvent,
    RouteCompletedEvent,
    RouteCreatedEvent,
)
from inventory_hub.modules.notifications.directory import UserDirectory
from inventory_hub.modules.notifications.sender import NotificationSender
from inventory_hub.modules.notifications.service import NotificationFanoutService

logger = logging.getLogger(__name__)

FanoutCall = Callable[[NotificationFanoutService, Any], Awaitable[Any]]

# routing key -> (payload model, fan-out method)
HANDLERS: dict[str, tuple[type, FanoutCall]] = {
    topics.APPROVAL_REQUEST_CREATED: (
        ApprovalRequestCreatedEvent,
        NotificationFanoutService.notify_approval_requested,
    ),
    topics.APPROVAL_REQUEST_PROCESSED: (
        ApprovalRequestProcessedEvent,
        NotificationFanoutService.notify_approval_processed,
    ),
    topics.APPROVAL_REQUEST_CANCELLED: (
        ApprovalRequestCancelledEvent,
        NotificationFanoutService.remove_cancelled_request,
    ),
    topics.PRODUCT_CREATED: (ProductCreatedEvent, NotificationFanoutService.notify_product_created),
    topics.PRODUCT_DELETED: (ProductDeletedEvent, NotificationFanoutService.notify_product_deleted),
    topics.ROUTE_CREATED: (RouteCreatedEvent, NotificationFanoutService.notify_route_created),
    topics.ROUTE_COMPLETED: (RouteCompletedEvent, NotificationFanoutService.notify_route_completed),
}


class NotificationEventConsumer:
    """Consumer for events that trigger notifications."""

    def __init__(
        self,
        client: RabbitMQClient,
        directory: UserDirectory,
        sender: NotificationSender,
        session_factory: Callable[[], Session] | None = None,
        consumer: EventConsumer | None = None,
    ):
        """Initialize notification event consumer.

        Args:
            client: RabbitMQClient instance
            directory: Identity directory for recipients
            sender: Delivers saved notifications
            session_factory: Factory for one database session per message
            consumer: EventConsumer instance (created if not provided)
        """
        settings = get_settings()
        self.directory = directory
        self.sender = sender
        self.session_factory = session_factory or get_session_factory()
        self.consumer = consumer or EventConsumer(
            client, settings.NOTIFICATION_QUEUE, reconnect_interval=settings.RABBITMQ_RECONNECT_INTERVAL
        )
        for routing_key, (model, call) in HANDLERS.items():
            self.consumer.subscribe(routing_key, model, self._handler(call))

    def _handler(self, call: FanoutCall) -> Callable[[Any, Envelope], Awaitable[None]]:
        async def handle(event: Any, envelope: Envelope) -> None:
            db = self.session_factory()
            try:
                await call(NotificationFanoutService(db, self.directory, self.sender), event)
            finally:
                db.close()

        return handle

    async def start(self):
        """Start consuming events and sending notifications."""
        await self.consumer.start()
        logger.info("Notification event consumer started")

    async def stop(self):
        """Stop consuming events."""
        await self.consumer.stop()
        logger.info("Notification event consumer stopped")
