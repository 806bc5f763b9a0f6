"""Delivery of saved notifications to connected clients."""

import logging
from typing import Protocol

from inventory_hub.core.pubsub import topics
from inventory_hub.core.pubsub.payloads import NotificationPushEvent
from inventory_hub.core.pubsub.publisher import EventPublisher
from inventory_hub.modules.notifications.models import Notification

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    async def send(self, notification: Notification) -> None: ...


class BusNotificationSender:
    """Publishes notification.push for the realtime gateway to deliver."""

    def __init__(self, event_publisher: EventPublisher):
        self.event_publisher = event_publisher

    async def send(self, notification: Notification) -> None:
        await self.event_publisher.publish(
            NotificationPushEvent(
                notification_id=notification.id,
                user_id=notification.user_id,
                type=notification.type,
                title=notification.title,
                message=notification.message,
                data=notification.data,
                is_read=notification.is_read,
                created_at=notification.created_at,
            ),
            topics.NOTIFICATION_PUSH,
        )
        logger.debug(f"Pushed notification {notification.id} to user {notification.user_id}")
