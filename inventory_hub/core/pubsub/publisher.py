"""Event publisher for the inventory topic exchange."""

import logging
from typing import Any
from uuid import uuid4

import aio_pika
from aio_pika import DeliveryMode
from pydantic import BaseModel

from inventory_hub.core.pubsub.client import RabbitMQClient
from inventory_hub.core.pubsub.errors import PublishError
from inventory_hub.core.pubsub.models import Envelope

logger = logging.getLogger(__name__)


class EventPublisher:
    """Publisher used by every producing service."""

    def __init__(self, client: RabbitMQClient):
        """Initialize event publisher.

        Args:
            client: RabbitMQClient instance
        """
        self.client = client

    async def publish(self, payload: BaseModel | dict[str, Any], routing_key: str) -> str:
        """Publish a payload as a persistent JSON message.

        Args:
            payload: Event payload model (or plain dict)
            routing_key: Routing key in format '<entity>.<verb>'

        Returns:
            The message id assigned to the message

        Raises:
            PublishError: If serialization or publication fails
        """
        try:
            envelope = Envelope.wrap(payload, routing_key)
        except Exception as e:
            logger.error(f"Failed to serialize event '{routing_key}': {e}")
            raise PublishError(f"Invalid event data: {e}") from e

        message_id = uuid4().hex
        message = aio_pika.Message(
            body=envelope.payload,
            content_type="application/json",
            content_encoding="utf-8",
            delivery_mode=DeliveryMode.PERSISTENT if envelope.persistent else DeliveryMode.NOT_PERSISTENT,
            message_id=message_id,
        )

        try:
            exchange = await self.client.get_exchange()
            await exchange.publish(message, routing_key=routing_key)
        except Exception as e:
            logger.error(f"Failed to publish event '{routing_key}': {e}", exc_info=True)
            raise PublishError(f"Failed to publish event: {e}") from e

        logger.info(f"Published event '{routing_key}' (ID: {message_id})")
        return message_id
