"""Message bus built on a RabbitMQ topic exchange."""

from inventory_hub.core.pubsub import payloads, topics
from inventory_hub.core.pubsub.client import RabbitMQClient
from inventory_hub.core.pubsub.consumer import EventConsumer, MessageOutcome
from inventory_hub.core.pubsub.errors import (
    BusConnectionError,
    ConsumeError,
    PublishError,
    PubSubError,
)
from inventory_hub.core.pubsub.models import Envelope, EventPayload
from inventory_hub.core.pubsub.publisher import EventPublisher

__all__ = [
    "RabbitMQClient",
    "EventPublisher",
    "EventConsumer",
    "MessageOutcome",
    "Envelope",
    "EventPayload",
    "PubSubError",
    "BusConnectionError",
    "PublishError",
    "ConsumeError",
    "get_rabbitmq_client",
    "get_event_publisher",
    "topics",
    "payloads",
]


_client: RabbitMQClient | None = None


def get_rabbitmq_client() -> RabbitMQClient:
    """Process-wide RabbitMQ client."""
    global _client
    if _client is None:
        from inventory_hub.core.config_file import get_settings

        settings = get_settings()
        _client = RabbitMQClient(
            url=settings.rabbitmq_url,
            exchange_name=settings.RABBITMQ_EXCHANGE,
            reconnect_interval=settings.RABBITMQ_RECONNECT_INTERVAL,
            prefetch_count=settings.RABBITMQ_PREFETCH_COUNT,
        )
    return _client


def get_event_publisher() -> EventPublisher:
    """Dependency function to get EventPublisher instance."""
    return EventPublisher(client=get_rabbitmq_client())
