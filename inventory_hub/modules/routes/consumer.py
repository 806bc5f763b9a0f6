"""Audit-ledger consumer: records product lifecycle events as inventory routes."""

import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from inventory_hub.core.config_file import get_settings
from inventory_hub.core.db.session import get_session_factory
from inventory_hub.core.files import ImageService, get_route_image_service
from inventory_hub.core.pubsub import EventConsumer, RabbitMQClient, topics
from inventory_hub.core.pubsub.models import Envelope
from inventory_hub.core.pubsub.payloads import (
    ProductCreatedEvent,
    ProductDeletedEvent,
    ProductUpdatedEvent,
)
from inventory_hub.modules.routes.product_client import ProductServiceClient
from inventory_hub.modules.routes.services.route_service import InventoryRouteService

logger = logging.getLogger(__name__)


class RouteEventConsumer:
    """Consumer for the product events that feed the route ledger."""

    def __init__(
        self,
        client: RabbitMQClient,
        session_factory: Callable[[], Session] | None = None,
        image_service: ImageService | None = None,
        product_client: ProductServiceClient | None = None,
        consumer: EventConsumer | None = None,
    ):
        """Initialize route event consumer.

        Args:
            client: RabbitMQClient instance
            session_factory: Factory for one database session per message
            image_service: Image storage for embedded event images
            product_client: Used when an update event lacks the after-state
            consumer: EventConsumer instance (created if not provided)
        """
        settings = get_settings()
        self.session_factory = session_factory or get_session_factory()
        self.image_service = image_service or get_route_image_service()
        self.product_client = product_client
        self.consumer = consumer or EventConsumer(
            client, settings.ROUTE_LEDGER_QUEUE, reconnect_interval=settings.RABBITMQ_RECONNECT_INTERVAL
        )
        self.consumer.subscribe(topics.PRODUCT_CREATED, ProductCreatedEvent, self.handle_product_created)
        self.consumer.subscribe(topics.PRODUCT_UPDATED, ProductUpdatedEvent, self.handle_product_updated)
        self.consumer.subscribe(topics.PRODUCT_DELETED, ProductDeletedEvent, self.handle_product_deleted)

    def _service(self, db: Session) -> InventoryRouteService:
        return InventoryRouteService(db, self.image_service, product_client=self.product_client)

    async def start(self):
        """Start consuming product events."""
        await self.consumer.start()
        logger.info("Route ledger consumer started")

    async def stop(self):
        """Stop consuming product events."""
        await self.consumer.stop()
        logger.info("Route ledger consumer stopped")

    async def handle_product_created(self, event: ProductCreatedEvent, envelope: Envelope) -> None:
        db = self.session_factory()
        try:
            await self._service(db).record_new_inventory(event, envelope.message_id)
        finally:
            db.close()

    async def handle_product_updated(self, event: ProductUpdatedEvent, envelope: Envelope) -> None:
        db = self.session_factory()
        try:
            await self._service(db).record_update(event, envelope.message_id)
        finally:
            db.close()

    async def handle_product_deleted(self, event: ProductDeletedEvent, envelope: Envelope) -> None:
        db = self.session_factory()
        try:
            await self._service(db).record_removal(event, envelope.message_id)
        finally:
            db.close()
