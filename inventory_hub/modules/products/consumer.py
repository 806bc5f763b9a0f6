"""Product-side consumer: applies completed transfers to the catalog."""

import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from inventory_hub.core.config_file import get_settings
from inventory_hub.core.db.session import get_session_factory
from inventory_hub.core.files import ImageService, get_product_image_service
from inventory_hub.core.pubsub import EventConsumer, RabbitMQClient, topics
from inventory_hub.core.pubsub.models import Envelope
from inventory_hub.core.pubsub.payloads import ProductTransferredEvent
from inventory_hub.modules.products.services.product_service import ProductService

logger = logging.getLogger(__name__)


class ProductTransferConsumer:
    """Consumer for product.transferred events."""

    def __init__(
        self,
        client: RabbitMQClient,
        session_factory: Callable[[], Session] | None = None,
        image_service: ImageService | None = None,
        consumer: EventConsumer | None = None,
    ):
        settings = get_settings()
        self.session_factory = session_factory or get_session_factory()
        self.image_service = image_service or get_product_image_service()
        self.consumer = consumer or EventConsumer(
            client, settings.PRODUCT_TRANSFER_QUEUE, reconnect_interval=settings.RABBITMQ_RECONNECT_INTERVAL
        )
        self.consumer.subscribe(
            topics.PRODUCT_TRANSFERRED, ProductTransferredEvent, self.handle_product_transferred
        )

    async def start(self):
        await self.consumer.start()
        logger.info("Product transfer consumer started")

    async def stop(self):
        await self.consumer.stop()
        logger.info("Product transfer consumer stopped")

    async def handle_product_transferred(
        self, event: ProductTransferredEvent, envelope: Envelope
    ) -> None:
        db = self.session_factory()
        try:
            await ProductService(db, self.image_service).apply_transfer(event)
        finally:
            db.close()
