"""Unit tests for the route-ledger and product-transfer consumers."""

from unittest.mock import MagicMock

import pytest

from inventory_hub.core.pubsub import topics
from inventory_hub.core.pubsub.models import Envelope
from inventory_hub.core.pubsub.payloads import ProductCreatedEvent, ProductTransferredEvent
from inventory_hub.modules.products.consumer import ProductTransferConsumer
from inventory_hub.modules.products.models import Product
from inventory_hub.modules.routes.consumer import RouteEventConsumer
from inventory_hub.modules.routes.models import InventoryRoute


def subscriptions(fake_consumer: MagicMock) -> dict:
    return {call.args[0]: call.args[2] for call in fake_consumer.subscribe.call_args_list}


def envelope(routing_key: str, message_id: str | None = "msg-1") -> Envelope:
    return Envelope(routing_key=routing_key, payload=b"{}", message_id=message_id)


def test_route_consumer_binds_product_lifecycle_keys(session_factory, image_service):
    fake_consumer = MagicMock()

    RouteEventConsumer(None, session_factory=session_factory, image_service=image_service, consumer=fake_consumer)

    assert set(subscriptions(fake_consumer)) == {
        topics.PRODUCT_CREATED,
        topics.PRODUCT_UPDATED,
        topics.PRODUCT_DELETED,
    }


@pytest.mark.asyncio
async def test_route_consumer_records_redelivery_once(session_factory, image_service, db_session):
    """Test that the same message id delivered twice yields one route."""
    fake_consumer = MagicMock()
    RouteEventConsumer(None, session_factory=session_factory, image_service=image_service, consumer=fake_consumer)
    handle = subscriptions(fake_consumer)[topics.PRODUCT_CREATED]
    event = ProductCreatedEvent(product_id=42, inventory_code=1001, department_id=3)

    await handle(event, envelope(topics.PRODUCT_CREATED))
    await handle(event, envelope(topics.PRODUCT_CREATED))

    assert db_session.query(InventoryRoute).count() == 1


@pytest.mark.asyncio
async def test_product_consumer_applies_transfer(session_factory, image_service, db_session, catalog):
    """Test that product.transferred moves the product to the new department."""
    product = Product(inventory_code=2002, model="ThinkPad", vendor="Lenovo", category_id=1, department_id=1)
    db_session.add(product)
    db_session.commit()
    fake_consumer = MagicMock()
    ProductTransferConsumer(
        None, session_factory=session_factory, image_service=image_service, consumer=fake_consumer
    )
    handle = subscriptions(fake_consumer)[topics.PRODUCT_TRANSFERRED]

    await handle(
        ProductTransferredEvent(product_id=product.id, to_department_id=2, to_worker="Carol"),
        envelope(topics.PRODUCT_TRANSFERRED),
    )

    moved = db_session.get(Product, product.id)
    assert moved.department_id == 2
    assert moved.worker == "Carol"
