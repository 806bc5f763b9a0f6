"""Unit tests for EventPublisher and the bus wire format."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from aio_pika import DeliveryMode

from inventory_hub.core.pubsub import EventPublisher, PublishError, topics
from inventory_hub.core.pubsub.client import RabbitMQClient
from inventory_hub.core.pubsub.models import Envelope
from inventory_hub.core.pubsub.payloads import ProductCreatedEvent, ProductTransferredEvent


@pytest.fixture
def exchange():
    exchange = MagicMock()
    exchange.publish = AsyncMock()
    return exchange


@pytest.fixture
def publisher(exchange):
    client = MagicMock(spec=RabbitMQClient)
    client.get_exchange = AsyncMock(return_value=exchange)
    return EventPublisher(client=client)


@pytest.mark.asyncio
async def test_publish_sends_persistent_json_message(publisher, exchange):
    """Test that payloads go out persistent, PascalCase and with a message id."""
    event = ProductCreatedEvent(product_id=42, inventory_code=1001, model="X1", department_id=3)

    message_id = await publisher.publish(event, topics.PRODUCT_CREATED)

    message = exchange.publish.await_args.args[0]
    assert exchange.publish.await_args.kwargs["routing_key"] == topics.PRODUCT_CREATED
    assert message.delivery_mode == DeliveryMode.PERSISTENT
    assert message.message_id == message_id
    assert message.content_type == "application/json"

    body = json.loads(message.body)
    assert body["ProductId"] == 42
    assert body["InventoryCode"] == 1001
    assert body["DepartmentId"] == 3
    assert body["ImageData"] is None


@pytest.mark.asyncio
async def test_publish_assigns_unique_message_ids(publisher):
    """Test that every message gets its own id."""
    event = ProductTransferredEvent(product_id=5, to_department_id=2)

    first = await publisher.publish(event, topics.PRODUCT_TRANSFERRED)
    second = await publisher.publish(event, topics.PRODUCT_TRANSFERRED)

    assert first != second


@pytest.mark.asyncio
async def test_publish_failure_is_raised(publisher, exchange):
    """Test that broker failures surface as PublishError instead of being swallowed."""
    exchange.publish.side_effect = ConnectionResetError("connection lost")

    with pytest.raises(PublishError):
        await publisher.publish({"ProductId": 1}, topics.PRODUCT_DELETED)


@pytest.mark.asyncio
async def test_publish_invalid_routing_key_raises(publisher, exchange):
    """Test that an envelope that cannot be built is reported as PublishError."""
    with pytest.raises(PublishError):
        await publisher.publish({"ProductId": 1}, None)

    exchange.publish.assert_not_called()


def test_image_bytes_travel_as_base64():
    """Test that binary image data is base64 on the wire and bytes after decoding."""
    event = ProductTransferredEvent(
        product_id=5, to_department_id=2, image_data=b"\x89PNG", image_file_name="a.png"
    )

    envelope = Envelope.wrap(event, topics.PRODUCT_TRANSFERRED)
    body = json.loads(envelope.payload)

    assert body["ImageData"] == "iVBORw=="
    decoded = envelope.decode(ProductTransferredEvent)
    assert decoded.image_data == b"\x89PNG"
    assert decoded.image_file_name == "a.png"


def test_empty_base64_decodes_to_none():
    """Test that an empty image string is treated as no image."""
    event = ProductTransferredEvent.model_validate(
        {"ProductId": 5, "ToDepartmentId": 2, "ImageData": ""}
    )

    assert event.image_data is None
