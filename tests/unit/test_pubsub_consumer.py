"""Unit tests for EventConsumer dispatch and acknowledgement policy."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from aio_pika import DeliveryMode

from inventory_hub.core.exceptions import BusinessRuleError
from inventory_hub.core.pubsub import EventConsumer, MessageOutcome, topics
from inventory_hub.core.pubsub.client import RabbitMQClient
from inventory_hub.core.pubsub.payloads import ProductCreatedEvent


def make_message(routing_key: str, body: dict | bytes, message_id: str | None = "msg-1"):
    """Incoming message double with ack/nack recorders."""
    message = MagicMock()
    message.routing_key = routing_key
    message.body = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    message.delivery_mode = DeliveryMode.PERSISTENT
    message.message_id = message_id
    message.ack = AsyncMock()
    message.nack = AsyncMock()
    return message


@pytest.fixture
def consumer():
    """Consumer on a mocked client."""
    return EventConsumer(MagicMock(spec=RabbitMQClient), "test-queue", reconnect_interval=0)


VALID_BODY = {"ProductId": 42, "InventoryCode": 1001, "Model": "X1", "DepartmentId": 3}


@pytest.mark.asyncio
async def test_handler_success_acks(consumer):
    """Test that a handled message is acked and the handler sees the typed payload."""
    handler = AsyncMock()
    consumer.subscribe(topics.PRODUCT_CREATED, ProductCreatedEvent, handler)
    message = make_message(topics.PRODUCT_CREATED, VALID_BODY)

    outcome = await consumer.process_message(message)

    assert outcome == MessageOutcome.ACKED
    message.ack.assert_awaited_once()
    message.nack.assert_not_called()
    payload, envelope = handler.await_args.args
    assert isinstance(payload, ProductCreatedEvent)
    assert payload.product_id == 42
    assert payload.department_id == 3
    assert envelope.message_id == "msg-1"
    assert envelope.routing_key == topics.PRODUCT_CREATED
    assert envelope.persistent is True


@pytest.mark.asyncio
async def test_unknown_routing_key_is_acked(consumer):
    """Test that messages without a handler are dropped with an ack, not requeued."""
    message = make_message("inventory.unknown", {"Foo": 1})

    outcome = await consumer.process_message(message)

    assert outcome == MessageOutcome.ACKED
    message.ack.assert_awaited_once()
    message.nack.assert_not_called()


@pytest.mark.asyncio
async def test_schema_violation_is_discarded(consumer):
    """Test that an invalid payload is nacked without requeue and never reaches the handler."""
    handler = AsyncMock()
    consumer.subscribe(topics.PRODUCT_CREATED, ProductCreatedEvent, handler)
    message = make_message(topics.PRODUCT_CREATED, {"ProductId": 0, "InventoryCode": -5})

    outcome = await consumer.process_message(message)

    assert outcome == MessageOutcome.DISCARDED
    message.nack.assert_awaited_once_with(requeue=False)
    message.ack.assert_not_called()
    handler.assert_not_called()


@pytest.mark.asyncio
async def test_malformed_json_is_discarded(consumer):
    """Test that a body that is not JSON is discarded."""
    consumer.subscribe(topics.PRODUCT_CREATED, ProductCreatedEvent, AsyncMock())
    message = make_message(topics.PRODUCT_CREATED, b"{not json")

    outcome = await consumer.process_message(message)

    assert outcome == MessageOutcome.DISCARDED
    message.nack.assert_awaited_once_with(requeue=False)


@pytest.mark.asyncio
async def test_business_rule_rejection_is_discarded(consumer):
    """Test that a domain error raised by the handler discards the message."""
    handler = AsyncMock(side_effect=BusinessRuleError("Route is already completed"))
    consumer.subscribe(topics.PRODUCT_CREATED, ProductCreatedEvent, handler)
    message = make_message(topics.PRODUCT_CREATED, VALID_BODY)

    outcome = await consumer.process_message(message)

    assert outcome == MessageOutcome.DISCARDED
    message.nack.assert_awaited_once_with(requeue=False)


@pytest.mark.asyncio
async def test_transient_failure_is_requeued(consumer):
    """Test that infrastructure failures nack with requeue for redelivery."""
    handler = AsyncMock(side_effect=TimeoutError("database timeout"))
    consumer.subscribe(topics.PRODUCT_CREATED, ProductCreatedEvent, handler)
    message = make_message(topics.PRODUCT_CREATED, VALID_BODY)

    outcome = await consumer.process_message(message)

    assert outcome == MessageOutcome.REQUEUED
    message.nack.assert_awaited_once_with(requeue=True)
    message.ack.assert_not_called()


def test_subscribe_registers_routing_keys(consumer):
    """Test that routing keys bound to the queue follow the subscriptions."""
    consumer.subscribe(topics.PRODUCT_CREATED, ProductCreatedEvent, AsyncMock())
    consumer.subscribe(topics.PRODUCT_DELETED, ProductCreatedEvent, AsyncMock())

    assert consumer.routing_keys == [topics.PRODUCT_CREATED, topics.PRODUCT_DELETED]


@pytest.mark.asyncio
async def test_stop_without_start_is_safe(consumer):
    """Test that stopping an idle consumer does nothing harmful."""
    await consumer.stop()

    assert consumer._tasks == []


@pytest.mark.asyncio
async def test_consume_loop_closes_channel_after_each_failure(consumer):
    """Test that every restart of the consume loop releases the channel it opened."""
    channels = []

    async def declare_queue(queue_name, routing_keys):
        channel = MagicMock()
        channel.is_closed = False
        channel.close = AsyncMock()
        channels.append(channel)
        if len(channels) == 2:
            consumer._running = False
        queue = MagicMock()
        queue.iterator.return_value.__aenter__.side_effect = RuntimeError("channel lost")
        return channel, queue

    consumer.client.declare_queue = AsyncMock(side_effect=declare_queue)
    consumer._running = True

    await consumer._consume_loop()

    assert len(channels) == 2
    for channel in channels:
        channel.close.assert_awaited_once()
