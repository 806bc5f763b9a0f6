"""Queue consumer that dispatches messages to typed handlers by routing key."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from aio_pika import DeliveryMode
from aio_pika.abc import AbstractIncomingMessage
from pydantic import BaseModel, ValidationError

from inventory_hub.core.exceptions import DomainError
from inventory_hub.core.logging import log_message_discarded
from inventory_hub.core.pubsub.client import RabbitMQClient
from inventory_hub.core.pubsub.models import Envelope

logger = logging.getLogger(__name__)

Handler = Callable[[Any, Envelope], Awaitable[None]]


class MessageOutcome(str, Enum):
    """Final state of one delivered message."""

    ACKED = "acked"
    REQUEUED = "requeued"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class Subscription:
    model: type[BaseModel]
    handler: Handler


class EventConsumer:
    """Consumes one durable queue and runs handlers one message at a time.

    Acknowledgement policy:
    - handler success: ack
    - unknown routing key: logged and acked
    - invalid payload or domain rule rejection: nack without requeue
    - any other failure: nack with requeue (redelivered later)
    """

    def __init__(self, client: RabbitMQClient, queue_name: str, reconnect_interval: float = 10):
        """Initialize event consumer.

        Args:
            client: RabbitMQClient instance
            queue_name: Durable queue owned by this service
            reconnect_interval: Seconds to wait before resuming after a consume failure
        """
        self.client = client
        self.queue_name = queue_name
        self.reconnect_interval = reconnect_interval
        self._subscriptions: dict[str, Subscription] = {}
        self._running = False
        self._tasks: list[asyncio.Task] = []

    def subscribe(self, routing_key: str, model: type[BaseModel], handler: Handler) -> None:
        """Register the handler for a routing key.

        Args:
            routing_key: Routing key to bind (e.g. 'product.created')
            model: Payload model the body is validated against
            handler: Async callable receiving (payload, envelope)
        """
        self._subscriptions[routing_key] = Subscription(model=model, handler=handler)

    @property
    def routing_keys(self) -> list[str]:
        return list(self._subscriptions)

    async def start(self):
        """Declare and bind the queue, then start the consumption loop."""
        self._running = True
        task = asyncio.create_task(self._consume_loop())
        self._tasks.append(task)
        logger.info(f"Started consumer for queue '{self.queue_name}' (routing keys: {self.routing_keys})")

    async def _consume_loop(self):
        """Main consumption loop."""
        while self._running:
            try:
                channel, queue = await self.client.declare_queue(self.queue_name, self.routing_keys)
                try:
                    async with queue.iterator() as queue_iter:
                        async for message in queue_iter:
                            await self.process_message(message)
                            if not self._running:
                                break
                finally:
                    if not channel.is_closed:
                        await channel.close()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in consumption loop for '{self.queue_name}': {e}", exc_info=True)
                await asyncio.sleep(self.reconnect_interval)

    async def process_message(self, message: AbstractIncomingMessage) -> MessageOutcome:
        """Dispatch one message and settle it according to the acknowledgement policy."""
        routing_key = message.routing_key or ""
        subscription = self._subscriptions.get(routing_key)
        if subscription is None:
            logger.warning(f"Unknown routing key: {routing_key}")
            await message.ack()
            return MessageOutcome.ACKED

        envelope = Envelope(
            routing_key=routing_key,
            payload=message.body,
            persistent=message.delivery_mode == DeliveryMode.PERSISTENT,
            message_id=message.message_id,
        )

        try:
            payload = envelope.decode(subscription.model)
            await subscription.handler(payload, envelope)
        except ValidationError as e:
            logger.error(f"Validation error - message '{routing_key}' will be discarded: {e}")
            log_message_discarded(self.queue_name, routing_key, "validation error")
            await message.nack(requeue=False)
            return MessageOutcome.DISCARDED
        except DomainError as e:
            logger.error(f"Business rule rejected message '{routing_key}': {e.message}")
            log_message_discarded(self.queue_name, routing_key, e.message)
            await message.nack(requeue=False)
            return MessageOutcome.DISCARDED
        except Exception as e:
            logger.error(f"Error processing '{routing_key}' event: {e}", exc_info=True)
            await message.nack(requeue=True)
            return MessageOutcome.REQUEUED

        await message.ack()
        logger.debug(f"Processed and acked '{routing_key}' (ID: {envelope.message_id})")
        return MessageOutcome.ACKED

    async def stop(self):
        """Stop the consumer."""
        self._running = False

        if self._tasks:
            for task in self._tasks:
                if not task.done():
                    task.cancel()

            await asyncio.gather(*self._tasks, return_exceptions=True)
            self._tasks.clear()

        logger.info(f"Stopped consumer for queue '{self.queue_name}'")
