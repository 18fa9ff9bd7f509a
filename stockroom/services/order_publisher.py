"""
Stockroom — Order Event Publisher
===================================

What:  Publishes order requests as events to an Azure Event Hub (`order-events`).
Why:   The order service does no processing of its own; downstream consumers
       read the hub. The HTTP request succeeds once the event is sent.
How:   One EventHubProducerClient per process (created in the lifespan).
       Each order becomes a single-event batch:
       serialize → create_batch → add → send_batch.

Failure mapping:
    - Event does not fit into the batch (batch.add raises ValueError)
      → EventPublishError (400): the client sent an oversized order
    - Sending fails (EventHubError: auth, connectivity, throttling)
      → UpstreamServiceError (502)
"""

import logging
from typing import Any

from azure.eventhub import EventData
from azure.eventhub.aio import EventHubProducerClient
from azure.eventhub.exceptions import EventHubError

from stockroom.exceptions import EventPublishError, UpstreamServiceError
from stockroom.schemas.order import OrderRequest

logger = logging.getLogger(__name__)


class OrderEventPublisher:
    """
    Thin wrapper over an async Event Hubs producer.

    Args:
        producer: An `azure.eventhub.aio.EventHubProducerClient` (or any object
                  with the same create_batch / send_batch / close coroutines).
    """

    def __init__(self, producer: Any):
        self.producer = producer

    @classmethod
    def from_connection_string(cls, connection_string: str, eventhub_name: str) -> "OrderEventPublisher":
        producer = EventHubProducerClient.from_connection_string(
            conn_str=connection_string,
            eventhub_name=eventhub_name,
        )
        logger.info("OrderEventPublisher initialized for event hub '%s'", eventhub_name)
        return cls(producer)

    async def publish(self, order: OrderRequest) -> None:
        """
        Send one order event.

        Raises:
            EventPublishError: the event could not be added to a batch
            UpstreamServiceError: Event Hubs rejected or failed the send
        """
        body = order.to_event_body()
        event = EventData(body.encode("utf-8"))

        try:
            batch = await self.producer.create_batch()
            try:
                batch.add(event)
            except ValueError as e:
                logger.warning("Order event rejected by batch (%d bytes): %s", len(body), str(e))
                raise EventPublishError(context={"event_size": len(body)})

            await self.producer.send_batch(batch)
        except EventHubError as e:
            logger.error("Event Hubs send failed: %s", str(e))
            raise UpstreamServiceError(
                message="The order event bus is unavailable. Please try again later.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Order event published: item=%s quantity=%d", order.item_name, order.quantity)

    async def close(self) -> None:
        await self.producer.close()
