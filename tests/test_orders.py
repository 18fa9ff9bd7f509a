"""
Stockroom — Order Event Publisher Tests
=========================================

What:  OrderEventPublisher against a fake Event Hubs producer, and the
       POST /orders endpoint with the publisher dependency overridden.

What we test:
    ✅ Event body is the camelCase order JSON
    ✅ Event that does not fit the batch → EventPublishError / 400, nothing sent
    ✅ Send failure → UpstreamServiceError / 502
    ✅ Success → 200 "Order event published!"
"""

import json
from unittest.mock import patch

import pytest
from azure.eventhub.exceptions import EventHubError

from stockroom.exceptions import EventPublishError, UpstreamServiceError
from stockroom.schemas.order import OrderRequest
from stockroom.services.order_publisher import OrderEventPublisher


class TestOrderRequest:

    def test_event_body_uses_camel_case(self):
        order = OrderRequest(itemName="Widget", quantity=2)
        assert json.loads(order.to_event_body()) == {"itemName": "Widget", "quantity": 2}

    def test_accepts_snake_case_names(self):
        order = OrderRequest(item_name="Widget", quantity=2)
        assert order.item_name == "Widget"


class TestOrderEventPublisher:

    @pytest.mark.asyncio
    async def test_publish_sends_single_event_batch(self, fake_producer):
        publisher = OrderEventPublisher(fake_producer)

        await publisher.publish(OrderRequest(itemName="Widget", quantity=2))

        fake_producer.create_batch.assert_awaited_once()
        event = fake_producer.batch.add.call_args.args[0]
        assert json.loads(event.body_as_str()) == {"itemName": "Widget", "quantity": 2}
        fake_producer.send_batch.assert_awaited_once_with(fake_producer.batch)

    @pytest.mark.asyncio
    async def test_oversized_event_is_not_sent(self, fake_producer):
        fake_producer.batch.add.side_effect = ValueError("EventDataBatch has reached its size limit")
        publisher = OrderEventPublisher(fake_producer)

        with pytest.raises(EventPublishError) as exc_info:
            await publisher.publish(OrderRequest(itemName="Widget", quantity=2))

        assert exc_info.value.message == "Failed to add event to batch."
        fake_producer.send_batch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_failure_is_upstream_error(self, fake_producer):
        fake_producer.send_batch.side_effect = EventHubError("connection lost")
        publisher = OrderEventPublisher(fake_producer)

        with pytest.raises(UpstreamServiceError):
            await publisher.publish(OrderRequest(itemName="Widget", quantity=2))

    @pytest.mark.asyncio
    async def test_close_closes_producer(self, fake_producer):
        await OrderEventPublisher(fake_producer).close()
        fake_producer.close.assert_awaited_once()

    def test_from_connection_string_builds_producer(self):
        with patch("stockroom.services.order_publisher.EventHubProducerClient") as mock_client:
            publisher = OrderEventPublisher.from_connection_string("Endpoint=sb://x/", "order-events")

        mock_client.from_connection_string.assert_called_once_with(
            conn_str="Endpoint=sb://x/",
            eventhub_name="order-events",
        )
        assert publisher.producer is mock_client.from_connection_string.return_value


class TestOrderEndpoint:

    @pytest.mark.asyncio
    async def test_publish_returns_200(self, orders_client, fake_producer):
        response = await orders_client.post("/orders", json={"itemName": "Widget", "quantity": 3})

        assert response.status_code == 200
        assert response.json() == {"message": "Order event published!"}
        fake_producer.send_batch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_batch_rejection_returns_400(self, orders_client, fake_producer):
        fake_producer.batch.add.side_effect = ValueError("too large")

        response = await orders_client.post("/orders", json={"itemName": "Widget", "quantity": 3})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "event_publish_error"
        assert body["message"] == "Failed to add event to batch."

    @pytest.mark.asyncio
    async def test_missing_fields_rejected(self, orders_client):
        response = await orders_client.post("/orders", json={"quantity": 3})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_health_does_not_use_database(self, orders_client):
        response = await orders_client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "not_used"
        assert response.json()["service"] == "orders"
