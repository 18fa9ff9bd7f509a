"""
Stockroom — Order Route Handler
=================================

What:  POST /orders publishes the order as an event; nothing is stored locally.
"""

import logging

from fastapi import APIRouter, Depends, Request

from stockroom.schemas.common import ErrorResponse, MessageResponse
from stockroom.schemas.order import OrderRequest
from stockroom.services.order_publisher import OrderEventPublisher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Orders"])


def get_order_publisher(request: Request) -> OrderEventPublisher:
    """The process-wide publisher created in the lifespan."""
    return request.app.state.order_publisher


@router.post(
    "/orders",
    response_model=MessageResponse,
    responses={
        400: {"description": "Event did not fit into a batch", "model": ErrorResponse},
        502: {"description": "Event bus unavailable", "model": ErrorResponse},
    },
    summary="Submit an order event",
)
async def submit_order(
    order: OrderRequest,
    publisher: OrderEventPublisher = Depends(get_order_publisher),
) -> MessageResponse:
    await publisher.publish(order)
    return MessageResponse(message="Order event published!")
