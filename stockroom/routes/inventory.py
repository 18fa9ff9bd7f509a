"""
Stockroom — Inventory API Route Handlers
==========================================

What:  GET /inventory (list) and POST /inventory (create), JSON in and out.
How:   Thin handlers: take the request's session, delegate to InventoryService,
       shape the HTTP response (status code, Location header).
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database import get_db_session
from stockroom.schemas.common import ErrorResponse
from stockroom.schemas.inventory import InventoryItemCreate, InventoryItemResponse
from stockroom.services.inventory_service import inventory_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Inventory"])


@router.get(
    "/inventory",
    response_model=List[InventoryItemResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List inventory items",
)
async def list_inventory(
    db: AsyncSession = Depends(get_db_session),
) -> List[InventoryItemResponse]:
    items = await inventory_service.list_items(db)
    return [InventoryItemResponse.model_validate(item) for item in items]


@router.post(
    "/inventory",
    status_code=201,
    response_model=InventoryItemResponse,
    responses={
        201: {"description": "Item created", "model": InventoryItemResponse},
        400: {"description": "Missing required field", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create an inventory item",
)
async def create_inventory_item(
    payload: InventoryItemCreate,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> InventoryItemResponse:
    """
    Persist a new item and echo it back with its assigned id.

    Returns 201 Created with `Location: /inventory/{id}`.
    """
    item = await inventory_service.create_item(db, payload)
    response.headers["Location"] = f"/inventory/{item.id}"
    return InventoryItemResponse.model_validate(item)
