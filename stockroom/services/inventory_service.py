"""
Stockroom — Inventory Service
===============================

What:  List and create inventory items.
Who:   Called by the JSON API (routes/inventory.py) and the web pages (routes/web.py).
How:   Stateless; receives the request's AsyncSession on every call. Writes are
       flushed here and committed by get_db_session when the request succeeds.

Error Handling:
    - Blank name → ValidationError (400), raised before the session is touched
    - Any SQLAlchemy failure → DatabaseError (500, generic message)
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.exceptions import DatabaseError, ValidationError
from stockroom.models.inventory_item import InventoryItem
from stockroom.schemas.inventory import InventoryItemCreate

logger = logging.getLogger(__name__)


class InventoryService:

    def validate(self, payload: InventoryItemCreate) -> None:
        """Required-field checks shared by JSON and form submissions."""
        if not payload.name:
            raise ValidationError(message="Item name is required.", field="name")

    async def list_items(self, db: AsyncSession) -> List[InventoryItem]:
        try:
            result = await db.execute(select(InventoryItem).order_by(InventoryItem.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing inventory: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve inventory. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def create_item(self, db: AsyncSession, payload: InventoryItemCreate) -> InventoryItem:
        """
        Persist a new item and return it with its assigned id.

        Raises:
            ValidationError: name is blank (the store is never called)
            DatabaseError: insert failed
        """
        self.validate(payload)

        item = InventoryItem(
            name=payload.name,
            quantity=payload.quantity,
            price=payload.price,
        )
        try:
            db.add(item)
            await db.flush()  # Assigns the identity value without committing
        except SQLAlchemyError as e:
            logger.error("Database error creating inventory item: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the item. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Inventory item created: id=%s name=%s", item.id, item.name)
        return item


inventory_service = InventoryService()
