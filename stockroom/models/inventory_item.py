"""
Stockroom — InventoryItem SQLAlchemy Model
============================================

What:  ORM model representing the `inventory_items` table.
Who:   Used by InventoryService for list/create and by Alembic for schema management.

Table Design:
    - Integer identity key: assigned by the database on insert, echoed back to
      the client in the 201 response and Location header
    - name: required; blank names are rejected before reaching the store
    - price: NUMERIC(18, 4) so currency values keep their precision
"""

from decimal import Decimal

from sqlalchemy import Index, Integer, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from stockroom.database import Base


class InventoryItem(Base):
    """A stocked item: name, units on hand, and unit price."""

    __tablename__ = "inventory_items"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Item display name (required)",
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Units on hand",
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(18, 4),
        nullable=False,
        default=Decimal("0"),
        server_default=text("0"),
        comment="Unit price",
    )

    __table_args__ = (
        Index("idx_inventory_items_name", "name"),
    )

    def __repr__(self) -> str:
        return f"<InventoryItem(id={self.id}, name='{self.name}', quantity={self.quantity})>"
