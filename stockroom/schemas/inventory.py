"""
Stockroom — Inventory Request/Response Schemas
================================================

What:  Pydantic models defining the inventory API contract.
How:   FastAPI validates request bodies against InventoryItemCreate and
       serializes responses through InventoryItemResponse.

Design Decision:
    Schemas are separate from the SQLAlchemy model so the API contract
    (e.g. price as a JSON number) can differ from storage (NUMERIC(18, 4)).
"""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer, field_validator

# Decimal in Python, plain JSON number on the wire
Price = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class InventoryItemCreate(BaseModel):
    """
    What:  Body of POST /inventory (and the web add form, after form parsing).

    `name` is structurally required here; whether it is blank is checked by
    InventoryService so JSON and form submissions share one rule.
    """
    name: str = Field(max_length=200, description="Item display name (required)")
    quantity: int = Field(default=0, description="Units on hand")
    price: Decimal = Field(default=Decimal("0"), description="Unit price")

    # Runs before max_length so surrounding whitespace does not count
    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class InventoryItemResponse(BaseModel):
    """A persisted inventory item, including its database-assigned id."""
    id: int = Field(description="Identifier assigned by the database")
    name: str
    quantity: int
    price: Price

    model_config = {"from_attributes": True}
