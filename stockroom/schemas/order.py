"""
Stockroom — Order Event Schemas
=================================

What:  The order request accepted by POST /orders, which is also the exact
       JSON payload published to the `order-events` event hub.
Why camelCase: Downstream consumers of the event hub read `itemName`; the
       alias generator keeps Python attribute names snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrderRequest(BaseModel):
    """An order for `quantity` units of `item_name`."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    item_name: str = Field(description="Name of the ordered item")
    quantity: int = Field(description="Number of units ordered")

    def to_event_body(self) -> str:
        """Serialize for the event hub (camelCase keys)."""
        return self.model_dump_json(by_alias=True)
