"""Create inventory_items table

Revision ID: 001
Revises: None
Create Date: 2024-03-04 00:00:00.000000+00:00

What:  Creates the `inventory_items` table shared by the inventory API and the
       inventory web pages.
How:   Portable column types (identity integer key, DECIMAL(18, 4) price) so the
       same migration runs on PostgreSQL and on SQLite in tests.

Rollback: downgrade() drops the table entirely (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "name",
            sa.String(200),
            nullable=False,
            comment="Item display name (required)",
        ),
        sa.Column(
            "quantity",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Units on hand",
        ),
        # Explicit precision so prices are never silently truncated
        sa.Column(
            "price",
            sa.Numeric(18, 4),
            nullable=False,
            server_default=sa.text("0"),
            comment="Unit price",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_inventory_items_name", "inventory_items", ["name"])


def downgrade() -> None:
    op.drop_index("idx_inventory_items_name", table_name="inventory_items")
    op.drop_table("inventory_items")
