"""Create inventories table.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create inventories table."""
    op.create_table(
        'inventories',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('product_id', sa.String(100), nullable=False, unique=True, index=True),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reserved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('stock >= 0', name='ck_inventories_stock_non_negative'),
        sa.CheckConstraint('reserved >= 0', name='ck_inventories_reserved_non_negative'),
        sa.CheckConstraint('reserved <= stock', name='ck_inventories_reserved_within_stock'),
    )


def downgrade() -> None:
    """Drop inventories table."""
    op.drop_table('inventories')
