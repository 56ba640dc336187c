"""add_pickup_hubs

Revision ID: 0002_add_pickup_hubs
Revises: 0001_init
Create Date: 2026-02-10

"""
from alembic import op
import sqlalchemy as sa

revision = '0002_add_pickup_hubs'
down_revision = '0001_init'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'pickup_hubs',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('address', sa.String(300), nullable=False),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('hours', sa.String(50), nullable=True),
        sa.Column('active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('pilot_enabled', sa.Boolean, nullable=False, server_default=sa.false()),
    )


def downgrade() -> None:
    op.drop_table('pickup_hubs')
