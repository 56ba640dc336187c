from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'products',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('price', sa.Float, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('vendor_id', sa.String(64), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('product_type', sa.String(20), nullable=False, server_default='digital'),
        sa.Column('stock', sa.Integer, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_products_vendor_id', 'products', ['vendor_id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('vendor_id', sa.String(64), nullable=False),
        sa.Column('total_price', sa.Float, nullable=False),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('payment_status', sa.String(30), nullable=False),
        sa.Column('order_type', sa.String(20), nullable=False),
        sa.Column('customer_name', sa.String(200), nullable=True),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_vendor_id', 'orders', ['vendor_id'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.String(32), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('position', sa.Integer, nullable=False),
        sa.Column('product_id', sa.String(64), nullable=False),
        sa.Column('variant_id', sa.String(64), nullable=True),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('unit_price', sa.Float, nullable=False),
        sa.Column('line_total', sa.Float, nullable=False),
        sa.Column('product_name', sa.String(200), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('vendor_id', sa.String(64), nullable=True),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('channel', sa.String(20), nullable=False),
        sa.Column('to', sa.String(50), nullable=True),
        sa.Column('template', sa.String(100), nullable=False),
        sa.Column('payload', sa.JSON, nullable=True),
        sa.Column('message_body', sa.Text, nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('provider_sid', sa.String(64), nullable=True),
        sa.Column('error', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_index(
        'ix_notifications_user_channel_created',
        'notifications',
        ['user_id', 'channel', 'created_at'],
    )

def downgrade():
    op.drop_index('ix_notifications_user_channel_created')
    op.drop_table('notifications')
    op.drop_index('ix_order_items_order_id')
    op.drop_table('order_items')
    op.drop_index('ix_orders_vendor_id')
    op.drop_index('ix_orders_user_id')
    op.drop_table('orders')
    op.drop_index('ix_products_vendor_id')
    op.drop_table('products')
