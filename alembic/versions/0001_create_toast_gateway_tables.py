"""create_toast_gateway_tables

Revision ID: 0001_create_toast_gateway_tables
Revises:
Create Date: 2026-10-18 09:12:41.508316

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_create_toast_gateway_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'pos_integrations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(64), nullable=False),
        sa.Column('provider', sa.String(32), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('client_id', sa.String(255), nullable=True),
        sa.Column('client_secret', sa.String(255), nullable=True),
        sa.Column('access_token', sa.String(), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('restaurant_guid', sa.String(64), nullable=True),
        sa.Column('menu_sync_enabled', sa.Boolean(), nullable=False),
        sa.Column('menu_sync_frequency', sa.String(32), nullable=False),
        sa.Column('last_menu_sync', sa.DateTime(), nullable=True),
        sa.Column('order_push_enabled', sa.Boolean(), nullable=False),
        sa.Column('inventory_sync_enabled', sa.Boolean(), nullable=False),
        sa.Column('last_error', sa.JSON(), nullable=True),
        sa.Column('connected_at', sa.DateTime(), nullable=True),
        sa.Column('disconnected_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('tenant_id', 'provider', name='uq_pos_integration_tenant_provider')
    )

    op.create_index('ix_pos_integrations_id', 'pos_integrations', ['id'])
    op.create_index('ix_pos_integrations_tenant_id', 'pos_integrations', ['tenant_id'])
    op.create_index('ix_pos_integrations_provider', 'pos_integrations', ['provider'])
    op.create_index('ix_pos_integrations_enabled', 'pos_integrations', ['enabled'])
    op.create_index('ix_pos_integrations_status', 'pos_integrations', ['status'])
    op.create_index('ix_pos_integrations_menu_sync_enabled', 'pos_integrations', ['menu_sync_enabled'])

    op.create_table(
        'menu_items',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('tenant_id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('available', sa.Boolean(), nullable=False),
        sa.Column('source', sa.String(32), nullable=True),
        sa.Column('toast_item_id', sa.String(64), nullable=True),
        sa.Column('toast_data', sa.JSON(), nullable=True),
        sa.Column('removed_from_toast', sa.Boolean(), nullable=False),
        sa.Column('synced_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False)
    )

    op.create_index('ix_menu_items_tenant_id', 'menu_items', ['tenant_id'])
    op.create_index('ix_menu_items_name', 'menu_items', ['name'])
    op.create_index('ix_menu_items_source', 'menu_items', ['source'])
    op.create_index('ix_menu_items_toast_item_id', 'menu_items', ['toast_item_id'])
    op.create_index('ix_menu_items_tenant_source', 'menu_items', ['tenant_id', 'source'])

    op.create_table(
        'orders',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('tenant_id', sa.String(64), nullable=False),
        sa.Column('source', sa.String(32), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('customer_name', sa.String(200), nullable=True),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('customer_email', sa.String(200), nullable=True),
        sa.Column('order_type', sa.String(32), nullable=True),
        sa.Column('delivery_address', sa.Text(), nullable=True),
        sa.Column('pickup_time', sa.DateTime(), nullable=True),
        sa.Column('pos_order_id', sa.String(64), nullable=True),
        sa.Column('pos_status', sa.String(32), nullable=True),
        sa.Column('pos_error', sa.JSON(), nullable=True),
        sa.Column('pos_order_number', sa.String(32), nullable=True),
        sa.Column('sent_to_toast_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False)
    )

    op.create_index('ix_orders_tenant_id', 'orders', ['tenant_id'])
    op.create_index('ix_orders_source', 'orders', ['source'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_pos_order_id', 'orders', ['pos_order_id'])
    op.create_index('ix_orders_pos_status', 'orders', ['pos_status'])
    op.create_index('ix_orders_tenant_created', 'orders', ['tenant_id', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_orders_tenant_created', 'orders')
    op.drop_index('ix_orders_pos_status', 'orders')
    op.drop_index('ix_orders_pos_order_id', 'orders')
    op.drop_index('ix_orders_status', 'orders')
    op.drop_index('ix_orders_source', 'orders')
    op.drop_index('ix_orders_tenant_id', 'orders')
    op.drop_table('orders')
    op.drop_index('ix_menu_items_tenant_source', 'menu_items')
    op.drop_index('ix_menu_items_toast_item_id', 'menu_items')
    op.drop_index('ix_menu_items_source', 'menu_items')
    op.drop_index('ix_menu_items_name', 'menu_items')
    op.drop_index('ix_menu_items_tenant_id', 'menu_items')
    op.drop_table('menu_items')
    op.drop_index('ix_pos_integrations_menu_sync_enabled', 'pos_integrations')
    op.drop_index('ix_pos_integrations_status', 'pos_integrations')
    op.drop_index('ix_pos_integrations_enabled', 'pos_integrations')
    op.drop_index('ix_pos_integrations_provider', 'pos_integrations')
    op.drop_index('ix_pos_integrations_tenant_id', 'pos_integrations')
    op.drop_index('ix_pos_integrations_id', 'pos_integrations')
    op.drop_table('pos_integrations')
