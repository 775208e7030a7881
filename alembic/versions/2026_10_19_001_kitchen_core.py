"""Kitchen core: staff, tables, orders, KOTs and order items

Revision ID: 001_kitchen_core
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_kitchen_core'
down_revision = None

staff_role = sa.Enum('ADMIN', 'MANAGER', 'CAPTAIN', 'WAITER', 'CASHIER', 'CHEF', name='staffrole')
order_type = sa.Enum('DINE_IN', 'TAKEAWAY', 'DELIVERY', 'COMPLIMENTARY', name='ordertype')
order_status = sa.Enum(
    'NEW', 'ACCEPTED', 'PREPARING', 'READY', 'SERVED', 'BILLING', 'COMPLETED', 'CANCELLED',
    name='orderstatus',
)
order_priority = sa.Enum('NORMAL', 'RUSH', 'VIP', name='orderpriority')
# order_items reuses the type created with orders
order_priority_existing = postgresql.ENUM('NORMAL', 'RUSH', 'VIP', name='orderpriority', create_type=False)
kot_type = sa.Enum('REGULAR', 'REPRINT', name='kottype')
item_status = sa.Enum('NEW', 'PREPARING', 'READY', 'SERVED', 'VOIDED', name='itemstatus')


def upgrade():
    op.create_table(
        'staff_members',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('branch_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('role', staff_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_staff_members_branch_id', 'staff_members', ['branch_id'])
    op.create_index('ix_staff_members_is_active', 'staff_members', ['is_active'])

    op.create_table(
        'dining_tables',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('branch_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('number', sa.String(50), nullable=False),
        sa.Column('section', sa.String(100), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=False, server_default='4'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_dining_tables_branch_id', 'dining_tables', ['branch_id'])
    op.create_index('ix_dining_tables_is_active', 'dining_tables', ['is_active'])

    op.create_table(
        'orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('branch_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_type', order_type, nullable=False),
        sa.Column('status', order_status, nullable=False),
        sa.Column('priority', order_priority, nullable=False),
        sa.Column('table_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('dining_tables.id'), nullable=True),
        sa.Column('token_number', sa.Integer(), nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('notes', sa.String(2000), nullable=True),
        sa.Column('captain_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff_members.id'), nullable=True),
        sa.Column('captain_name', sa.String(255), nullable=True),
        sa.Column('grand_total', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('paid_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_orders_branch_id', 'orders', ['branch_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_priority', 'orders', ['priority'])
    op.create_index('ix_orders_captain_id', 'orders', ['captain_id'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])

    op.create_table(
        'kots',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('branch_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('kot_number', sa.String(50), nullable=False),
        sa.Column('kot_type', kot_type, nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('kitchen_station', sa.String(50), nullable=True),
        sa.Column('printed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_kots_branch_id', 'kots', ['branch_id'])
    op.create_index('ix_kots_order_id', 'kots', ['order_id'])
    op.create_index('ix_kots_kot_number', 'kots', ['kot_number'])
    op.create_index('ix_kots_kitchen_station', 'kots', ['kitchen_station'])
    op.create_index('ix_kots_created_at', 'kots', ['created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('kot_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('kots.id'), nullable=True),
        sa.Column('item_name', sa.String(255), nullable=False),
        sa.Column('variant_name', sa.String(255), nullable=True),
        sa.Column('kitchen_station', sa.String(50), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('addons', sa.JSON(), nullable=True),
        sa.Column('special_instructions', sa.String(1000), nullable=True),
        sa.Column('priority', order_priority_existing, nullable=False),
        sa.Column('status', item_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_kot_id', 'order_items', ['kot_id'])
    op.create_index('ix_order_items_status', 'order_items', ['status'])


def downgrade():
    op.drop_table('order_items')
    op.drop_table('kots')
    op.drop_table('orders')
    op.drop_table('dining_tables')
    op.drop_table('staff_members')

    bind = op.get_bind()
    for enum in (item_status, kot_type, order_priority, order_status, order_type, staff_role):
        enum.drop(bind, checkfirst=True)
