"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the marketplace tables: users, services, quotes, orders, the
order/quote communication log, and chats with their participants and
messages.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users table
    op.create_table('users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('company', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), default='client'),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('last_login', sa.DateTime()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_users_role', 'users', ['role'])

    # Services table
    op.create_table('services',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('pricing_type', sa.String(20), nullable=False),
        sa.Column('pricing_amount', sa.Float()),
        sa.Column('currency', sa.String(10), default='USD'),
        sa.Column('billing_cycle', sa.String(20), default='one-time'),
        sa.Column('features', sa.JSON()),
        sa.Column('technologies', sa.JSON()),
        sa.Column('delivery_time', sa.String(100), nullable=False),
        sa.Column('images', sa.JSON()),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('is_featured', sa.Boolean(), default=False),
        sa.Column('difficulty', sa.String(20), default='Intermediate'),
        sa.Column('requirements', sa.JSON()),
        sa.Column('portfolio', sa.JSON()),
        sa.Column('rating_average', sa.Float(), default=0),
        sa.Column('rating_count', sa.Integer(), default=0),
        sa.Column('tags', sa.JSON()),
        sa.Column('created_by', sa.String(36), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_services_category_active', 'services', ['category', 'is_active'])
    op.create_index('ix_services_featured_active', 'services', ['is_featured', 'is_active'])
    op.create_index('ix_services_pricing_amount', 'services', ['pricing_amount'])

    # Quotes table
    op.create_table('quotes',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('quote_number', sa.String(20), nullable=False),
        sa.Column('client_id', sa.String(36), nullable=False),
        sa.Column('service_id', sa.String(36), nullable=False),
        sa.Column('custom_amount', sa.Float(), nullable=False),
        sa.Column('requirements', sa.Text(), nullable=False),
        sa.Column('timeline', sa.String(500)),
        sa.Column('contact_preference', sa.String(20), nullable=False),
        sa.Column('additional_notes', sa.Text()),
        sa.Column('attachments', sa.JSON()),
        sa.Column('status', sa.String(20), default='pending'),
        sa.Column('quoted_amount', sa.Float()),
        sa.Column('admin_response', sa.Text()),
        sa.Column('responded_at', sa.DateTime()),
        sa.Column('responded_by', sa.String(36)),
        sa.Column('converted_to_order', sa.String(36)),
        sa.Column('priority', sa.String(20), default='medium'),
        sa.Column('tags', sa.JSON()),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['client_id'], ['users.id']),
        sa.ForeignKeyConstraint(['service_id'], ['services.id']),
        sa.ForeignKeyConstraint(['responded_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('quote_number')
    )
    op.create_index('ix_quotes_client_status', 'quotes', ['client_id', 'status'])
    op.create_index('ix_quotes_status_priority', 'quotes', ['status', 'priority'])
    op.create_index('ix_quotes_expires_at', 'quotes', ['expires_at'])

    # Orders table
    op.create_table('orders',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('order_number', sa.String(20), nullable=False),
        sa.Column('client_id', sa.String(36), nullable=False),
        sa.Column('service_id', sa.String(36), nullable=False),
        sa.Column('quote_id', sa.String(36)),
        sa.Column('quantity', sa.Integer(), nullable=False, default=1),
        sa.Column('custom_amount', sa.Float()),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('status', sa.String(30), default='pending'),
        sa.Column('requirements', sa.Text(), nullable=False),
        sa.Column('timeline', sa.String(500)),
        sa.Column('contact_preference', sa.String(20), nullable=False),
        sa.Column('additional_notes', sa.Text()),
        sa.Column('pricing', sa.JSON()),
        sa.Column('payment', sa.JSON()),
        sa.Column('payment_status', sa.String(20), default='pending'),
        sa.Column('deliverables', sa.JSON()),
        sa.Column('milestones', sa.JSON()),
        sa.Column('estimated_delivery', sa.DateTime()),
        sa.Column('actual_delivery', sa.DateTime()),
        sa.Column('review', sa.JSON()),
        sa.Column('assigned_to', sa.String(36)),
        sa.Column('tags', sa.JSON()),
        sa.Column('refund', sa.JSON()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['client_id'], ['users.id']),
        sa.ForeignKeyConstraint(['service_id'], ['services.id']),
        sa.ForeignKeyConstraint(['quote_id'], ['quotes.id']),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number')
    )
    op.create_index('ix_orders_client_status', 'orders', ['client_id', 'status'])
    op.create_index('ix_orders_payment_status', 'orders', ['payment_status'])
    op.create_index('ix_orders_assigned_status', 'orders', ['assigned_to', 'status'])

    # Order/quote communication log
    op.create_table('communications',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('entity_type', sa.String(20), nullable=False),
        sa.Column('entity_id', sa.String(36), nullable=False),
        sa.Column('from_user_id', sa.String(36), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('attachments', sa.JSON()),
        sa.Column('is_internal', sa.Boolean(), default=False),
        sa.Column('timestamp', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['from_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_communications_entity', 'communications', ['entity_type', 'entity_id', 'timestamp'])

    # Chats table
    op.create_table('chats',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('subject', sa.String(200)),
        sa.Column('related_order_id', sa.String(36)),
        sa.Column('related_quote_id', sa.String(36)),
        sa.Column('status', sa.String(20), default='active'),
        sa.Column('priority', sa.String(20), default='medium'),
        sa.Column('assigned_agent_id', sa.String(36)),
        sa.Column('tags', sa.JSON()),
        sa.Column('closed_at', sa.DateTime()),
        sa.Column('closed_by', sa.String(36)),
        sa.Column('close_reason', sa.String(500)),
        sa.Column('last_activity', sa.DateTime(), default=sa.func.now()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['related_order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['related_quote_id'], ['quotes.id']),
        sa.ForeignKeyConstraint(['assigned_agent_id'], ['users.id']),
        sa.ForeignKeyConstraint(['closed_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chats_type_status', 'chats', ['type', 'status'])
    op.create_index('ix_chats_agent_status', 'chats', ['assigned_agent_id', 'status'])
    op.create_index('ix_chats_last_activity', 'chats', ['last_activity'])
    op.create_index('ix_chats_related_order', 'chats', ['related_order_id'])
    op.create_index('ix_chats_related_quote', 'chats', ['related_quote_id'])

    # Chat participants table
    op.create_table('chat_participants',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('chat_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('joined_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('last_seen', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['chat_id'], ['chats.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('chat_id', 'user_id', name='uq_chat_participant')
    )
    op.create_index('ix_chat_participants_user', 'chat_participants', ['user_id'])

    # Chat messages table
    op.create_table('chat_messages',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('chat_id', sa.String(36), nullable=False),
        sa.Column('sender_id', sa.String(36), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('message_type', sa.String(20), default='text'),
        sa.Column('attachments', sa.JSON()),
        sa.Column('read_by', sa.JSON()),
        sa.Column('edited_at', sa.DateTime()),
        sa.Column('deleted_at', sa.DateTime()),
        sa.Column('timestamp', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['chat_id'], ['chats.id']),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chat_messages_chat_timestamp', 'chat_messages', ['chat_id', 'timestamp'])


def downgrade() -> None:
    op.drop_table('chat_messages')
    op.drop_table('chat_participants')
    op.drop_table('chats')
    op.drop_table('communications')
    op.drop_table('orders')
    op.drop_table('quotes')
    op.drop_table('services')
    op.drop_table('users')
