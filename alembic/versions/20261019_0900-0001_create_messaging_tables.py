"""Create messaging tables

Revision ID: 0001_messaging
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_messaging'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Read models owned by the surrounding application
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'listings',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('seller_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(op.f('ix_listings_seller_id'), 'listings', ['seller_id'], unique=False)

    op.create_table(
        'listing_images',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('listing_id', sa.String(length=36), sa.ForeignKey('listings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('image_path', sa.String(length=500), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('idx_listing_images_listing_position', 'listing_images', ['listing_id', 'position'], unique=False)

    # Conversations: one row per (listing, buyer, seller)
    op.create_table(
        'conversations',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('listing_id', sa.String(length=36), sa.ForeignKey('listings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('buyer_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('seller_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.Enum('OPEN', 'CLOSED', name='conversation_status', native_enum=False), nullable=False),
        sa.Column('last_message_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('listing_id', 'buyer_id', 'seller_id', name='uq_conversation_listing_buyer_seller'),
        sa.CheckConstraint('buyer_id <> seller_id', name='ck_conversation_distinct_participants'),
    )
    op.create_index('idx_conversations_buyer_last_message', 'conversations', ['buyer_id', 'last_message_at'], unique=False)
    op.create_index('idx_conversations_seller_last_message', 'conversations', ['seller_id', 'last_message_at'], unique=False)

    op.create_table(
        'messages',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('conversation_id', sa.String(length=36), sa.ForeignKey('conversations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sender_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('edited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(op.f('ix_messages_sender_id'), 'messages', ['sender_id'], unique=False)
    op.create_index('idx_messages_conversation_created', 'messages', ['conversation_id', 'created_at'], unique=False)
    # Serves the per-sender rate limit window count
    op.create_index(
        'idx_messages_conversation_sender_created',
        'messages',
        ['conversation_id', 'sender_id', 'created_at'],
        unique=False,
    )

    op.create_table(
        'message_reads',
        sa.Column('message_id', sa.String(length=36), sa.ForeignKey('messages.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_message_reads_user', 'message_reads', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_message_reads_user', table_name='message_reads')
    op.drop_table('message_reads')

    op.drop_index('idx_messages_conversation_sender_created', table_name='messages')
    op.drop_index('idx_messages_conversation_created', table_name='messages')
    op.drop_index(op.f('ix_messages_sender_id'), table_name='messages')
    op.drop_table('messages')

    op.drop_index('idx_conversations_seller_last_message', table_name='conversations')
    op.drop_index('idx_conversations_buyer_last_message', table_name='conversations')
    op.drop_table('conversations')

    op.drop_index('idx_listing_images_listing_position', table_name='listing_images')
    op.drop_table('listing_images')

    op.drop_index(op.f('ix_listings_seller_id'), table_name='listings')
    op.drop_table('listings')

    op.drop_table('users')
