"""init_db_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Schema:
- user: platform users (read-only here; contact details for the gateway)
- event: event timing (read-only here; check-in window and refund tiers)
- ticket_category: per-event pricing and the reserved counter
- booking: buyer bookings, payment reference and refund fields
- ticket: issued tickets with credential secret and admission payload

All primary keys are UUID7 generated by the application.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create all tables with final schema."""

    # ========== STEP 1: Collaborator tables ==========

    op.create_table(
        'user',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)

    op.create_table(
        'event',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('timezone', sa.String(length=64), server_default='UTC', nullable=False),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
    )

    # ========== STEP 2: Inventory ==========

    op.create_table(
        'ticket_category',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('reserved', sa.Integer(), server_default='0', nullable=False),
        sa.Column('max_per_buyer', sa.Integer(), nullable=False),
        sa.Column('sale_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sale_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'reserved >= 0 AND reserved <= capacity', name='ck_ticket_category_reserved'
        ),
        sa.CheckConstraint('unit_price >= 0', name='ck_ticket_category_price'),
    )
    op.create_index(
        op.f('ix_ticket_category_event_id'), 'ticket_category', ['event_id'], unique=False
    )

    # ========== STEP 3: Bookings and tickets ==========

    op.create_table(
        'booking',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('booking_number', sa.String(length=32), nullable=False),
        sa.Column('buyer_id', UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', UUID(as_uuid=True), nullable=False),
        sa.Column('line_items', JSONB(), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
        sa.Column('is_group', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('contact', JSONB(), nullable=True),
        sa.Column('payment_method', sa.String(length=32), nullable=True),
        sa.Column('gateway_transaction_id', sa.String(length=64), nullable=True),
        sa.Column(
            'payment_status', sa.String(length=20), server_default='pending', nullable=False
        ),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('refund_amount', sa.Integer(), nullable=True),
        sa.Column('refund_id', sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('refunded_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_number'),
        sa.UniqueConstraint('gateway_transaction_id'),
    )
    op.create_index(op.f('ix_booking_buyer_id'), 'booking', ['buyer_id'], unique=False)
    op.create_index(op.f('ix_booking_event_id'), 'booking', ['event_id'], unique=False)
    op.create_index(op.f('ix_booking_status'), 'booking', ['status'], unique=False)
    op.create_index(
        'ix_booking_status_created_at', 'booking', ['status', 'created_at'], unique=False
    )

    op.create_table(
        'ticket',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('ticket_number', sa.String(length=32), nullable=False),
        sa.Column('booking_id', UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', UUID(as_uuid=True), nullable=False),
        sa.Column('owner_id', UUID(as_uuid=True), nullable=False),
        sa.Column('admission', JSONB(), nullable=False),
        sa.Column('credential_secret', sa.String(length=128), nullable=False),
        sa.Column('encoded_credential', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('checked_in_by', UUID(as_uuid=True), nullable=True),
        sa.Column(
            'transfer_history', JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(['booking_id'], ['booking.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('ticket_number'),
    )
    op.create_index(op.f('ix_ticket_booking_id'), 'ticket', ['booking_id'], unique=False)
    op.create_index(op.f('ix_ticket_owner_id'), 'ticket', ['owner_id'], unique=False)
    # Verification code lookup: prefix match within one event
    op.create_index(
        'ix_ticket_event_secret_prefix',
        'ticket',
        ['event_id', 'credential_secret'],
        unique=False,
        postgresql_ops={'credential_secret': 'text_pattern_ops'},
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('ix_ticket_event_secret_prefix', table_name='ticket')
    op.drop_index(op.f('ix_ticket_owner_id'), table_name='ticket')
    op.drop_index(op.f('ix_ticket_booking_id'), table_name='ticket')
    op.drop_table('ticket')

    op.drop_index('ix_booking_status_created_at', table_name='booking')
    op.drop_index(op.f('ix_booking_status'), table_name='booking')
    op.drop_index(op.f('ix_booking_event_id'), table_name='booking')
    op.drop_index(op.f('ix_booking_buyer_id'), table_name='booking')
    op.drop_table('booking')

    op.drop_index(op.f('ix_ticket_category_event_id'), table_name='ticket_category')
    op.drop_table('ticket_category')

    op.drop_table('event')
    op.drop_index(op.f('ix_user_email'), table_name='user')
    op.drop_table('user')
