"""Baseline migration - customers, tickets, messages, notes, merge log

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-17

Portable DDL (PostgreSQL and SQLite). Status/priority/channel/sender
columns store enum values as VARCHAR.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create identity and ticketing tables."""

    # ==========================================================================
    # Customers
    # ==========================================================================
    op.create_table(
        'customers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('alt_emails', sa.JSON(), nullable=False),
        sa.Column('phone', sa.String(64), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('ticket_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('possible_duplicate_of', sa.Uuid(), nullable=True),
        sa.Column('order_count', sa.Integer(), nullable=True),
        sa.Column('lifetime_value', sa.Numeric(12, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('email', name='uq_customers_email'),
    )
    op.create_index('idx_customers_possible_duplicate_of', 'customers', ['possible_duplicate_of'])
    op.create_index('idx_customers_created', 'customers', ['created_at'])

    # ==========================================================================
    # Merge log (redirects for retired customers)
    # ==========================================================================
    op.create_table(
        'customer_merges',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('primary_id', sa.Uuid(), nullable=False),
        sa.Column('secondary_id', sa.Uuid(), nullable=False),
        sa.Column('secondary_email', sa.String(320), nullable=False),
        sa.Column('secondary_name', sa.Text(), nullable=False),
        sa.Column('tickets_moved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('merged_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('secondary_id', name='uq_customer_merges_secondary'),
    )
    op.create_index('idx_customer_merges_secondary_email', 'customer_merges', ['secondary_email'])
    op.create_index('idx_customer_merges_primary', 'customer_merges', ['primary_id'])

    # ==========================================================================
    # Tickets
    # ==========================================================================
    op.create_table(
        'tickets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('ticket_code', sa.String(32), nullable=False),
        sa.Column(
            'customer_id',
            sa.Uuid(),
            sa.ForeignKey('customers.id', ondelete='RESTRICT'),
            nullable=False,
        ),
        sa.Column('subject', sa.Text(), nullable=True),
        sa.Column('purpose', sa.String(100), nullable=True),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('priority', sa.String(32), nullable=False),
        sa.Column('channel', sa.String(32), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('ticket_code', name='uq_tickets_code'),
    )
    op.create_index(
        'idx_tickets_customer_status_updated',
        'tickets',
        ['customer_id', 'status', 'updated_at'],
    )
    op.create_index('idx_tickets_status_updated', 'tickets', ['status', 'updated_at'])

    # ==========================================================================
    # Messages and notes
    # ==========================================================================
    op.create_table(
        'ticket_messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'ticket_id',
            sa.Uuid(),
            sa.ForeignKey('tickets.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('sender_type', sa.String(32), nullable=False),
        sa.Column('sender_name', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('metadata_json', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('ticket_id', 'position', name='uq_ticket_messages_position'),
    )
    op.create_index(
        'idx_ticket_messages_ticket_created',
        'ticket_messages',
        ['ticket_id', 'created_at'],
    )

    op.create_table(
        'ticket_notes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'ticket_id',
            sa.Uuid(),
            sa.ForeignKey('tickets.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('author', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_ticket_notes_ticket_created', 'ticket_notes', ['ticket_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('ticket_notes')
    op.drop_table('ticket_messages')
    op.drop_table('tickets')
    op.drop_table('customer_merges')
    op.drop_table('customers')
