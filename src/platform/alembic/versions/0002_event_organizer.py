"""event_organizer

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

- event.organizer_id: who may list an event's attendees
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, Sequence[str], None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('event', sa.Column('organizer_id', UUID(as_uuid=True), nullable=True))
    op.create_index(op.f('ix_event_organizer_id'), 'event', ['organizer_id'], unique=False)
    # Attendee listing filters by event and orders by id
    op.create_index('ix_ticket_event_id', 'ticket', ['event_id', 'id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_ticket_event_id', table_name='ticket')
    op.drop_index(op.f('ix_event_organizer_id'), table_name='event')
    op.drop_column('event', 'organizer_id')
