from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from uuid_utils import UUID

from src.platform.database.orm_db_setting import Base


class TicketModel(Base):
    __tablename__ = 'ticket'

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)  # UUID7
    ticket_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    booking_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey('booking.id'), nullable=False, index=True
    )
    event_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), nullable=False)
    owner_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), nullable=False, index=True)
    admission: Mapped[dict] = mapped_column(JSONB, nullable=False)
    credential_secret: Mapped[str] = mapped_column(String(128), nullable=False)
    encoded_credential: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default='pending', nullable=False)
    checked_in_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    checked_in_by: Mapped[Optional[UUID]] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    transfer_history: Mapped[list] = mapped_column(JSONB, default=list, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        # Verification code lookup: prefix match within one event
        Index(
            'ix_ticket_event_secret_prefix',
            'event_id',
            'credential_secret',
            postgresql_ops={'credential_secret': 'text_pattern_ops'},
        ),
        Index('ix_ticket_event_id', 'event_id', 'id'),
    )
