"""
Booking Command Repository Implementation

Every state change is a single conditional statement (`... AND status = ANY($n)`).
Booking and ticket transitions that must move together are combined in one
statement with data-modifying CTEs, which PostgreSQL applies atomically.
"""

from datetime import datetime
from typing import List, Optional, Sequence

import asyncpg
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.ticketing.domain.entity.booking_entity import Booking
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.booking_status import (
    UNPAID_BOOKING_STATUSES,
    BookingStatus,
    PaymentStatus,
)
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.value_object.contact_info import ContactInfo
from src.service.ticketing.domain.value_object.line_item import LineItem
from src.service.ticketing.domain.value_object.payment_ref import PaymentRef


_COLUMNS = """
    id, booking_number, buyer_id, event_id, line_items, total_amount, currency, status,
    is_group, contact, payment_method, gateway_transaction_id, payment_status,
    cancellation_reason, refund_amount, refund_id,
    created_at, updated_at, confirmed_at, cancelled_at, refunded_at,
    ARRAY(SELECT t.id FROM ticket t WHERE t.booking_id = booking.id ORDER BY t.id) AS ticket_ids
"""


class BookingCommandRepoImpl(IBookingCommandRepo):
    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> Booking:
        """Convert asyncpg Record to Booking entity"""
        return Booking(
            id=row['id'],
            booking_number=row['booking_number'],
            buyer_id=row['buyer_id'],
            event_id=row['event_id'],
            line_items=[LineItem.from_dict(item) for item in row['line_items']],
            total_amount=row['total_amount'],
            currency=row['currency'],
            status=BookingStatus(row['status']),
            payment=PaymentRef(
                method=row['payment_method'],
                gateway_transaction_id=row['gateway_transaction_id'],
                status=PaymentStatus(row['payment_status']),
            ),
            ticket_ids=list(row['ticket_ids'] or []),
            is_group=row['is_group'],
            contact=ContactInfo.from_dict(row['contact']),
            cancellation_reason=row['cancellation_reason'],
            refund_amount=row['refund_amount'],
            refund_id=row['refund_id'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
            confirmed_at=row['confirmed_at'],
            cancelled_at=row['cancelled_at'],
            refunded_at=row['refunded_at'],
        )

    @Logger.io
    async def create_with_tickets(self, *, booking: Booking, tickets: List[Ticket]) -> Booking:
        async with (await get_asyncpg_pool()).acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    """
                    INSERT INTO booking (
                        id, booking_number, buyer_id, event_id, line_items, total_amount,
                        currency, status, is_group, contact, payment_method,
                        gateway_transaction_id, payment_status, created_at, updated_at,
                        confirmed_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16)
                    """,
                    booking.id,
                    booking.booking_number,
                    booking.buyer_id,
                    booking.event_id,
                    [item.to_dict() for item in booking.line_items],
                    booking.total_amount,
                    booking.currency,
                    booking.status.value,
                    booking.is_group,
                    booking.contact.to_dict() if booking.contact else None,
                    booking.payment.method,
                    booking.payment.gateway_transaction_id,
                    booking.payment.status.value,
                    booking.created_at,
                    booking.updated_at,
                    booking.confirmed_at,
                )
                await conn.executemany(
                    """
                    INSERT INTO ticket (
                        id, ticket_number, booking_id, event_id, owner_id, admission,
                        credential_secret, encoded_credential, status, transfer_history,
                        created_at, updated_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, '[]'::jsonb, $10, $11)
                    """,
                    [
                        (
                            ticket.id,
                            ticket.ticket_number,
                            ticket.booking_id,
                            ticket.event_id,
                            ticket.owner_id,
                            ticket.admission.to_dict(),
                            ticket.credential_secret,
                            ticket.encoded_credential,
                            ticket.status.value,
                            ticket.created_at,
                            ticket.updated_at,
                        )
                        for ticket in tickets
                    ],
                )

        Logger.base.info(
            f'💾 [BOOKING_REPO] Inserted booking {booking.id} with {len(tickets)} tickets'
        )
        return booking

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(f'SELECT {_COLUMNS} FROM booking WHERE id = $1', booking_id)
            return self._row_to_entity(row) if row else None

    @Logger.io
    async def get_by_transaction_id(self, *, transaction_id: str) -> Booking | None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {_COLUMNS} FROM booking WHERE gateway_transaction_id = $1',
                transaction_id,
            )
            return self._row_to_entity(row) if row else None

    @Logger.io
    async def update_payment(
        self,
        *,
        booking: Booking,
        expected_statuses: Sequence[BookingStatus],
        expected_transaction_id: Optional[str],
    ) -> bool:
        async with (await get_asyncpg_pool()).acquire() as conn:
            updated_id = await conn.fetchval(
                """
                UPDATE booking
                SET status = $2,
                    payment_method = $3,
                    gateway_transaction_id = $4,
                    payment_status = $5,
                    updated_at = $6
                WHERE id = $1
                  AND status = ANY($7::text[])
                  AND gateway_transaction_id IS NOT DISTINCT FROM $8::text
                RETURNING id
                """,
                booking.id,
                booking.status.value,
                booking.payment.method,
                booking.payment.gateway_transaction_id,
                booking.payment.status.value,
                booking.updated_at,
                [status.value for status in expected_statuses],
                expected_transaction_id,
            )
            return updated_id is not None

    @Logger.io
    async def confirm_and_activate_tickets(self, *, booking: Booking) -> bool:
        async with (await get_asyncpg_pool()).acquire() as conn:
            updated_id = await conn.fetchval(
                """
                WITH updated_booking AS (
                    UPDATE booking
                    SET status = $2,
                        payment_status = $3,
                        confirmed_at = $4,
                        updated_at = $4
                    WHERE id = $1
                      AND status = ANY($5::text[])
                    RETURNING id
                ),
                activated_tickets AS (
                    UPDATE ticket
                    SET status = $6,
                        updated_at = $4
                    WHERE booking_id IN (SELECT id FROM updated_booking)
                      AND status = $7
                    RETURNING id
                )
                SELECT id FROM updated_booking
                """,
                booking.id,
                BookingStatus.CONFIRMED.value,
                PaymentStatus.COMPLETED.value,
                booking.confirmed_at,
                [status.value for status in UNPAID_BOOKING_STATUSES],
                TicketStatus.ACTIVE.value,
                TicketStatus.PENDING.value,
            )
            return updated_id is not None

    @Logger.io
    async def cancel_with_tickets(
        self, *, booking: Booking, expected_status: BookingStatus
    ) -> bool:
        # Used tickets stay used: the admission already happened
        async with (await get_asyncpg_pool()).acquire() as conn:
            updated_id = await conn.fetchval(
                """
                WITH updated_booking AS (
                    UPDATE booking
                    SET status = $2,
                        cancellation_reason = $3,
                        cancelled_at = $4,
                        updated_at = $4
                    WHERE id = $1
                      AND status = $5
                    RETURNING id
                ),
                cancelled_tickets AS (
                    UPDATE ticket
                    SET status = $6,
                        updated_at = $4
                    WHERE booking_id IN (SELECT id FROM updated_booking)
                      AND status = ANY($7::text[])
                    RETURNING id
                )
                SELECT id FROM updated_booking
                """,
                booking.id,
                BookingStatus.CANCELLED.value,
                booking.cancellation_reason,
                booking.cancelled_at,
                expected_status.value,
                TicketStatus.CANCELLED.value,
                [TicketStatus.PENDING.value, TicketStatus.ACTIVE.value],
            )
            return updated_id is not None

    @Logger.io
    async def mark_refunded(self, *, booking: Booking) -> bool:
        async with (await get_asyncpg_pool()).acquire() as conn:
            updated_id = await conn.fetchval(
                """
                WITH updated_booking AS (
                    UPDATE booking
                    SET status = $2,
                        payment_status = $3,
                        refund_amount = $4,
                        refund_id = $5,
                        refunded_at = $6,
                        updated_at = $6
                    WHERE id = $1
                      AND status = $7
                      AND refund_id IS NULL
                    RETURNING id
                ),
                refunded_tickets AS (
                    UPDATE ticket
                    SET status = $8,
                        updated_at = $6
                    WHERE booking_id IN (SELECT id FROM updated_booking)
                      AND status = $9
                    RETURNING id
                )
                SELECT id FROM updated_booking
                """,
                booking.id,
                BookingStatus.REFUNDED.value,
                PaymentStatus.REFUNDED.value,
                booking.refund_amount,
                booking.refund_id,
                booking.refunded_at,
                BookingStatus.CANCELLED.value,
                TicketStatus.REFUNDED.value,
                TicketStatus.CANCELLED.value,
            )
            return updated_id is not None

    @Logger.io
    async def list_stale_unpaid(self, *, created_before: datetime, limit: int) -> List[Booking]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_COLUMNS}
                FROM booking
                WHERE status = ANY($1::text[])
                  AND created_at < $2
                ORDER BY created_at
                LIMIT $3
                """,
                [status.value for status in UNPAID_BOOKING_STATUSES],
                created_before,
                limit,
            )
            return [self._row_to_entity(row) for row in rows]

    @Logger.io
    async def list_by_buyer(
        self, *, buyer_id: UUID, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_COLUMNS}
                FROM booking
                WHERE buyer_id = $1
                  AND ($2::text IS NULL OR status = $2)
                ORDER BY created_at DESC
                """,
                buyer_id,
                status.value if status else None,
            )
            return [self._row_to_entity(row) for row in rows]
