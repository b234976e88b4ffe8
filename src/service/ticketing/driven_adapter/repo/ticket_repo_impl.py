from typing import List, Optional

import asyncpg
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.ticket_status import (
    LOOKUP_EXCLUDED_TICKET_STATUSES,
    TicketStatus,
)
from src.service.ticketing.domain.value_object.admission import admission_from_dict
from src.service.ticketing.domain.value_object.transfer_record import TransferRecord


_COLUMNS = """
    id, ticket_number, booking_id, event_id, owner_id, admission, credential_secret,
    encoded_credential, status, checked_in_at, checked_in_by, transfer_history,
    created_at, updated_at
"""


class TicketRepoImpl(ITicketRepo):
    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> Ticket:
        return Ticket(
            id=row['id'],
            ticket_number=row['ticket_number'],
            booking_id=row['booking_id'],
            event_id=row['event_id'],
            owner_id=row['owner_id'],
            admission=admission_from_dict(row['admission']),
            credential_secret=row['credential_secret'],
            encoded_credential=row['encoded_credential'],
            status=TicketStatus(row['status']),
            checked_in_at=row['checked_in_at'],
            checked_in_by=row['checked_in_by'],
            transfer_history=[
                TransferRecord.from_dict(record) for record in row['transfer_history'] or []
            ],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )

    @Logger.io
    async def get_by_id(self, *, ticket_id: UUID) -> Ticket | None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(f'SELECT {_COLUMNS} FROM ticket WHERE id = $1', ticket_id)
            return self._row_to_entity(row) if row else None

    @Logger.io
    async def list_by_booking(self, *, booking_id: UUID) -> List[Ticket]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f'SELECT {_COLUMNS} FROM ticket WHERE booking_id = $1 ORDER BY id', booking_id
            )
            return [self._row_to_entity(row) for row in rows]

    @Logger.io
    async def list_by_owner(
        self, *, owner_id: UUID, event_id: Optional[UUID] = None
    ) -> List[Ticket]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_COLUMNS}
                FROM ticket
                WHERE owner_id = $1
                  AND ($2::uuid IS NULL OR event_id = $2)
                ORDER BY id DESC
                """,
                owner_id,
                event_id,
            )
            return [self._row_to_entity(row) for row in rows]

    @Logger.io
    async def list_by_event(
        self,
        *,
        event_id: UUID,
        status: Optional[TicketStatus] = None,
        checked_in: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Ticket]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_COLUMNS}
                FROM ticket
                WHERE event_id = $1
                  AND ($2::text IS NULL OR status = $2)
                  AND ($3::boolean IS NULL OR (checked_in_at IS NOT NULL) = $3)
                ORDER BY id
                LIMIT $4 OFFSET $5
                """,
                event_id,
                status.value if status else None,
                checked_in,
                limit,
                offset,
            )
            return [self._row_to_entity(row) for row in rows]

    @Logger.io
    async def find_by_verification_code(self, *, event_id: UUID, code: str) -> List[Ticket]:
        # Secrets are lowercase hex; codes are the upper-cased prefix
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_COLUMNS}
                FROM ticket
                WHERE event_id = $1
                  AND credential_secret LIKE $2 || '%'
                  AND NOT (status = ANY($3::text[]))
                LIMIT 2
                """,
                event_id,
                code.lower(),
                [status.value for status in LOOKUP_EXCLUDED_TICKET_STATUSES],
            )
            return [self._row_to_entity(row) for row in rows]

    @Logger.io
    async def check_in(self, *, ticket: Ticket) -> bool:
        async with (await get_asyncpg_pool()).acquire() as conn:
            updated_id = await conn.fetchval(
                """
                UPDATE ticket
                SET status = $2,
                    checked_in_at = $3,
                    checked_in_by = $4,
                    updated_at = $3
                WHERE id = $1
                  AND status = $5
                RETURNING id
                """,
                ticket.id,
                TicketStatus.USED.value,
                ticket.checked_in_at,
                ticket.checked_in_by,
                TicketStatus.ACTIVE.value,
            )
            return updated_id is not None

    @Logger.io
    async def transfer(
        self, *, ticket: Ticket, previous_owner_id: UUID, previous_secret: str
    ) -> bool:
        async with (await get_asyncpg_pool()).acquire() as conn:
            updated_id = await conn.fetchval(
                """
                UPDATE ticket
                SET owner_id = $2,
                    credential_secret = $3,
                    encoded_credential = $4,
                    transfer_history = $5,
                    updated_at = $6
                WHERE id = $1
                  AND status = $7
                  AND owner_id = $8
                  AND credential_secret = $9
                RETURNING id
                """,
                ticket.id,
                ticket.owner_id,
                ticket.credential_secret,
                ticket.encoded_credential,
                [record.to_dict() for record in ticket.transfer_history],
                ticket.updated_at,
                TicketStatus.ACTIVE.value,
                previous_owner_id,
                previous_secret,
            )
            return updated_id is not None
