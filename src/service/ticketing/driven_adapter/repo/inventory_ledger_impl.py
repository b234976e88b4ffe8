"""
Inventory Ledger (PostgreSQL)

`ticket_category.reserved` is only ever changed here, by single-statement
conditional updates. PostgreSQL row locking makes each statement linearizable
per category, so concurrent buyers can never push reserved above capacity.
"""

from datetime import datetime

from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.dto.reservation_outcome import ReservationOutcome
from src.service.ticketing.app.interface.i_inventory_ledger import IInventoryLedger


class InventoryLedgerImpl(IInventoryLedger):
    @Logger.io
    async def try_reserve(
        self, *, category_id: UUID, quantity: int, now: datetime
    ) -> ReservationOutcome:
        async with (await get_asyncpg_pool()).acquire() as conn:
            reserved_id = await conn.fetchval(
                """
                UPDATE ticket_category
                SET reserved = reserved + $2,
                    updated_at = $3
                WHERE id = $1
                  AND active
                  AND (sale_start IS NULL OR sale_start <= $3)
                  AND (sale_end IS NULL OR sale_end >= $3)
                  AND reserved + $2 <= capacity
                RETURNING id
                """,
                category_id,
                quantity,
                now,
            )
            if reserved_id is not None:
                return ReservationOutcome.RESERVED

            # Missed: read once to report why (the answer may already be stale)
            row = await conn.fetchrow(
                """
                SELECT active, sale_start, sale_end
                FROM ticket_category
                WHERE id = $1
                """,
                category_id,
            )

        if not row:
            return ReservationOutcome.NOT_FOUND
        on_sale = (
            row['active']
            and (row['sale_start'] is None or row['sale_start'] <= now)
            and (row['sale_end'] is None or row['sale_end'] >= now)
        )
        if not on_sale:
            return ReservationOutcome.CATEGORY_CLOSED

        Logger.base.info(f'🈵 [LEDGER] Category {category_id} cannot fit {quantity} more')
        return ReservationOutcome.INSUFFICIENT_CAPACITY

    @Logger.io
    async def release(self, *, category_id: UUID, quantity: int) -> None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            await conn.execute(
                """
                UPDATE ticket_category
                SET reserved = GREATEST(reserved - $2, 0),
                    updated_at = NOW()
                WHERE id = $1
                """,
                category_id,
                quantity,
            )
