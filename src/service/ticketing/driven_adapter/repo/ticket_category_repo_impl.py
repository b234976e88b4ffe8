from typing import List

import asyncpg
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_ticket_category_repo import ITicketCategoryRepo
from src.service.ticketing.domain.entity.ticket_category_entity import TicketCategory


_COLUMNS = """
    id, event_id, name, description, unit_price, currency, capacity, reserved,
    max_per_buyer, sale_start, sale_end, active, created_at, updated_at
"""


class TicketCategoryRepoImpl(ITicketCategoryRepo):
    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> TicketCategory:
        return TicketCategory(
            id=row['id'],
            event_id=row['event_id'],
            name=row['name'],
            description=row['description'] or '',
            unit_price=row['unit_price'],
            currency=row['currency'],
            capacity=row['capacity'],
            reserved=row['reserved'],
            max_per_buyer=row['max_per_buyer'],
            sale_start=row['sale_start'],
            sale_end=row['sale_end'],
            active=row['active'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )

    @Logger.io
    async def get_by_id(self, *, category_id: UUID) -> TicketCategory | None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {_COLUMNS} FROM ticket_category WHERE id = $1', category_id
            )
            return self._row_to_entity(row) if row else None

    @Logger.io
    async def get_by_ids(self, *, category_ids: List[UUID]) -> dict[UUID, TicketCategory]:
        if not category_ids:
            return {}
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f'SELECT {_COLUMNS} FROM ticket_category WHERE id = ANY($1::uuid[])',
                list(category_ids),
            )
            return {row['id']: self._row_to_entity(row) for row in rows}

    @Logger.io
    async def list_by_event(
        self, *, event_id: UUID, include_inactive: bool = False
    ) -> List[TicketCategory]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_COLUMNS}
                FROM ticket_category
                WHERE event_id = $1
                  AND ($2 OR active)
                ORDER BY unit_price, name
                """,
                event_id,
                include_inactive,
            )
            return [self._row_to_entity(row) for row in rows]

    @Logger.io
    async def create(self, *, category: TicketCategory) -> TicketCategory:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO ticket_category (
                    id, event_id, name, description, unit_price, currency, capacity,
                    reserved, max_per_buyer, sale_start, sale_end, active,
                    created_at, updated_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, 0, $8, $9, $10, $11, $12, $13)
                RETURNING {_COLUMNS}
                """,
                category.id,
                category.event_id,
                category.name,
                category.description,
                category.unit_price,
                category.currency,
                category.capacity,
                category.max_per_buyer,
                category.sale_start,
                category.sale_end,
                category.active,
                category.created_at,
                category.updated_at,
            )
            return self._row_to_entity(row)

    @Logger.io
    async def update(self, *, category: TicketCategory) -> TicketCategory | None:
        # `reserved` is deliberately absent: only the inventory ledger writes it
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE ticket_category
                SET name = $2,
                    description = $3,
                    unit_price = $4,
                    capacity = $5,
                    max_per_buyer = $6,
                    sale_start = $7,
                    sale_end = $8,
                    active = $9,
                    updated_at = $10
                WHERE id = $1
                  AND capacity <= $5
                RETURNING {_COLUMNS}
                """,
                category.id,
                category.name,
                category.description,
                category.unit_price,
                category.capacity,
                category.max_per_buyer,
                category.sale_start,
                category.sale_end,
                category.active,
                category.updated_at,
            )
            return self._row_to_entity(row) if row else None
