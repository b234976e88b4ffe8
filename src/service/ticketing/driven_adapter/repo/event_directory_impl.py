from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_event_directory import IEventDirectory
from src.service.ticketing.domain.value_object.event_schedule import EventSchedule


class EventDirectoryImpl(IEventDirectory):
    """Reads event timing and organizer from the shared `event` table"""

    @Logger.io
    async def get_event(self, *, event_id: UUID) -> EventSchedule | None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, start_time, end_time, timezone, organizer_id
                FROM event
                WHERE id = $1
                """,
                event_id,
            )
            if not row:
                return None

            return EventSchedule(
                event_id=row['id'],
                start_time=row['start_time'],
                end_time=row['end_time'],
                timezone=row['timezone'] or 'UTC',
                organizer_id=row['organizer_id'],
            )
