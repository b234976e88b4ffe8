from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.dto.directory_dto import BuyerContact
from src.service.ticketing.app.interface.i_buyer_directory import IBuyerDirectory


class BuyerDirectoryImpl(IBuyerDirectory):
    """Reads contact fields from the shared `user` table"""

    @Logger.io
    async def get_buyer(self, *, buyer_id: UUID) -> BuyerContact | None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, email, phone, name
                FROM "user"
                WHERE id = $1
                """,
                buyer_id,
            )
            if not row:
                return None

            return BuyerContact(
                id=row['id'], email=row['email'], phone=row['phone'], name=row['name']
            )
