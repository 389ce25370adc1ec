import asyncio
import logging
from typing import Any, Dict

from app.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class RecordStore:
    def __init__(self, client):
        self.client = client

    # Inserts one row and returns it as stored (with generated id/created_at)
    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await asyncio.to_thread(
                lambda: self.client.table(table).insert(row).execute()
            )
        except Exception as e:
            detail = getattr(e, "message", None) or str(e)
            logger.error(f"Supabase error inserting into {table}: {detail}")
            raise PersistenceError(table, detail) from e

        data = getattr(response, "data", None)
        if not data:
            logger.error(f"Supabase insert into {table} returned no rows")
            raise PersistenceError(table, "insert returned no rows")
        return data[0]
