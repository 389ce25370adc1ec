import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    path: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StorageService:
    """Thin async wrapper over Supabase Storage.

    The Supabase client is synchronous, so every network call runs in a worker
    thread to keep the event loop free for the other uploads of the batch.
    """

    def __init__(self, client):
        self.client = client

    # Uploads bytes under `key`; provider failures are returned, not raised
    async def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> UploadResult:
        options = {
            "content-type": content_type or "application/octet-stream",
            "upsert": "false",
        }
        try:
            res = await asyncio.to_thread(
                self.client.storage.from_(bucket).upload, key, data, options
            )
        except Exception as e:
            logger.warning(f"Supabase upload error for {bucket}/{key}: {e}")
            return UploadResult(error=str(e) or e.__class__.__name__)

        path = getattr(res, "path", None)
        if path is None and isinstance(res, dict):
            if res.get("error"):
                return UploadResult(error=str(res["error"]))
            path = res.get("path") or res.get("Key")
        logger.debug(f"Uploaded {len(data)} bytes to {bucket}/{path}")
        return UploadResult(path=path)

    def get_public_url(self, bucket: str, path: str) -> str:
        return self.client.storage.from_(bucket).get_public_url(path)

    # Deletes objects; used only to compensate failed submissions
    async def remove(self, bucket: str, paths: List[str]) -> None:
        if not paths:
            return
        await asyncio.to_thread(self.client.storage.from_(bucket).remove, list(paths))
        logger.info(f"Removed {len(paths)} objects from {bucket}")
