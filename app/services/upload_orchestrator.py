"""
Concurrent, all-or-nothing upload of a submission's file groups.

Every group runs as its own task and every file inside a group runs as its own
task, so the whole batch costs roughly as much as its slowest file. The batch
only succeeds if every single file reached storage.
"""

import asyncio
import logging
import re
import time
from typing import Callable, Dict, List, Optional, Tuple

from app.core.exceptions import UploadFailedError
from app.schemas.upload_schema import FileGroups, FileItem

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9.\-_]")
DEFAULT_FILENAME = "archivo"


def sanitize_filename(filename: Optional[str]) -> str:
    """Replace every character outside ``[A-Za-z0-9.-_]`` with ``_``.

    Storage rejects keys with spaces, path separators and most unicode. The
    output only contains safe characters, so sanitizing twice is a no-op.
    """
    if not filename:
        return DEFAULT_FILENAME
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)


def build_storage_key(prefix: str, group: str, timestamp_ms: int, index: int, filename: Optional[str]) -> str:
    return f"{prefix}/{group}/{timestamp_ms}-{index}-{sanitize_filename(filename)}"


def _describe(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


def _now_ms() -> int:
    return int(time.time() * 1000)


class UploadOrchestrator:
    def __init__(self, storage, prefix: str = "public", clock: Callable[[], int] = _now_ms):
        self.storage = storage
        self.prefix = prefix
        self._clock = clock

    async def upload_all(
        self,
        file_groups: FileGroups,
        bucket: str,
        uploaded_paths: Optional[List[str]] = None,
    ) -> Dict[str, List[str]]:
        """Upload every file of every group and return public URLs per group.

        Groups without files are left out of the result. If any file fails,
        an ``UploadFailedError`` naming each failing group is raised once all
        uploads have settled; objects that did upload are not rolled back here,
        but their paths are appended to ``uploaded_paths`` when a list is given.
        """
        groups = [(name, items) for name, items in file_groups.items() if items]
        if not groups:
            return {}

        total = sum(len(items) for _, items in groups)
        logger.info(f"Uploading {total} files in {len(groups)} groups to bucket {bucket}")

        results = await asyncio.gather(
            *(self._upload_group(bucket, name, items, uploaded_paths) for name, items in groups),
            return_exceptions=True,
        )

        urls: Dict[str, List[str]] = {}
        failures: Dict[str, List[str]] = {}
        for (name, _), result in zip(groups, results):
            if isinstance(result, Exception):
                failures[name] = [_describe(result)]
                continue
            group_urls, errors = result
            if errors:
                failures[name] = errors
            elif group_urls:
                urls[name] = group_urls

        if failures:
            for name, errors in failures.items():
                logger.error(f"Error uploading files for {name}: {errors}")
            raise UploadFailedError(failures)

        return urls

    # Uploads one group concurrently; returns (urls, errors)
    async def _upload_group(
        self,
        bucket: str,
        group: str,
        items: List[FileItem],
        uploaded_paths: Optional[List[str]],
    ) -> Tuple[List[str], List[str]]:
        timestamp = self._clock()
        tasks = []
        for index, item in enumerate(items):
            key = build_storage_key(self.prefix, group, timestamp, index, item.filename)
            tasks.append(self.storage.upload(bucket, key, item.data, item.content_type))

        results = await asyncio.gather(*tasks, return_exceptions=True)

        errors: List[str] = []
        paths: List[str] = []
        for result in results:
            if isinstance(result, Exception):
                errors.append(_describe(result))
            elif result.error:
                errors.append(result.error)
            elif result.path:
                paths.append(result.path)
            else:
                logger.warning(f"Upload for {group} reported success without a path; skipping URL")

        if uploaded_paths is not None:
            uploaded_paths.extend(paths)

        if errors:
            return [], errors

        try:
            return [self.storage.get_public_url(bucket, path) for path in paths], []
        except Exception as e:
            logger.exception(f"Could not resolve public URLs for {group}")
            return [], [_describe(e)]
