import logging
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks

from app.core.exceptions import SubmissionError
from app.schemas.form_schemas import SubmissionRecord
from app.schemas.upload_schema import FileGroups
from app.services.form_registry import FormDefinition
from app.services.upload_orchestrator import UploadOrchestrator

logger = logging.getLogger(__name__)


# Merges the record's columns with one `<group>_urls` list per uploaded group
def build_row(record: SubmissionRecord, group_urls: Dict[str, List[str]]) -> Dict[str, Any]:
    row = record.to_row()
    for group, urls in group_urls.items():
        if urls:
            row[f"{group}_urls"] = list(urls)
    return row


class SubmissionService:
    """Upload files, store the row, then send the welcome email.

    The clients are built once at startup and shared by all requests; nothing
    in here keeps state between submissions.
    """

    def __init__(
        self,
        storage,
        records,
        email_service,
        orchestrator: Optional[UploadOrchestrator] = None,
        storage_prefix: str = "public",
        cleanup_orphaned_uploads: bool = False,
    ):
        self.storage = storage
        self.records = records
        self.email_service = email_service
        self.orchestrator = orchestrator or UploadOrchestrator(storage, prefix=storage_prefix)
        self.cleanup_orphaned_uploads = cleanup_orphaned_uploads
        logger.info("SubmissionService initialized")

    async def process(
        self,
        definition: FormDefinition,
        record: SubmissionRecord,
        file_groups: Optional[FileGroups] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Dict[str, Any]:
        logger.info(f"Processing {definition.key} submission...")
        file_groups = file_groups or {}
        uploaded_paths: List[str] = []

        try:
            group_urls: Dict[str, List[str]] = {}
            if definition.accepts_files and any(file_groups.values()):
                group_urls = await self.orchestrator.upload_all(
                    file_groups, definition.bucket, uploaded_paths=uploaded_paths
                )
                logger.info(f"Generated file URLs for {definition.key}: {group_urls}")

            row = build_row(record, group_urls)
            saved = await self.records.insert(definition.table, row)
        except SubmissionError as e:
            logger.error(f"Error processing {definition.key}: {e.message}")
            await self._cleanup(definition, uploaded_paths)
            raise
        except Exception:
            logger.exception(f"Unexpected error processing {definition.key}")
            await self._cleanup(definition, uploaded_paths)
            raise

        logger.info(f"{definition.key} saved to {definition.table}: id={saved.get('id')}")

        if background_tasks is not None:
            background_tasks.add_task(self.notify_safely, definition, record)
        else:
            await self.notify_safely(definition, record)

        return {"message": definition.success_message, "data": saved}

    # Sends the welcome email; failures are logged and never propagated
    async def notify_safely(self, definition: FormDefinition, record: SubmissionRecord) -> bool:
        recipient = record.recipient_email()
        if not recipient:
            logger.info(f"No recipient email for {definition.key}; skipping notification")
            return False
        if not self.email_service.enabled:
            logger.warning(f"Email disabled; not notifying {recipient} for {definition.key}")
            return False

        try:
            await self.email_service.send_welcome_email(
                recipient, record.display_name(), definition.next_step_url
            )
        except Exception:
            logger.exception(f"Failed to send welcome email to {recipient} for {definition.key}")
            return False
        return True

    # Best-effort removal of blobs left behind by a failed submission
    async def _cleanup(self, definition: FormDefinition, uploaded_paths: List[str]) -> None:
        if not uploaded_paths:
            return
        if not self.cleanup_orphaned_uploads:
            logger.warning(
                f"Leaving {len(uploaded_paths)} orphaned objects in {definition.bucket}: {uploaded_paths}"
            )
            return
        try:
            await self.storage.remove(definition.bucket, uploaded_paths)
        except Exception:
            logger.exception(f"Failed to clean up {len(uploaded_paths)} objects in {definition.bucket}")
