from typing import Dict, List, Optional

GENERIC_ERROR_MESSAGE = "Error al procesar el registro."


class SubmissionError(Exception):
    """Base class for failures that abort a submission.

    ``message`` is safe to show to the caller; anything else stays in the logs.
    """

    code: str = "internal_server_error"
    message: str = GENERIC_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None):
        if message:
            self.message = message
        super().__init__(self.message)


class UploadFailedError(SubmissionError):
    """One or more files of a submission could not be stored."""

    code = "upload_failed"

    def __init__(self, failures: Dict[str, List[str]]):
        self.failures = failures
        self.groups = list(failures.keys())
        super().__init__(f"Fallo al subir archivos para: {', '.join(self.groups)}")


class PersistenceError(SubmissionError):
    """The relational store rejected the row."""

    code = "persistence_failed"
    message = "No se pudo guardar el registro en la base de datos."

    def __init__(self, table: str, detail: str):
        self.table = table
        self.detail = detail
        super().__init__()


class NotificationError(Exception):
    """The email provider did not accept a message."""
