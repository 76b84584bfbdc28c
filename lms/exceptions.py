"""
Exception taxonomy shared by services and API layer

Services raise these; the handlers registered in lms.main turn them into
JSON responses with the carried status code.
"""
from typing import Optional


class LMSError(Exception):
    """Base error for all workflow failures"""

    status_code = 500
    error_code = "lms_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LMSError):
    """Input rejected before any mutation was attempted"""

    status_code = 422
    error_code = "validation_error"


class NotFoundError(LMSError):
    status_code = 404
    error_code = "not_found"


class ConflictError(LMSError):
    status_code = 409
    error_code = "conflict"


class PermissionDeniedError(LMSError):
    status_code = 403
    error_code = "permission_denied"


class PersistenceError(LMSError):
    """A database read or write failed; the transaction was rolled back"""

    status_code = 503
    error_code = "persistence_error"


class StorageError(LMSError):
    """Object storage upload, download or listing failed"""

    status_code = 502
    error_code = "storage_error"


class CertificateUploadError(StorageError):
    """
    Certificate rendered but could not be uploaded

    The enrollment was not touched. fallback_file names the local copy that
    can still be handed to the student.
    """

    error_code = "certificate_upload_failed"

    def __init__(self, message: str, fallback_file: Optional[str] = None):
        super().__init__(message)
        self.fallback_file = fallback_file
