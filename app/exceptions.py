"""Custom exception hierarchy for FileVault."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Metadata errors
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FOLDER_CONFLICT = "FOLDER_CONFLICT"
    FILE_CONFLICT = "FILE_CONFLICT"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Upstream errors
    STORAGE_ERROR = "STORAGE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class VaultException(Exception):
    """
    Base exception for all FileVault errors.

    Carries a human-readable message, a machine-readable error code, the HTTP
    status to answer with, and optional details. Rendered by
    ``middleware.exception_handler`` as ``{"error", "message", "details"}``.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class FolderNotFoundError(VaultException):
    """Folder not found in database."""

    def __init__(self, folder_id: str):
        super().__init__(
            f"Folder not found: {folder_id}",
            ErrorCode.FOLDER_NOT_FOUND,
            status_code=404,
            details={"folder_id": folder_id}
        )


class FileRecordNotFoundError(VaultException):
    """File record not found in database."""

    def __init__(self, file_id: str):
        super().__init__(
            f"File not found: {file_id}",
            ErrorCode.FILE_NOT_FOUND,
            status_code=404,
            details={"file_id": file_id}
        )


class FolderConflictError(VaultException):
    """A live sibling folder with the same name already exists."""

    def __init__(self, name: str, parent_id: Optional[str] = None):
        super().__init__(
            "A folder with this name already exists in this location",
            ErrorCode.FOLDER_CONFLICT,
            status_code=409,
            details={"name": name, "parent_id": parent_id}
        )


class FileConflictError(VaultException):
    """A live file already tracks this storage key."""

    def __init__(self, storage_key: str):
        super().__init__(
            f"A file already exists at: {storage_key}",
            ErrorCode.FILE_CONFLICT,
            status_code=409,
            details={"storage_key": storage_key}
        )


class ValidationError(VaultException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class AuthenticationError(VaultException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(VaultException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class StorageError(VaultException):
    """Object store operation failed or returned something unusable."""

    def __init__(self, message: str, original_error: Optional[Exception] = None, key: Optional[str] = None):
        details: Dict[str, Any] = {}
        if key is not None:
            details["key"] = key
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.STORAGE_ERROR,
            status_code=500,
            details=details
        )


class DatabaseError(VaultException):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
