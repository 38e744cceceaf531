"""Custom exception classes for the application."""

from typing import Optional


class TisorahException(Exception):
    """Base exception for all admin backend errors."""

    code = "internal_error"

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(TisorahException):
    """Raised when a requested resource is not found."""

    code = "not_found"

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class ValidationError(TisorahException):
    """Raised when a submitted form is missing required data."""

    code = "validation_error"

    def __init__(self, field: Optional[str], message: str):
        self.field = field
        super().__init__(message)


class UploadError(TisorahException):
    """Raised when one or more files fail to reach object storage."""

    code = "upload_failed"


class StorageError(TisorahException):
    """Raised when object storage rejects a non-upload operation."""

    code = "storage_error"


class PersistenceError(TisorahException):
    """Raised when a create/update/delete fails at the database."""

    code = "persistence_error"

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"Failed to {operation}: {message}")


class RoleConflictError(TisorahException):
    """Raised when one gallery image is assigned both display and hover roles."""

    code = "role_conflict"

    def __init__(self, message: str = "same image cannot be used for both roles"):
        super().__init__(message)
