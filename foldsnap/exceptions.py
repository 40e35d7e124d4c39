"""Custom exception hierarchy for FoldSnap."""

from enum import Enum
from typing import Optional, Dict, Any, Iterable


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in the ``error`` field."""

    # Request shape errors
    MISSING_NAME = "missing_name"
    MISSING_MEDIA_IDS = "missing_media_ids"
    MISSING_FOLDER_ID = "missing_folder_id"

    # Anything the folder layer rejects
    INVALID_ARGUMENT = "invalid_argument"

    # Auth
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"

    # Generic errors
    SERVER_ERROR = "server_error"


class FoldSnapException(Exception):
    """
    Base exception for all FoldSnap errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class InvalidArgumentError(FoldSnapException):
    """Caller input rejected by the folder layer. Always a 400."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.INVALID_ARGUMENT,
            status_code=400,
            details=details,
        )


class EmptyNameError(InvalidArgumentError):
    """Folder name is empty once sanitized."""

    def __init__(self):
        super().__init__("Folder name cannot be empty.", details={"field": "name"})


class ParentNotFoundError(InvalidArgumentError):
    """Requested parent folder does not exist."""

    def __init__(self, parent_id: int):
        super().__init__(
            f"Parent folder with ID {parent_id} does not exist.",
            details={"parent_id": parent_id},
        )


class FolderNotFoundError(InvalidArgumentError):
    """Folder not found in database."""

    def __init__(self, folder_id: int):
        super().__init__(
            f"Folder with ID {folder_id} does not exist.",
            details={"folder_id": folder_id},
        )


class CircularParentError(InvalidArgumentError):
    """Reparenting would place a folder inside itself or its own subtree."""

    def __init__(self, folder_id: int, parent_id: int):
        super().__init__(
            f"Cannot move folder {folder_id} into itself or one of its descendants.",
            details={"folder_id": folder_id, "parent_id": parent_id},
        )


class InvalidColorError(InvalidArgumentError):
    """Color is not a #rgb or #rrggbb hex string."""

    def __init__(self, color: str):
        super().__init__(
            f"Invalid hex color: {color}",
            details={"color": color},
        )


class InvalidMediaIdError(InvalidArgumentError):
    """One or more ids do not refer to a media item."""

    def __init__(self, media_ids: Iterable[Any]):
        ids = list(media_ids)
        super().__init__(
            "Invalid attachment IDs: " + ", ".join(str(i) for i in ids),
            details={"media_ids": ids},
        )


class NameRequiredError(FoldSnapException):
    """Create request carried no name at all."""

    def __init__(self):
        super().__init__(
            "Folder name is required.",
            ErrorCode.MISSING_NAME,
            status_code=400,
        )


class MediaIdsRequiredError(FoldSnapException):
    """Assign/remove request carried no usable media ids."""

    def __init__(self):
        super().__init__(
            "media_ids is required and must be a non-empty array.",
            ErrorCode.MISSING_MEDIA_IDS,
            status_code=400,
        )


class FolderIdRequiredError(FoldSnapException):
    """Media listing request without a folder_id parameter."""

    def __init__(self):
        super().__init__(
            "folder_id parameter is required.",
            ErrorCode.MISSING_FOLDER_ID,
            status_code=400,
        )


class AuthenticationError(FoldSnapException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(FoldSnapException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to manage media"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )
