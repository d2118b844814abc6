"""
Attachment store errors

Typed failures raised by the store. Each carries a machine-readable code and
the HTTP status an upstream API layer should answer with.
"""

from http import HTTPStatus
from pathlib import Path
from typing import Any, Dict, Optional, Union

from catalog_resources.models.resource import DenialReason


class ErrorCode:
    """Standard error codes"""

    # Authentication / authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Client errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class StoreError(Exception):
    """
    Base class of all store errors

    Carries structured error information for the caller.
    """

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = int(status_code)
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Error body for an API response"""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class RecordNotFound(StoreError):
    """The record UUID is unknown"""

    def __init__(self, metadata_uuid: str, approved: Optional[bool] = None):
        details: Dict[str, Any] = {"metadata_uuid": metadata_uuid}
        if approved is not None:
            details["approved"] = approved

        super().__init__(
            message=f"Metadata '{metadata_uuid}' not found",
            code=ErrorCode.NOT_FOUND,
            status_code=HTTPStatus.NOT_FOUND,
            details=details
        )
        self.metadata_uuid = metadata_uuid


class ResourceNotFound(StoreError):
    """The requested resource does not exist for the record"""

    def __init__(self, resource_name: str, metadata_uuid: str):
        super().__init__(
            message=f"Metadata resource '{resource_name}' not found for metadata '{metadata_uuid}'",
            code=ErrorCode.RESOURCE_NOT_FOUND,
            status_code=HTTPStatus.NOT_FOUND,
            details={"resource_name": resource_name, "metadata_uuid": metadata_uuid}
        )
        self.resource_name = resource_name
        self.metadata_uuid = metadata_uuid


class ResourceAlreadyExists(StoreError):
    """A write would clobber an unapproved resource with the same name"""

    def __init__(self, resource_name: str, visibility: str, metadata_id: int):
        super().__init__(
            message=(
                f"A resource with name '{resource_name}' and status '{visibility}' "
                f"already exists for metadata '{metadata_id}'."
            ),
            code=ErrorCode.CONFLICT,
            status_code=HTTPStatus.CONFLICT,
            details={
                "resource_name": resource_name,
                "visibility": visibility,
                "metadata_id": metadata_id,
            }
        )


class AccessDenied(StoreError):
    """Authorization failure"""

    def __init__(
        self,
        reason: DenialReason,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if reason == DenialReason.UNAUTHENTICATED:
            code = ErrorCode.UNAUTHORIZED
            status_code = HTTPStatus.UNAUTHORIZED
            default_message = "Operation not allowed, please log in"
        else:
            code = ErrorCode.FORBIDDEN
            status_code = HTTPStatus.FORBIDDEN
            default_message = "User is not permitted to access this resource"

        super().__init__(
            message=message or default_message,
            code=code,
            status_code=status_code,
            details=details
        )
        self.reason = reason

    @property
    def requires_login(self) -> bool:
        return self.reason == DenialReason.UNAUTHENTICATED


class InvalidResourceName(StoreError):
    """The resource name is unsafe or empty"""

    def __init__(self, resource_name: str):
        super().__init__(
            message=f"Invalid resource identifier '{resource_name}'.",
            code=ErrorCode.VALIDATION_ERROR,
            status_code=HTTPStatus.BAD_REQUEST,
            details={"resource_name": resource_name}
        )
        self.resource_name = resource_name


class StorageIOError(StoreError):
    """A filesystem operation failed"""

    def __init__(
        self,
        message: str,
        operation: str,
        path: Optional[Union[str, Path]] = None,
        metadata_id: Optional[int] = None,
        code: str = ErrorCode.STORAGE_ERROR
    ):
        details: Dict[str, Any] = {"operation": operation}
        if path is not None:
            details["path"] = str(path)
        if metadata_id is not None:
            details["metadata_id"] = metadata_id

        super().__init__(
            message=message,
            code=code,
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            details=details
        )
        self.operation = operation
        self.path = path
        self.metadata_id = metadata_id


class ConfigurationInconsistency(StorageIOError):
    """Template layout configured but the attribute index cannot serve it"""

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        metadata_id: Optional[int] = None
    ):
        super().__init__(
            message=message,
            operation="resolve_record_directory",
            path=path,
            metadata_id=metadata_id,
            code=ErrorCode.CONFIGURATION_ERROR
        )


__all__ = [
    "ErrorCode",
    "StoreError",
    "RecordNotFound",
    "ResourceNotFound",
    "ResourceAlreadyExists",
    "AccessDenied",
    "InvalidResourceName",
    "StorageIOError",
    "ConfigurationInconsistency",
]
