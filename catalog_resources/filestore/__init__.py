"""
Attachment filestore

Filesystem storage of record attachments
"""

from .errors import (
    ErrorCode,
    StoreError,
    RecordNotFound,
    ResourceNotFound,
    ResourceAlreadyExists,
    AccessDenied,
    InvalidResourceName,
    StorageIOError,
    ConfigurationInconsistency,
)

from .collaborators import (
    Session,
    AuthorizationService,
    RecordIdResolver,
    AttributeIndex,
)

from .paths import PathResolver, group_folder

from .security import (
    AccessGuard,
    validate_resource_name,
    strip_record_prefix,
)

from .lifecycle import DirectoryMover

from .base import ResourceHolder, ResourceStore

from .file_store import FilesystemStore

from .factory import create_file_store, get_file_store, reset_file_store

__all__ = [
    # Errors
    "ErrorCode",
    "StoreError",
    "RecordNotFound",
    "ResourceNotFound",
    "ResourceAlreadyExists",
    "AccessDenied",
    "InvalidResourceName",
    "StorageIOError",
    "ConfigurationInconsistency",
    # Collaborators
    "Session",
    "AuthorizationService",
    "RecordIdResolver",
    "AttributeIndex",
    # Layout
    "PathResolver",
    "group_folder",
    # Security
    "AccessGuard",
    "validate_resource_name",
    "strip_record_prefix",
    # Lifecycle
    "DirectoryMover",
    # Stores
    "ResourceHolder",
    "ResourceStore",
    "FilesystemStore",
    # Factory
    "create_file_store",
    "get_file_store",
    "reset_file_store",
]
