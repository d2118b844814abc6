"""
Catalog resources data models

Exports all Pydantic models
"""

from .resource import (
    Visibility,
    LayoutStrategy,
    FolderPrivilegeMode,
    DenialReason,
    RESOURCE_IDENTIFIER_PLACEHOLDER,
    UUID_PLACEHOLDER,
    build_resource_url,
    ResourceDescriptor,
    ResourceContainerDescriptor,
    DeleteOutcome,
    StoreFolderConfig,
    FileStoreConfig,
)

__all__ = [
    "Visibility",
    "LayoutStrategy",
    "FolderPrivilegeMode",
    "DenialReason",
    "RESOURCE_IDENTIFIER_PLACEHOLDER",
    "UUID_PLACEHOLDER",
    "build_resource_url",
    "ResourceDescriptor",
    "ResourceContainerDescriptor",
    "DeleteOutcome",
    "StoreFolderConfig",
    "FileStoreConfig",
]
