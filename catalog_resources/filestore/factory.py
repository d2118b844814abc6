"""
FilesystemStore factory functions

Builds a store from the global configuration and keeps one process-wide
instance.
"""

from typing import Optional

from catalog_resources.filestore.collaborators import (
    AttributeIndex,
    AuthorizationService,
    RecordIdResolver,
)
from catalog_resources.filestore.file_store import FilesystemStore
from catalog_resources.models.resource import FileStoreConfig


# Global singleton
_global_file_store: Optional[FilesystemStore] = None


def create_file_store(
    config: Optional[FileStoreConfig],
    authorization: AuthorizationService,
    record_ids: RecordIdResolver,
    attribute_index: Optional[AttributeIndex] = None
) -> FilesystemStore:
    """
    Create a FilesystemStore

    Args:
        config: Store configuration, None to read the global configuration
        authorization: Permission checks
        record_ids: UUID to record id lookup
        attribute_index: Index lookup, required by the template layout

    Returns:
        New FilesystemStore
    """
    if config is None:
        from config import get_config
        config = get_config().storage.to_filestore_config()

    return FilesystemStore(
        config,
        authorization=authorization,
        record_ids=record_ids,
        attribute_index=attribute_index
    )


def get_file_store(
    authorization: AuthorizationService,
    record_ids: RecordIdResolver,
    attribute_index: Optional[AttributeIndex] = None,
    config: Optional[FileStoreConfig] = None,
    force_new: bool = False
) -> FilesystemStore:
    """
    Get the process-wide FilesystemStore

    Collaborators are only used when the instance is (re)created.

    Args:
        authorization: Permission checks
        record_ids: UUID to record id lookup
        attribute_index: Index lookup, required by the template layout
        config: Store configuration, None to read the global configuration
        force_new: Whether to replace the cached instance

    Returns:
        FilesystemStore instance
    """
    global _global_file_store

    if force_new or _global_file_store is None:
        _global_file_store = create_file_store(config, authorization, record_ids, attribute_index)

    return _global_file_store


def reset_file_store() -> None:
    """Reset the global FilesystemStore instance"""
    global _global_file_store
    _global_file_store = None


__all__ = [
    "create_file_store",
    "get_file_store",
    "reset_file_store",
]
