"""
Resource store interface

Abstract base class shared by every store backend. The filesystem store is
one implementation; others can be substituted without changing callers.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from catalog_resources.filestore.collaborators import Session
from catalog_resources.filestore.errors import StorageIOError
from catalog_resources.models.resource import (
    DeleteOutcome,
    ResourceContainerDescriptor,
    ResourceDescriptor,
    Visibility,
)

logger = logging.getLogger(__name__)

Content = Union[bytes, bytearray, memoryview, BinaryIO]


class ResourceHolder:
    """
    A located resource

    Use as a context manager so backends that materialise a local copy can
    release it on every exit path. Unpacks as (path, metadata).
    """

    def __init__(self, path: Path, metadata: Optional[ResourceDescriptor] = None):
        self.path = Path(path)
        self.metadata = metadata
        self.closed = False

    def close(self) -> None:
        """Release the resource (nothing to release for local files)"""
        self.closed = True

    def __iter__(self):
        yield self.path
        yield self.metadata

    def __enter__(self) -> "ResourceHolder":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ResourceStore(ABC):
    """
    Resource store base class

    Defines the list/get/put/delete/patch/copy contract of record attachments.
    """

    @abstractmethod
    def list_resources(
        self,
        session: Session,
        metadata_uuid: str,
        visibility: Optional[Visibility] = None,
        name_pattern: str = "*",
        approved: bool = True
    ) -> List[ResourceDescriptor]:
        """
        List the resources of a record

        Args:
            session: Caller context
            metadata_uuid: Record UUID
            visibility: Tier to list, None for every tier the caller may see
            name_pattern: Glob matched against file names
            approved: False for the working copy

        Returns:
            Descriptors sorted by file name
        """
        pass

    @abstractmethod
    def get_resource(
        self,
        session: Session,
        metadata_uuid: str,
        resource_name: str,
        visibility: Optional[Visibility] = None,
        approved: bool = True
    ) -> ResourceHolder:
        """
        Locate a resource

        Raises:
            ResourceNotFound: No such resource
        """
        pass

    @abstractmethod
    def get_resource_container(
        self,
        metadata_uuid: str,
        approved: bool = True
    ) -> ResourceContainerDescriptor:
        """Ensure the record container exists and describe it"""
        pass

    @abstractmethod
    def put_resource(
        self,
        session: Session,
        metadata_uuid: str,
        resource_name: str,
        content: Content,
        change_date: Optional[datetime] = None,
        visibility: Visibility = Visibility.PUBLIC,
        approved: bool = True
    ) -> ResourceDescriptor:
        """
        Store a resource

        Raises:
            ResourceAlreadyExists: Same name already stored for an unapproved record
        """
        pass

    @abstractmethod
    def patch_visibility(
        self,
        session: Session,
        metadata_uuid: str,
        resource_name: str,
        visibility: Visibility,
        approved: bool = True
    ) -> Optional[ResourceDescriptor]:
        """Move a resource to another tier"""
        pass

    @abstractmethod
    def delete_resource(
        self,
        session: Session,
        metadata_uuid: str,
        resource_name: str,
        visibility: Optional[Visibility] = None,
        approved: bool = True
    ) -> Optional[DeleteOutcome]:
        """Best-effort delete of one resource"""
        pass

    @abstractmethod
    def delete_all_resources(
        self,
        session: Session,
        metadata_uuid: str,
        approved: bool = True
    ) -> DeleteOutcome:
        """Best-effort delete of every resource of a record"""
        pass

    @abstractmethod
    def rename_record_directory(self, original_path: Path, new_path: Path) -> bool:
        """Move a record container"""
        pass

    @abstractmethod
    def check_edit(self, session: Session, metadata_uuid: str, approved: bool = True) -> int:
        """
        Require an edit grant

        Returns:
            Record id

        Raises:
            AccessDenied: No edit grant
        """
        pass

    def copy_resources(
        self,
        session: Session,
        source_uuid: str,
        target_uuid: str,
        visibility: Visibility,
        source_approved: bool = True,
        target_approved: bool = True
    ) -> List[ResourceDescriptor]:
        """
        Copy every resource of a tier from one record to another

        Names and modification times are preserved. A file that cannot be
        copied is logged and skipped.

        Returns:
            Descriptors of the copies
        """
        self.check_edit(session, source_uuid, source_approved)

        resources = self.list_resources(
            session, source_uuid, visibility, approved=source_approved
        )
        copied = []

        for resource in resources:
            try:
                with self.get_resource(
                    session, source_uuid, resource.filename, resource.visibility, source_approved
                ) as holder:
                    with open(holder.path, "rb") as f:
                        copied.append(self.put_resource(
                            session,
                            target_uuid,
                            resource.filename,
                            f,
                            change_date=resource.last_modification,
                            visibility=resource.visibility,
                            approved=target_approved
                        ))
            except (OSError, StorageIOError) as e:
                logger.error(
                    f"Datastore issue. Failed to copy '{resource.filename}' "
                    f"from {source_uuid} to {target_uuid}: {e}"
                )

        logger.debug(f"Copied {len(copied)}/{len(resources)} resources from {source_uuid} to {target_uuid}")
        return copied


__all__ = [
    "Content",
    "ResourceHolder",
    "ResourceStore",
]
