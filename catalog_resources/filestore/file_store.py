"""
Filesystem resource store

Stores record attachments as plain files below the data directory, one
directory per record, split in public/private tier folders when privilege
folders are enabled.
"""

import fnmatch
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from catalog_resources.filestore.base import Content, ResourceHolder, ResourceStore
from catalog_resources.filestore.collaborators import (
    AttributeIndex,
    AuthorizationService,
    RecordIdResolver,
    Session,
)
from catalog_resources.filestore.errors import (
    ResourceAlreadyExists,
    ResourceNotFound,
    StorageIOError,
)
from catalog_resources.filestore.lifecycle import DirectoryMover
from catalog_resources.filestore.paths import PathResolver, split_resource_name
from catalog_resources.filestore.security import (
    AccessGuard,
    strip_record_prefix,
    validate_resource_name,
)
from catalog_resources.models.resource import (
    DeleteOutcome,
    FileStoreConfig,
    ResourceContainerDescriptor,
    ResourceDescriptor,
    Visibility,
    build_resource_url,
)

logger = logging.getLogger(__name__)

FILE_CHUNK_SIZE = 64 * 1024
FILE_MODE = 0o644
TEMP_PREFIX = ".upload-"


class FilesystemStore(ResourceStore):
    """
    Filesystem resource store

    Every operation resolves the record id and checks permissions before the
    filesystem is touched.

    Example:
        >>> store = FilesystemStore(config, authorization, record_ids)
        >>> descriptor = store.put_resource(session, uuid, "map.png", b"...")
        >>> with store.get_resource(session, uuid, "map.png") as (path, metadata):
        ...     data = path.read_bytes()
    """

    def __init__(
        self,
        config: FileStoreConfig,
        authorization: AuthorizationService,
        record_ids: RecordIdResolver,
        attribute_index: Optional[AttributeIndex] = None
    ):
        """
        Initialize the store

        Args:
            config: Store configuration
            authorization: Permission checks
            record_ids: UUID to record id lookup
            attribute_index: Index lookup, required by the template layout
        """
        self.config = config
        self.data_dir = Path(config.data_dir)
        self.paths = PathResolver(
            self.data_dir,
            config.folders,
            attribute_index=attribute_index,
            backup_dir=config.backup_dir
        )
        self.access = AccessGuard(authorization, record_ids, self.paths)
        self.mover = DirectoryMover(self.data_dir)

        self.data_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"FilesystemStore initialized at {self.data_dir}")

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_resources(
        self,
        session: Session,
        metadata_uuid: str,
        visibility: Optional[Visibility] = None,
        name_pattern: str = "*",
        approved: bool = True
    ) -> List[ResourceDescriptor]:
        if visibility is not None:
            return self._list_tier(session, metadata_uuid, visibility, name_pattern, approved)

        record_id = self.access.resolve(metadata_uuid, approved)
        resources = self._list_tier(session, metadata_uuid, Visibility.PUBLIC, name_pattern, approved)

        if self.paths.has_private_tier and self.access.can_edit(session, record_id):
            resources.extend(
                self._list_tier(session, metadata_uuid, Visibility.PRIVATE, name_pattern, approved)
            )
            resources.sort(key=lambda r: (r.filename, r.visibility.value))

        return resources

    def _list_tier(
        self,
        session: Session,
        metadata_uuid: str,
        visibility: Visibility,
        name_pattern: str,
        approved: bool
    ) -> List[ResourceDescriptor]:
        visibility = self.paths.coerce_visibility(visibility)
        record_id = self.access.authorize_download(session, metadata_uuid, visibility, approved)
        tier_dir = self._tier_directory(record_id, metadata_uuid, visibility)

        if not tier_dir.is_dir():
            return []

        resources = []
        try:
            for file_path in self._walk(tier_dir, name_pattern or "*"):
                try:
                    resources.append(self._describe(
                        metadata_uuid, record_id, visibility, tier_dir, file_path, approved
                    ))
                except FileNotFoundError:
                    # Removed while listing
                    continue
        except OSError as e:
            raise StorageIOError(
                f"Failed to list resources of metadata '{record_id}': {e}",
                operation="list_resources",
                path=tier_dir,
                metadata_id=record_id
            ) from e

        resources.sort(key=lambda r: r.filename)
        logger.debug(f"Listed {len(resources)} {visibility.value} resources of metadata {record_id}")
        return resources

    def _walk(self, folder: Path, name_pattern: str) -> List[Path]:
        """Non-hidden files below folder whose name matches the pattern"""
        matches = []
        try:
            entries = sorted(folder.iterdir())
        except FileNotFoundError:
            return matches

        for entry in entries:
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                matches.extend(self._walk(entry, name_pattern))
            elif entry.is_file() and fnmatch.fnmatch(entry.name, name_pattern):
                matches.append(entry)
        return matches

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_resource(
        self,
        session: Session,
        metadata_uuid: str,
        resource_name: str,
        visibility: Optional[Visibility] = None,
        approved: bool = True
    ) -> ResourceHolder:
        if visibility is None:
            candidates = [Visibility.PUBLIC]
            if self.paths.has_private_tier:
                candidates.append(Visibility.PRIVATE)
            for candidate in candidates:
                try:
                    return self.get_resource(session, metadata_uuid, resource_name, candidate, approved)
                except ResourceNotFound:
                    continue
            raise ResourceNotFound(resource_name, metadata_uuid)

        visibility = self.paths.coerce_visibility(visibility)
        record_id = self.access.authorize_download(session, metadata_uuid, visibility, approved)
        name = self._checked_name(metadata_uuid, resource_name)

        tier_dir = self._tier_directory(record_id, metadata_uuid, visibility)
        file_path = self.paths.resource_path(tier_dir, name)

        if not file_path.is_file():
            raise ResourceNotFound(name, metadata_uuid)

        try:
            metadata = self._describe(metadata_uuid, record_id, visibility, tier_dir, file_path, approved)
        except FileNotFoundError:
            raise ResourceNotFound(name, metadata_uuid)
        except OSError as e:
            raise StorageIOError(
                f"Failed to read resource '{name}' of metadata '{record_id}': {e}",
                operation="get_resource",
                path=file_path,
                metadata_id=record_id
            ) from e

        return ResourceHolder(file_path, metadata)

    def get_resource_internal(
        self,
        metadata_uuid: str,
        visibility: Visibility,
        resource_name: str,
        approved: bool = True
    ) -> ResourceHolder:
        """
        Locate a resource without permission checks

        For internal jobs (indexing, thumbnails) running outside a user request.

        Raises:
            ResourceNotFound: No such resource
        """
        visibility = self.paths.coerce_visibility(visibility)
        record_id = self.access.resolve(metadata_uuid, approved)
        name = self._checked_name(metadata_uuid, resource_name)

        tier_dir = self._tier_directory(record_id, metadata_uuid, visibility)
        file_path = self.paths.resource_path(tier_dir, name)
        if not file_path.is_file():
            raise ResourceNotFound(name, metadata_uuid)
        return ResourceHolder(file_path)

    def get_resource_description(
        self,
        metadata_uuid: str,
        visibility: Visibility,
        resource_name: str,
        approved: bool = True
    ) -> Optional[ResourceDescriptor]:
        """Descriptor of a resource, or None when it cannot be read"""
        visibility = self.paths.coerce_visibility(visibility)
        record_id = self.access.resolve(metadata_uuid, approved)
        name = self._checked_name(metadata_uuid, resource_name)

        tier_dir = self._tier_directory(record_id, metadata_uuid, visibility)
        file_path = self.paths.resource_path(tier_dir, name)
        try:
            return self._describe(metadata_uuid, record_id, visibility, tier_dir, file_path, approved)
        except OSError as e:
            logger.error(f"Datastore issue. Failed to get resource description of {file_path}: {e}")
            return None

    def get_resource_container(
        self,
        metadata_uuid: str,
        approved: bool = True
    ) -> ResourceContainerDescriptor:
        record_id = self.access.resolve(metadata_uuid, approved)
        record_dir = self.paths.record_directory(record_id, metadata_uuid)

        try:
            record_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(
                f"Can't create folder '{record_dir}' for metadata '{record_id}': {e}",
                operation="get_resource_container",
                path=record_dir,
                metadata_id=record_id
            ) from e

        return ResourceContainerDescriptor(
            metadata_uuid=metadata_uuid,
            metadata_id=record_id,
            container_name=metadata_uuid,
            url=build_resource_url(self.config.node_url, metadata_uuid, approved=approved),
            approved=approved,
            path=record_dir
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

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
        record_id = self.access.authorize_edit(session, metadata_uuid, approved)
        name = self._checked_name(metadata_uuid, resource_name)
        visibility = self.paths.coerce_visibility(visibility)

        tier_dir = self._tier_directory(record_id, metadata_uuid, visibility)
        folder = self._ensure_directory(self.paths.resource_subfolder(tier_dir, name), name, record_id)
        file_path = folder / split_resource_name(name).name

        if not approved and file_path.exists():
            raise ResourceAlreadyExists(name, visibility.value, record_id)

        try:
            self._write_atomic(file_path, content, overwrite=approved)
            if change_date is not None:
                timestamp = change_date.timestamp()
                os.utime(file_path, (timestamp, timestamp))
            descriptor = self._describe(metadata_uuid, record_id, visibility, tier_dir, file_path, approved)
        except FileExistsError:
            raise ResourceAlreadyExists(name, visibility.value, record_id)
        except OSError as e:
            logger.error(f"Failed to store resource {name} of metadata {record_id}: {e}")
            raise StorageIOError(
                f"Failed to store resource '{name}' for metadata '{record_id}': {e}",
                operation="put_resource",
                path=file_path,
                metadata_id=record_id
            ) from e

        logger.debug(f"Stored resource: {descriptor}")
        return descriptor

    def put_resource_from_path(
        self,
        session: Session,
        metadata_uuid: str,
        source_path: Union[str, Path],
        visibility: Visibility = Visibility.PUBLIC,
        approved: bool = True,
        resource_name: Optional[str] = None
    ) -> ResourceDescriptor:
        """
        Store a local file, keeping its name and modification time

        Args:
            session: Caller context
            metadata_uuid: Record UUID
            source_path: File to copy in
            visibility: Target tier
            approved: False for the working copy
            resource_name: Stored name (defaults to the source file name)
        """
        source_path = Path(source_path)
        try:
            change_date = datetime.fromtimestamp(source_path.stat().st_mtime)
        except OSError as e:
            raise StorageIOError(
                f"Can't read source file '{source_path}': {e}",
                operation="put_resource",
                path=source_path
            ) from e

        with open(source_path, "rb") as f:
            return self.put_resource(
                session,
                metadata_uuid,
                resource_name or source_path.name,
                f,
                change_date=change_date,
                visibility=visibility,
                approved=approved
            )

    def patch_visibility(
        self,
        session: Session,
        metadata_uuid: str,
        resource_name: str,
        visibility: Visibility,
        approved: bool = True
    ) -> Optional[ResourceDescriptor]:
        if not self.paths.has_private_tier and visibility == Visibility.PRIVATE:
            return None

        record_id = self.access.authorize_edit(session, metadata_uuid, approved)

        with self.get_resource(session, metadata_uuid, resource_name, None, approved) as holder:
            current = holder.metadata
            if current.visibility == visibility:
                return current

            tier_dir = self._tier_directory(record_id, metadata_uuid, visibility)
            folder = self._ensure_directory(
                self.paths.resource_subfolder(tier_dir, current.filename), current.filename, record_id
            )
            target = folder / holder.path.name
            if target.exists():
                raise ResourceAlreadyExists(current.filename, visibility.value, record_id)

            try:
                os.replace(holder.path, target)
                descriptor = self._describe(metadata_uuid, record_id, visibility, tier_dir, target, approved)
            except OSError as e:
                raise StorageIOError(
                    f"Failed to move resource '{current.filename}' of metadata '{record_id}' "
                    f"to {visibility.value}: {e}",
                    operation="patch_visibility",
                    path=holder.path,
                    metadata_id=record_id
                ) from e

            old_tier = self._tier_directory(record_id, metadata_uuid, current.visibility)
            self.mover.prune_empty_ancestors(holder.path.parent, old_tier)

        logger.debug(f"Moved resource {current} to {visibility.value}")
        return descriptor

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    def delete_resource(
        self,
        session: Session,
        metadata_uuid: str,
        resource_name: str,
        visibility: Optional[Visibility] = None,
        approved: bool = True
    ) -> Optional[DeleteOutcome]:
        if not self.paths.has_private_tier and visibility == Visibility.PRIVATE:
            return None

        record_id = self.access.authorize_edit(session, metadata_uuid, approved)

        try:
            with self.get_resource(session, metadata_uuid, resource_name, visibility, approved) as holder:
                holder.path.unlink()
                tier_dir = self._tier_directory(record_id, metadata_uuid, holder.metadata.visibility)
                name = holder.metadata.filename
        except FileNotFoundError:
            raise ResourceNotFound(resource_name, metadata_uuid)
        except (OSError, StorageIOError) as e:
            logger.error(f"Datastore issue. Unable to remove resource {resource_name} of metadata {record_id}: {e}")
            return DeleteOutcome(
                success=False,
                message=f"Unable to remove resource '{resource_name}'.",
                metadata_id=record_id,
                resource_name=resource_name,
                error=str(e)
            )

        self.mover.prune_empty_ancestors(holder.path.parent, tier_dir)
        logger.debug(f"Removed resource {name} of metadata {record_id}")
        return DeleteOutcome(
            success=True,
            message=f"MetadataResource '{name}' removed.",
            metadata_id=record_id,
            resource_name=name
        )

    def delete_all_resources(
        self,
        session: Session,
        metadata_uuid: str,
        approved: bool = True
    ) -> DeleteOutcome:
        record_id = self.access.authorize_edit(session, metadata_uuid, approved)

        try:
            record_dir = self.paths.record_directory(record_id, metadata_uuid)
            if record_dir.exists():
                shutil.rmtree(record_dir)
        except (OSError, StorageIOError) as e:
            logger.error(f"Datastore issue. Unable to remove directory of metadata {record_id}: {e}")
            return DeleteOutcome(
                success=False,
                message=f"Unable to remove metadata '{record_id}' directory.",
                metadata_id=record_id,
                error=str(e)
            )

        logger.debug(f"Removed directory of metadata {record_id}")
        return DeleteOutcome(
            success=True,
            message=f"Metadata '{record_id}' directory removed.",
            metadata_id=record_id
        )

    # ------------------------------------------------------------------
    # Copy / lifecycle
    # ------------------------------------------------------------------

    def copy_resources(
        self,
        session: Session,
        source_uuid: str,
        target_uuid: str,
        visibility: Visibility,
        source_approved: bool = True,
        target_approved: bool = True
    ) -> List[ResourceDescriptor]:
        if not self.paths.has_private_tier and visibility == Visibility.PRIVATE:
            return []
        return super().copy_resources(
            session, source_uuid, target_uuid, visibility, source_approved, target_approved
        )

    def rename_record_directory(self, original_path: Path, new_path: Path) -> bool:
        return self.mover.rename(original_path, new_path)

    def removed_directory(self, record_id: int) -> Path:
        """Backup bucket a removed record is moved to"""
        return self.paths.removed_directory(record_id)

    def check_edit(self, session: Session, metadata_uuid: str, approved: bool = True) -> int:
        return self.access.authorize_edit(session, metadata_uuid, approved)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _checked_name(self, metadata_uuid: str, resource_name: str) -> str:
        return validate_resource_name(strip_record_prefix(metadata_uuid, resource_name))

    def _tier_directory(self, record_id: int, metadata_uuid: str, visibility: Visibility) -> Path:
        record_dir = self.paths.record_directory(record_id, metadata_uuid)
        return self.paths.tier_directory(record_dir, visibility)

    def _ensure_directory(self, folder: Path, resource_name: str, record_id: int) -> Path:
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(
                f"Can't create folder '{folder}' to store resource with name "
                f"'{resource_name}' for metadata '{record_id}'.",
                operation="ensure_directory",
                path=folder,
                metadata_id=record_id
            ) from e
        return folder

    def _describe(
        self,
        metadata_uuid: str,
        record_id: int,
        visibility: Visibility,
        tier_dir: Path,
        file_path: Path,
        approved: bool
    ) -> ResourceDescriptor:
        stat = file_path.stat()
        filename = self.paths.relative_name(tier_dir, file_path)
        return ResourceDescriptor(
            metadata_uuid=metadata_uuid,
            metadata_id=record_id,
            filename=filename,
            url=build_resource_url(self.config.node_url, metadata_uuid, filename, approved),
            visibility=visibility,
            size=stat.st_size,
            last_modification=datetime.fromtimestamp(stat.st_mtime),
            approved=approved
        )

    def _write_atomic(self, file_path: Path, content: Content, overwrite: bool) -> None:
        """
        Write through a hidden temp file in the destination folder

        Raises:
            FileExistsError: overwrite is False and the target exists
        """
        fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=".tmp", dir=file_path.parent)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                if isinstance(content, (bytes, bytearray, memoryview)):
                    f.write(content)
                else:
                    shutil.copyfileobj(content, f, FILE_CHUNK_SIZE)
            os.chmod(tmp_path, FILE_MODE)

            if overwrite:
                os.replace(tmp_path, file_path)
            else:
                self._link_no_clobber(tmp_path, file_path)
        finally:
            tmp_path.unlink(missing_ok=True)

    @staticmethod
    def _link_no_clobber(tmp_path: Path, file_path: Path) -> None:
        try:
            os.link(tmp_path, file_path)
        except FileExistsError:
            raise
        except OSError:
            # Filesystem without hard links
            if file_path.exists():
                raise FileExistsError(str(file_path))
            os.replace(tmp_path, file_path)


__all__ = [
    "FILE_CHUNK_SIZE",
    "FilesystemStore",
]
