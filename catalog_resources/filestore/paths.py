"""
Record directory layout

Maps a record id (and, for the template layout, its indexed attributes) plus a
visibility tier to a location under the data directory. Path arithmetic only:
nothing here touches the filesystem.

Bucketed layout:

    data_dir
     |-00000-00099
     |    |-42
     |    |    |-private
     |    |    |-public
     |    |        |--map.png
"""

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Optional

from catalog_resources.filestore.collaborators import AttributeIndex
from catalog_resources.filestore.errors import ConfigurationInconsistency
from catalog_resources.models.resource import (
    FolderPrivilegeMode,
    LayoutStrategy,
    RESOURCE_IDENTIFIER_PLACEHOLDER,
    StoreFolderConfig,
    UUID_PLACEHOLDER,
    Visibility,
)

logger = logging.getLogger(__name__)

GROUP_WIDTH = 3
DRAFT_SUFFIX = "-draft"


def check_record_id(record_id: int) -> int:
    """
    Reject ids that cannot name a record directory

    Raises:
        ValueError: Negative, boolean or non-integer id
    """
    if isinstance(record_id, bool) or not isinstance(record_id, int):
        raise ValueError(f"Invalid record id: {record_id!r}")
    if record_id < 0:
        raise ValueError(f"Invalid record id: {record_id}")
    return record_id


def group_folder(record_id: int) -> str:
    """
    Name of the hundred-record bucket holding a record

    42 -> "00000-00099", 250 -> "00200-00299"
    """
    group = str(check_record_id(record_id) // 100).zfill(GROUP_WIDTH)
    return f"{group}00-{group}99"


def split_resource_name(resource_name: str) -> PurePosixPath:
    """Resource name as a relative path; accepts '/' and the OS separator"""
    return PurePosixPath(resource_name.replace(os.sep, "/"))


class PathResolver:
    """
    Record directory resolver

    Bound to a data directory and a folder layout configuration. The attribute
    index is only consulted by the template layout.
    """

    def __init__(
        self,
        data_dir: Path,
        folders: Optional[StoreFolderConfig] = None,
        attribute_index: Optional[AttributeIndex] = None,
        backup_dir: Optional[Path] = None
    ):
        """
        Initialize the resolver

        Args:
            data_dir: Root of the record directories
            folders: Layout configuration (bucketed/default when omitted)
            attribute_index: Index lookup for the template layout
            backup_dir: Root of the removed-record backups
        """
        self.data_dir = Path(data_dir)
        self.folders = folders or StoreFolderConfig()
        self.attribute_index = attribute_index
        self.backup_dir = Path(backup_dir) if backup_dir else None

    @property
    def privilege_mode(self) -> FolderPrivilegeMode:
        return self.folders.folder_privileges_strategy

    @property
    def has_private_tier(self) -> bool:
        return self.privilege_mode == FolderPrivilegeMode.DEFAULT

    def coerce_visibility(self, visibility: Visibility) -> Visibility:
        """Without privilege folders every resource lives in the public tier"""
        if not self.has_private_tier and visibility == Visibility.PRIVATE:
            return Visibility.PUBLIC
        return visibility

    def record_directory(self, record_id: int, record_uuid: Optional[str] = None) -> Path:
        """
        Directory of a record

        Args:
            record_id: Internal record id
            record_uuid: Record UUID (required by the template layout)

        Returns:
            Record directory path

        Raises:
            ValueError: Invalid record id
            ConfigurationInconsistency: Template layout cannot be resolved
        """
        check_record_id(record_id)

        if self.folders.folder_structure_type == LayoutStrategy.BUCKETED:
            return self.data_dir / group_folder(record_id) / str(record_id)

        return self._template_directory(record_id, record_uuid)

    def _template_directory(self, record_id: int, record_uuid: Optional[str]) -> Path:
        if self.attribute_index is None:
            raise ConfigurationInconsistency(
                "Template folder structure configured without an attribute index",
                metadata_id=record_id
            )
        if not record_uuid:
            raise ConfigurationInconsistency(
                f"Template folder structure needs the UUID of metadata '{record_id}'",
                metadata_id=record_id
            )

        try:
            result = self.attribute_index.resolve_external_identifier(record_uuid)
        except Exception as e:
            raise ConfigurationInconsistency(
                f"Index lookup failed for metadata '{record_uuid}': {e}",
                metadata_id=record_id
            ) from e

        if not isinstance(result, (tuple, list)) or len(result) != 2:
            raise ConfigurationInconsistency(
                f"Malformed index lookup result for metadata '{record_uuid}': {result!r}",
                metadata_id=record_id
            )
        identifier, is_draft = result
        if identifier is not None and not isinstance(identifier, str):
            raise ConfigurationInconsistency(
                f"Malformed resource identifier for metadata '{record_uuid}': {identifier!r}",
                metadata_id=record_id
            )

        identifier = (identifier or "").strip()
        if identifier:
            folder = self.folders.folder_structure.replace(RESOURCE_IDENTIFIER_PLACEHOLDER, identifier)
        else:
            # No indexed identifier: the UUID stands in for every placeholder
            folder = self.folders.fallback_template.replace(RESOURCE_IDENTIFIER_PLACEHOLDER, record_uuid)
        folder = folder.replace(UUID_PLACEHOLDER, record_uuid).rstrip("/" + os.sep)

        if is_draft:
            folder += DRAFT_SUFFIX

        path = self.data_dir / folder
        self._ensure_inside_data_dir(path, record_id)
        return path

    def _ensure_inside_data_dir(self, path: Path, record_id: int) -> None:
        resolved = path.resolve()
        root = self.data_dir.resolve()
        if resolved == root:
            raise ConfigurationInconsistency(
                f"Template resolved to the data directory itself for metadata '{record_id}'",
                path=path,
                metadata_id=record_id
            )
        try:
            resolved.relative_to(root)
        except ValueError:
            raise ConfigurationInconsistency(
                f"Security violation: path outside data directory: {path}",
                path=path,
                metadata_id=record_id
            )

    def tier_directory(self, record_dir: Path, visibility: Visibility) -> Path:
        """
        Folder holding the resources of one tier

        Without privilege folders the record directory itself is returned.
        """
        if self.has_private_tier:
            return Path(record_dir) / visibility.value
        return Path(record_dir)

    def resource_subfolder(self, tier_dir: Path, resource_name: str) -> Path:
        """Folder a resource lives in, honouring subfolders in its name"""
        parent = split_resource_name(resource_name).parent
        if parent.parts:
            return Path(tier_dir).joinpath(*parent.parts)
        return Path(tier_dir)

    def resource_path(self, tier_dir: Path, resource_name: str) -> Path:
        name = split_resource_name(resource_name).name
        return self.resource_subfolder(tier_dir, resource_name) / name

    @staticmethod
    def relative_name(tier_dir: Path, file_path: Path) -> str:
        """Resource name of a file below a tier folder, '/' separated"""
        return "/".join(Path(file_path).relative_to(tier_dir).parts)

    def removed_directory(self, record_id: int) -> Path:
        """
        Backup bucket of a removed record

        The record folder itself is appended by the caller.
        """
        if self.backup_dir is None:
            raise ConfigurationInconsistency(
                "No backup directory configured",
                metadata_id=record_id
            )
        return self.backup_dir / group_folder(record_id)


__all__ = [
    "GROUP_WIDTH",
    "DRAFT_SUFFIX",
    "check_record_id",
    "group_folder",
    "split_resource_name",
    "PathResolver",
]
