"""
Attachment store models

Enumerations and value objects shared by the path resolver, the access guard
and the filesystem store.
"""

import os
import platform
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _get_default_data_dir() -> Path:
    """
    Get the default record data directory (cross-platform)

    Priority:
    1. CR_DATA_DIR environment variable
    2. Per-user data directory

    Returns:
        Default data directory path
    """
    env_dir = os.getenv("CR_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    system = platform.system()

    if system == "Darwin":  # macOS
        base = Path.home() / "Library" / "Application Support" / "catalog-resources"
    elif system == "Windows":
        appdata = os.getenv("APPDATA", "")
        base = Path(appdata) / "catalog-resources" if appdata else Path.home() / ".catalog-resources"
    else:  # Linux and others
        xdg_data = os.getenv("XDG_DATA_HOME")
        base = Path(xdg_data) / "catalog-resources" if xdg_data else Path.home() / ".local" / "share" / "catalog-resources"

    return base / "metadata_data"


class Visibility(str, Enum):
    """Visibility tier of a resource; the value is the tier folder name"""

    PUBLIC = "public"
    PRIVATE = "private"


class LayoutStrategy(str, Enum):
    """How a record directory is derived"""

    BUCKETED = "bucketed"  # <group>00-<group>99/<record_id>
    TEMPLATE = "template"  # configured template keyed by indexed attributes


class FolderPrivilegeMode(str, Enum):
    """Whether the record directory is split in public/private tiers"""

    DEFAULT = "default"
    NONE = "none"


class DenialReason(str, Enum):
    """Why an operation was refused"""

    UNAUTHENTICATED = "unauthenticated"  # caller must log in
    FORBIDDEN = "forbidden"              # logged in, not allowed


RESOURCE_IDENTIFIER_PLACEHOLDER = "{index:resourceIdentifier}"
UUID_PLACEHOLDER = "{index:uuid}"


def build_resource_url(
    node_url: str,
    metadata_uuid: str,
    filename: Optional[str] = None,
    approved: bool = True
) -> str:
    """
    Build the download URL of a resource (or of the container when filename is None)

    Args:
        node_url: Node base URL, ending with "/"
        metadata_uuid: UUID of the owning record
        filename: Relative resource name
        approved: False for working copies

    Returns:
        Absolute URL
    """
    url = f"{node_url}api/records/{metadata_uuid}/attachments"
    if filename is not None:
        url += "/" + quote(filename)
    if not approved:
        url += "?approved=false"
    return url


class ResourceDescriptor(BaseModel):
    """Description of one stored resource, derived from filesystem metadata"""

    metadata_uuid: str = Field(..., description="UUID of the owning record")
    metadata_id: int = Field(..., ge=0, description="Internal id of the owning record")
    filename: str = Field(
        ...,
        min_length=1,
        description="Resource name relative to its tier folder ('/' separated)"
    )
    url: str = Field(..., description="Download URL")
    visibility: Visibility = Field(..., description="Visibility tier")
    size: int = Field(default=0, ge=0, description="Size in bytes")
    last_modification: datetime = Field(..., description="Last modification time")
    approved: bool = Field(default=True, description="False for working copies")

    def __str__(self) -> str:
        """String form: visibility:filename"""
        return f"{self.visibility.value}:{self.filename}"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "metadata_uuid": "da165110-88fd-11da-a88f-000d939bc5d8",
                "metadata_id": 42,
                "filename": "map.png",
                "url": "http://localhost:8080/catalog/api/records/da165110-88fd-11da-a88f-000d939bc5d8/attachments/map.png",
                "visibility": "public",
                "size": 204800,
                "last_modification": "2026-02-06T15:30:00",
                "approved": True
            }
        }
    )


class ResourceContainerDescriptor(BaseModel):
    """Marks the existence of a record's resource directory"""

    metadata_uuid: str = Field(..., description="UUID of the owning record")
    metadata_id: int = Field(..., ge=0, description="Internal id of the owning record")
    container_name: str = Field(..., description="Container name (the record UUID)")
    url: str = Field(..., description="Attachment listing URL")
    approved: bool = Field(default=True)
    path: Path = Field(..., description="Record directory")


class DeleteOutcome(BaseModel):
    """Result of a best-effort delete"""

    success: bool
    message: str
    metadata_id: int
    resource_name: Optional[str] = None
    error: Optional[str] = None

    def __str__(self) -> str:
        return self.message


class StoreFolderConfig(BaseModel):
    """Folder layout configuration"""

    folder_structure_type: LayoutStrategy = Field(
        default=LayoutStrategy.BUCKETED,
        description="Record directory derivation"
    )
    folder_structure: str = Field(
        default="",
        description="Template, e.g. 'res/{index:resourceIdentifier}'"
    )
    folder_structure_fallback: Optional[str] = Field(
        default=None,
        description="Template used when the record has no resource identifier"
    )
    folder_privileges_strategy: FolderPrivilegeMode = Field(
        default=FolderPrivilegeMode.DEFAULT,
        description="Public/private tier folders or a flat record directory"
    )

    @model_validator(mode="after")
    def check_template(self) -> "StoreFolderConfig":
        """A template layout needs a template with at least one placeholder"""
        if self.folder_structure_type == LayoutStrategy.TEMPLATE:
            if "{index:" not in self.folder_structure:
                raise ValueError(
                    "folder_structure must contain an {index:...} placeholder "
                    "when folder_structure_type is 'template'"
                )
        return self

    @property
    def fallback_template(self) -> str:
        return self.folder_structure_fallback or self.folder_structure


class FileStoreConfig(BaseModel):
    """Filesystem store configuration"""

    data_dir: Path = Field(
        default_factory=lambda: _get_default_data_dir(),
        description="Root of the record directories"
    )
    backup_dir: Optional[Path] = Field(
        default=None,
        description="Root of the removed-record backups"
    )
    node_url: str = Field(
        default="http://localhost:8080/catalog/",
        description="Base URL used in download links"
    )
    folders: StoreFolderConfig = Field(default_factory=StoreFolderConfig)

    @field_validator("node_url")
    @classmethod
    def normalise_node_url(cls, v: str) -> str:
        return v if v.endswith("/") else v + "/"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "data_dir": "~/.local/share/catalog-resources/metadata_data",
                "backup_dir": "~/.local/share/catalog-resources/removed",
                "node_url": "http://localhost:8080/catalog/",
                "folders": {
                    "folder_structure_type": "bucketed",
                    "folder_privileges_strategy": "default"
                }
            }
        }
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
