"""
Access control

Authorization checks run before any filesystem access, and resource-name
validation that keeps names below their tier folder.
"""

import logging
import os

from catalog_resources.filestore.collaborators import (
    AuthorizationService,
    RecordIdResolver,
    Session,
)
from catalog_resources.filestore.errors import AccessDenied, InvalidResourceName
from catalog_resources.filestore.paths import PathResolver
from catalog_resources.models.resource import DenialReason, Visibility

logger = logging.getLogger(__name__)


FORBIDDEN_CHARS = ("\x00", "\n", "\r")


def validate_resource_name(resource_name: str) -> str:
    """
    Validate a resource name

    Rules:
    1. Not empty
    2. No parent-directory traversal
    3. Not absolute, not a file: URI
    4. No NUL or line breaks
    5. No hidden (dot-prefixed) folder or file names

    Args:
        resource_name: Name relative to the tier folder

    Returns:
        The name unchanged

    Raises:
        InvalidResourceName: The name is unsafe
    """
    if not resource_name or not resource_name.strip():
        raise InvalidResourceName(resource_name or "")

    if ".." in resource_name:
        raise InvalidResourceName(resource_name)

    if resource_name.startswith(("/", "\\", "file:/")) or os.path.isabs(resource_name):
        raise InvalidResourceName(resource_name)

    if any(char in resource_name for char in FORBIDDEN_CHARS):
        raise InvalidResourceName(resource_name)

    if resource_name.endswith(("/", os.sep)):
        raise InvalidResourceName(resource_name)

    # Listings skip dot entries; upload temp files live there
    parts = resource_name.replace(os.sep, "/").split("/")
    if any(part.startswith(".") for part in parts):
        raise InvalidResourceName(resource_name)

    return resource_name


def strip_record_prefix(record_uuid: str, resource_name: str) -> str:
    """
    Reduce '{uuid}/attachments/{name}' or '{uuid}/{name}' to '{name}'

    Links copied from a download URL carry the record prefix.
    """
    name = resource_name.replace(os.sep, "/")
    for prefix in (f"{record_uuid}/attachments/", f"{record_uuid}/"):
        if name.startswith(prefix):
            return name[len(prefix):]
    return resource_name


class AccessGuard:
    """
    Per-operation authorization

    Rules:
    1. Public tier: readable by anyone who can see the record
    2. Private tier: needs a download grant (only reachable with privilege folders)
    3. Any write: needs an edit grant
    """

    def __init__(
        self,
        authorization: AuthorizationService,
        record_ids: RecordIdResolver,
        paths: PathResolver
    ):
        self.authorization = authorization
        self.record_ids = record_ids
        self.paths = paths

    def resolve(self, record_uuid: str, approved: bool = True) -> int:
        """Record id of a UUID, without any permission check"""
        return self.record_ids.resolve_record_id(record_uuid, approved)

    def deny(self, session: Session) -> None:
        """
        Raise the denial matching the caller

        Raises:
            AccessDenied: UNAUTHENTICATED for anonymous callers, FORBIDDEN otherwise
        """
        if session.authenticated:
            raise AccessDenied(DenialReason.FORBIDDEN)
        raise AccessDenied(DenialReason.UNAUTHENTICATED)

    def authorize_download(
        self,
        session: Session,
        record_uuid: str,
        visibility: Visibility,
        approved: bool = True
    ) -> int:
        """
        Check download permission

        Args:
            session: Caller context
            record_uuid: Record UUID
            visibility: Requested tier
            approved: False for the working copy

        Returns:
            Record id

        Raises:
            RecordNotFound: Unknown UUID
            AccessDenied: Private tier without a download grant
        """
        record_id = self.resolve(record_uuid, approved)
        visibility = self.paths.coerce_visibility(visibility)

        if visibility == Visibility.PRIVATE:
            if not self.authorization.can_download(session, record_id, visibility):
                logger.debug(f"Download of private resources denied for metadata {record_id}")
                self.deny(session)

        return record_id

    def authorize_edit(self, session: Session, record_uuid: str, approved: bool = True) -> int:
        """
        Check edit permission

        Returns:
            Record id

        Raises:
            RecordNotFound: Unknown UUID
            AccessDenied: No edit grant
        """
        record_id = self.resolve(record_uuid, approved)

        if not self.authorization.can_edit(session, record_id):
            logger.debug(f"Edit denied for metadata {record_id}")
            self.deny(session)

        return record_id

    def can_edit(self, session: Session, record_id: int) -> bool:
        """Non-raising edit check"""
        return self.authorization.can_edit(session, record_id)


__all__ = [
    "FORBIDDEN_CHARS",
    "validate_resource_name",
    "strip_record_prefix",
    "AccessGuard",
]
