"""
Collaborator interfaces

The store never looks these up globally: implementations are passed to the
store (or its factory) at construction time.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

from pydantic import BaseModel, Field

from catalog_resources.models.resource import Visibility


class Session(BaseModel):
    """Caller context of a store operation"""

    authenticated: bool = Field(default=False, description="Whether the caller is logged in")
    user_id: Optional[str] = Field(default=None, description="Caller user id")
    ip_address: Optional[str] = Field(default=None, description="Caller address")

    @classmethod
    def anonymous(cls) -> "Session":
        return cls(authenticated=False)


class AuthorizationService(ABC):
    """Per-record permission checks"""

    @abstractmethod
    def can_download(self, session: Session, record_id: int, visibility: Visibility) -> bool:
        """
        Check whether the caller may download resources of a tier

        Args:
            session: Caller context
            record_id: Internal record id
            visibility: Requested tier

        Returns:
            True if allowed
        """
        pass

    @abstractmethod
    def can_edit(self, session: Session, record_id: int) -> bool:
        """
        Check whether the caller may edit the record

        Args:
            session: Caller context
            record_id: Internal record id

        Returns:
            True if allowed
        """
        pass


class RecordIdResolver(ABC):
    """Maps a public record UUID to the internal record id"""

    @abstractmethod
    def resolve_record_id(self, record_uuid: str, approved: bool = True) -> int:
        """
        Resolve a record id

        Args:
            record_uuid: Public UUID
            approved: False to resolve the working copy

        Returns:
            Internal record id

        Raises:
            RecordNotFound: Unknown UUID
        """
        pass


class AttributeIndex(ABC):
    """Search index lookup used by the template layout"""

    @abstractmethod
    def resolve_external_identifier(self, record_uuid: str) -> Tuple[str, bool]:
        """
        Look up the indexed resource identifier of a record

        Args:
            record_uuid: Public UUID

        Returns:
            (resource identifier or "", whether the record is a working copy)
        """
        pass


__all__ = [
    "Session",
    "AuthorizationService",
    "RecordIdResolver",
    "AttributeIndex",
]
