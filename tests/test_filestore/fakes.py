"""
In-memory collaborators for filestore tests
"""

from typing import Dict, Optional, Set, Tuple

from catalog_resources.filestore import (
    AttributeIndex,
    AuthorizationService,
    RecordIdResolver,
    RecordNotFound,
    Session,
)
from catalog_resources.models import Visibility

RECORD_UUID = "da165110-88fd-11da-a88f-000d939bc5d8"
RECORD_ID = 42
OTHER_UUID = "7ba8b1f0-0c31-4a9d-9b5e-2f0c3f1b7a11"
OTHER_ID = 250
DRAFT_UUID = "c0ffee00-1111-2222-3333-444455556666"
DRAFT_ID = 7


class FakeRecordIds(RecordIdResolver):
    """UUID lookup backed by a dict; working copies map to their own ids"""

    def __init__(self, records: Dict[str, int], drafts: Dict[str, int] = None):
        self.records = dict(records)
        self.drafts = dict(drafts or {})

    def resolve_record_id(self, record_uuid: str, approved: bool = True) -> int:
        table = self.records if approved else {**self.records, **self.drafts}
        if record_uuid not in table:
            raise RecordNotFound(record_uuid, approved)
        return table[record_uuid]


class FakeAuthorization(AuthorizationService):
    """Grants per (user id, record id); editors may also download"""

    def __init__(self):
        self.editable: Set[Tuple[Optional[str], int]] = set()
        self.downloadable: Set[Tuple[Optional[str], int]] = set()
        self.calls = []

    def grant_edit(self, user_id: str, *record_ids: int) -> None:
        self.editable.update((user_id, record_id) for record_id in record_ids)

    def grant_download(self, user_id: str, *record_ids: int) -> None:
        self.downloadable.update((user_id, record_id) for record_id in record_ids)

    def can_download(self, session: Session, record_id: int, visibility: Visibility) -> bool:
        self.calls.append(("download", record_id, visibility))
        key = (session.user_id, record_id)
        return key in self.downloadable or key in self.editable

    def can_edit(self, session: Session, record_id: int) -> bool:
        self.calls.append(("edit", record_id))
        return (session.user_id, record_id) in self.editable


class FakeAttributeIndex(AttributeIndex):
    """Index answers keyed by UUID"""

    def __init__(self, entries: Dict[str, Tuple[str, bool]] = None):
        self.entries = dict(entries or {})

    def resolve_external_identifier(self, record_uuid: str) -> Tuple[str, bool]:
        return self.entries.get(record_uuid, ("", False))


class BrokenAttributeIndex(AttributeIndex):
    """Index that is not reachable"""

    def resolve_external_identifier(self, record_uuid: str) -> Tuple[str, bool]:
        raise ConnectionError("index unavailable")

