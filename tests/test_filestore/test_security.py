"""
Access control tests
"""

import pytest

from catalog_resources.filestore import (
    AccessDenied,
    AccessGuard,
    InvalidResourceName,
    PathResolver,
    RecordNotFound,
    strip_record_prefix,
    validate_resource_name,
)
from catalog_resources.models import (
    DenialReason,
    FolderPrivilegeMode,
    StoreFolderConfig,
    Visibility,
)

from fakes import RECORD_ID, RECORD_UUID


@pytest.fixture
def guard(temp_dir, authorization, record_ids):
    return AccessGuard(authorization, record_ids, PathResolver(temp_dir))


class TestValidateResourceName:
    """Resource name validation"""

    @pytest.mark.parametrize("name", [
        "map.png",
        "maps/2024/map.png",
        "report v2 (final).pdf",
        "données.csv",
    ])
    def test_valid_names(self, name):
        assert validate_resource_name(name) == name

    @pytest.mark.parametrize("name", [
        "",
        "   ",
        "../secret.txt",
        "maps/../../secret.txt",
        "..",
        "/etc/passwd",
        "\\windows\\system32",
        "file:/etc/passwd",
        "map\x00.png",
        "map\n.png",
        "maps/",
        ".hidden.png",
        "maps/.hidden.png",
        ".cache/thumb.png",
    ])
    def test_invalid_names(self, name):
        with pytest.raises(InvalidResourceName) as exc_info:
            validate_resource_name(name)

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "VALIDATION_ERROR"


class TestStripRecordPrefix:

    def test_attachments_prefix(self):
        assert strip_record_prefix(RECORD_UUID, f"{RECORD_UUID}/attachments/map.png") == "map.png"

    def test_uuid_prefix(self):
        assert strip_record_prefix(RECORD_UUID, f"{RECORD_UUID}/maps/map.png") == "maps/map.png"

    def test_plain_name_unchanged(self):
        assert strip_record_prefix(RECORD_UUID, "map.png") == "map.png"

    def test_other_uuid_unchanged(self):
        assert strip_record_prefix(RECORD_UUID, "other/map.png") == "other/map.png"


class TestAuthorizeDownload:
    """Download checks"""

    def test_public_needs_no_grant(self, guard, authorization, anonymous):
        assert guard.authorize_download(anonymous, RECORD_UUID, Visibility.PUBLIC) == RECORD_ID
        assert not any(call[0] == "download" for call in authorization.calls)

    def test_private_with_grant(self, guard, authorization, reader):
        authorization.grant_download("reader", RECORD_ID)
        assert guard.authorize_download(reader, RECORD_UUID, Visibility.PRIVATE) == RECORD_ID

    def test_private_denied_for_authenticated(self, guard, reader):
        with pytest.raises(AccessDenied) as exc_info:
            guard.authorize_download(reader, RECORD_UUID, Visibility.PRIVATE)

        assert exc_info.value.reason == DenialReason.FORBIDDEN
        assert exc_info.value.status_code == 403
        assert not exc_info.value.requires_login

    def test_private_denied_for_anonymous(self, guard, anonymous):
        with pytest.raises(AccessDenied) as exc_info:
            guard.authorize_download(anonymous, RECORD_UUID, Visibility.PRIVATE)

        assert exc_info.value.reason == DenialReason.UNAUTHENTICATED
        assert exc_info.value.status_code == 401
        assert exc_info.value.requires_login

    def test_private_is_public_without_privilege_folders(
        self, temp_dir, authorization, record_ids, anonymous
    ):
        guard = AccessGuard(
            authorization,
            record_ids,
            PathResolver(
                temp_dir,
                StoreFolderConfig(folder_privileges_strategy=FolderPrivilegeMode.NONE)
            )
        )
        assert guard.authorize_download(anonymous, RECORD_UUID, Visibility.PRIVATE) == RECORD_ID

    def test_unknown_record(self, guard, anonymous):
        with pytest.raises(RecordNotFound) as exc_info:
            guard.authorize_download(anonymous, "unknown-uuid", Visibility.PUBLIC)

        assert exc_info.value.status_code == 404


class TestAuthorizeEdit:
    """Edit checks"""

    def test_editor_allowed(self, guard, authorization, editor):
        authorization.grant_edit("editor", RECORD_ID)
        assert guard.authorize_edit(editor, RECORD_UUID) == RECORD_ID
        assert guard.can_edit(editor, RECORD_ID)

    def test_reader_forbidden(self, guard, reader):
        with pytest.raises(AccessDenied) as exc_info:
            guard.authorize_edit(reader, RECORD_UUID)
        assert exc_info.value.reason == DenialReason.FORBIDDEN

    def test_anonymous_must_log_in(self, guard, anonymous):
        with pytest.raises(AccessDenied) as exc_info:
            guard.authorize_edit(anonymous, RECORD_UUID)
        assert exc_info.value.reason == DenialReason.UNAUTHENTICATED

    def test_can_edit_does_not_raise(self, guard, reader):
        assert guard.can_edit(reader, RECORD_ID) is False

    def test_resolve_has_no_permission_check(self, guard, authorization):
        assert guard.resolve(RECORD_UUID) == RECORD_ID
        assert authorization.calls == []
