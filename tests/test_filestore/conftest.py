"""
Filestore test configuration

Fixtures and in-memory collaborators
"""

import pytest
import tempfile
from pathlib import Path

from catalog_resources.filestore import FilesystemStore, Session
from catalog_resources.models import (
    FileStoreConfig,
    FolderPrivilegeMode,
    LayoutStrategy,
    StoreFolderConfig,
)

from fakes import (
    DRAFT_ID,
    DRAFT_UUID,
    FakeAttributeIndex,
    FakeAuthorization,
    FakeRecordIds,
    OTHER_ID,
    OTHER_UUID,
    RECORD_ID,
    RECORD_UUID,
)


@pytest.fixture
def temp_dir():
    """Temporary directory fixture"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def data_dir(temp_dir):
    return temp_dir / "data"


@pytest.fixture
def record_ids():
    return FakeRecordIds(
        {RECORD_UUID: RECORD_ID, OTHER_UUID: OTHER_ID},
        drafts={DRAFT_UUID: DRAFT_ID}
    )


@pytest.fixture
def authorization():
    return FakeAuthorization()


@pytest.fixture
def editor_authorization(authorization):
    """Authorization granting the editor edit on every known record"""
    authorization.grant_edit("editor", RECORD_ID, OTHER_ID, DRAFT_ID)
    return authorization


@pytest.fixture
def editor():
    return Session(authenticated=True, user_id="editor")


@pytest.fixture
def reader():
    return Session(authenticated=True, user_id="reader")


@pytest.fixture
def anonymous():
    return Session.anonymous()


@pytest.fixture
def store_config(temp_dir, data_dir):
    return FileStoreConfig(
        data_dir=data_dir,
        backup_dir=temp_dir / "removed",
        node_url="http://localhost:8080/catalog"
    )


@pytest.fixture
def file_store(store_config, editor_authorization, record_ids):
    """Bucketed store with privilege folders"""
    return FilesystemStore(store_config, editor_authorization, record_ids)


@pytest.fixture
def flat_store(data_dir, editor_authorization, record_ids):
    """Bucketed store without privilege folders"""
    config = FileStoreConfig(
        data_dir=data_dir,
        folders=StoreFolderConfig(folder_privileges_strategy=FolderPrivilegeMode.NONE)
    )
    return FilesystemStore(config, editor_authorization, record_ids)


@pytest.fixture
def attribute_index():
    return FakeAttributeIndex({RECORD_UUID: ("ABC-1", False)})


@pytest.fixture
def template_store(data_dir, editor_authorization, record_ids, attribute_index):
    """Template store keyed by the indexed resource identifier"""
    config = FileStoreConfig(
        data_dir=data_dir,
        folders=StoreFolderConfig(
            folder_structure_type=LayoutStrategy.TEMPLATE,
            folder_structure="res/{index:resourceIdentifier}",
            folder_structure_fallback="uuid/{index:uuid}"
        )
    )
    return FilesystemStore(config, editor_authorization, record_ids, attribute_index)
