"""
FilesystemStore factory tests
"""

import pytest
import yaml

from catalog_resources.filestore import (
    FilesystemStore,
    create_file_store,
    get_file_store,
    reset_file_store,
)
from catalog_resources.models import FolderPrivilegeMode


@pytest.fixture(autouse=True)
def clean_global_store():
    reset_file_store()
    yield
    reset_file_store()


class TestCreateFileStore:

    def test_from_explicit_config(self, store_config, authorization, record_ids, data_dir):
        store = create_file_store(store_config, authorization, record_ids)

        assert isinstance(store, FilesystemStore)
        assert store.data_dir == data_dir

    def test_from_global_config(self, temp_dir, authorization, record_ids, monkeypatch):
        import config as config_module
        from config.config import ConfigManager

        settings = temp_dir / "settings.yaml"
        settings.write_text(yaml.dump({
            "storage": {
                "data_dir": str(temp_dir / "from-yaml"),
                "folder_privileges_strategy": "none"
            }
        }))
        monkeypatch.setattr(config_module.config, "_config_manager", ConfigManager(str(settings)))

        store = create_file_store(None, authorization, record_ids)

        assert store.data_dir == temp_dir / "from-yaml"
        assert store.paths.privilege_mode == FolderPrivilegeMode.NONE


class TestGlobalFileStore:

    def test_singleton(self, store_config, authorization, record_ids):
        store1 = get_file_store(authorization, record_ids, config=store_config)
        store2 = get_file_store(authorization, record_ids, config=store_config)
        assert store1 is store2

    def test_force_new(self, store_config, authorization, record_ids):
        store1 = get_file_store(authorization, record_ids, config=store_config)
        store2 = get_file_store(authorization, record_ids, config=store_config, force_new=True)
        assert store1 is not store2

    def test_reset(self, store_config, authorization, record_ids):
        store1 = get_file_store(authorization, record_ids, config=store_config)
        reset_file_store()
        store2 = get_file_store(authorization, record_ids, config=store_config)
        assert store1 is not store2
