from __future__ import annotations

from pathlib import Path

import pytest

from cassandra_lifecycle.core.exceptions import EnvironmentPreparationError
from cassandra_lifecycle.core.lifecycle import clean_dirs, delete_dir
from cassandra_lifecycle.core.lifecycle import cleanup as cleanup_module
from cassandra_lifecycle.core.server import DatabaseDescriptor

pytestmark = pytest.mark.fast


def _populate(directory: Path) -> None:
    (directory / "ks" / "table").mkdir(parents=True)
    (directory / "ks" / "table" / "sstable-1-Data.db").write_bytes(b"\0" * 16)


def test_clean_dirs_removes_commitlog_and_every_data_dir(cassandra_yaml: Path) -> None:
    descriptor = DatabaseDescriptor.from_file(cassandra_yaml)
    for location in (descriptor.commitlog_directory, *descriptor.all_data_file_locations()):
        _populate(location)

    clean_dirs(descriptor)

    assert not descriptor.commitlog_directory.exists()
    for location in descriptor.all_data_file_locations():
        assert not location.exists()


def test_clean_dirs_tolerates_missing_dirs(cassandra_yaml: Path) -> None:
    descriptor = DatabaseDescriptor.from_file(cassandra_yaml)

    clean_dirs(descriptor)

    assert not descriptor.commitlog_directory.exists()


def test_delete_dir_removes_plain_file(tmp_path: Path) -> None:
    target = tmp_path / "commitlog"
    target.write_text("stray", encoding="utf-8")

    delete_dir(target)

    assert not target.exists()


def test_delete_dir_failure_is_a_preparation_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "data"
    _populate(target)

    def _refuse(path, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(cleanup_module.shutil, "rmtree", _refuse)

    with pytest.raises(EnvironmentPreparationError) as excinfo:
        delete_dir(target)

    assert "Failed to delete cassandra dir" in str(excinfo.value)
    assert excinfo.value.context["path"] == str(target)
    assert isinstance(excinfo.value.__cause__, PermissionError)


def test_delete_dir_logs_each_directory(tmp_path: Path, caplog_info: pytest.LogCaptureFixture) -> None:
    delete_dir(tmp_path / "gone")

    assert f"Deleting directory: {tmp_path / 'gone'}" in caplog_info.text
