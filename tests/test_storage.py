import os
import stat

import pytest

from jse_db_engine import CorruptionError, StorageIOError
from jse_db_engine.storage import NEW_FILE_MODE, FileStorage


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_write_keeps_existing_mode(tmp_path):
    path = tmp_path / "jse-main.json"
    path.write_text("[]", encoding="utf-8")
    os.chmod(path, 0o640)

    FileStorage(str(path)).write_records([{"name": "users", "index": 0, "keys": {}}])

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o640


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_new_file_follows_umask(tmp_path):
    path = tmp_path / "jse-main.json"
    FileStorage(str(path)).write_text("[]")
    assert stat.S_IMODE(os.stat(path).st_mode) == NEW_FILE_MODE


def test_write_leaves_no_temp_files(tmp_path):
    fs = FileStorage(str(tmp_path / "jse-main.json"))
    fs.write_text("[]")
    fs.write_text("[]")
    assert os.listdir(tmp_path) == ["jse-main.json"]


def test_read_invalid_utf8(tmp_path):
    path = tmp_path / "jse-main.json"
    path.write_bytes(b"\xff\xfe")
    fs = FileStorage(str(path))

    with pytest.raises(CorruptionError):
        fs.read_text()
    assert fs.read_text(errors="replace") == "\ufffd\ufffd"


def test_delete(tmp_path):
    fs = FileStorage(str(tmp_path / "jse-main.json"))
    fs.write_text("[]")

    assert fs.delete() is True
    assert fs.delete() is False
    with pytest.raises(StorageIOError):
        fs.delete(missing_ok=False)
