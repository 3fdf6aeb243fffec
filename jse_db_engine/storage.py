from __future__ import annotations
import logging
import os
import tempfile
from typing import Any, Dict, List

from .errors import CorruptionError, StorageIOError
from .utils import dump_records, parse_records

logger = logging.getLogger(__name__)

# Mode for files this module creates, as open() would under the current umask
_UMASK = os.umask(0)
os.umask(_UMASK)
NEW_FILE_MODE = 0o666 & ~_UMASK


class FileStorage:
    """
    Whole-file I/O for one database file. Every call touches the complete
    content; there are no partial reads or writes.
    """
    def __init__(self, path: str) -> None:
        self.path = path

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def read_text(self, errors: str = "strict") -> str:
        try:
            with open(self.path, "r", encoding="utf-8", errors=errors) as f:
                return f.read()
        except UnicodeDecodeError as exc:
            raise CorruptionError(f"{self.path} is not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise StorageIOError(f"Cannot read {self.path}: {exc}") from exc

    def write_text(self, text: str) -> None:
        """
        Write into a temp file next to the target and atomically replace it.
        The permission bits of an existing file are kept; hardlinks to the old
        file are not (the path points at a new inode afterwards).
        """
        directory = os.path.dirname(self.path) or "."
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".jse-", suffix=".tmp", dir=directory)
        except OSError as exc:
            raise StorageIOError(f"Cannot write {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                os.chmod(tmp_path, self._target_mode())
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            self.replace_file(tmp_path)
        except OSError as exc:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise StorageIOError(f"Cannot write {self.path}: {exc}") from exc
        logger.debug("wrote %d chars to %s", len(text), self.path)

    def _target_mode(self) -> int:
        try:
            return os.stat(self.path).st_mode & 0o7777
        except FileNotFoundError:
            return NEW_FILE_MODE

    def replace_file(self, tmp_path: str) -> None:
        os.replace(tmp_path, self.path)

    def delete(self, missing_ok: bool = True) -> bool:
        """
        Remove the file. Returns False if it was already gone and missing_ok is set.
        """
        try:
            os.unlink(self.path)
        except FileNotFoundError as exc:
            if missing_ok:
                return False
            raise StorageIOError(f"Cannot delete {self.path}: file does not exist") from exc
        except OSError as exc:
            raise StorageIOError(f"Cannot delete {self.path}: {exc}") from exc
        logger.debug("deleted %s", self.path)
        return True

    def read_records(self) -> List[Dict[str, Any]]:
        return parse_records(self.read_text(), self.path)

    def write_records(self, records: List[Dict[str, Any]]) -> None:
        self.write_text(dump_records(records))
