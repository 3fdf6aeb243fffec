from __future__ import annotations
import os
from dataclasses import dataclass

from .errors import InvalidArgumentError

FILE_PREFIX = "jse-"
FILE_SUFFIX = ".json"


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Read-only settings shared by a Database and every Collection it vends.

    persistent:       keep the file after close/exit (otherwise it is deleted)
    polite:           refuse to overwrite existing keys
    print_on_exit:    print the file before deleting it (non-persistent only)
    serialize_writes: run read-modify-write cycles one at a time
    """
    name: str
    path: str
    persistent: bool = True
    polite: bool = False
    print_on_exit: bool = False
    serialize_writes: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise InvalidArgumentError("Database name must be a non-empty string")
        if not isinstance(self.path, (str, os.PathLike)):
            raise InvalidArgumentError("Database path must be a string or path-like")
        object.__setattr__(self, "name", self.name.lower())
        object.__setattr__(self, "path", os.fspath(self.path))

    @property
    def file_path(self) -> str:
        return os.path.join(self.path, f"{FILE_PREFIX}{self.name}{FILE_SUFFIX}")
