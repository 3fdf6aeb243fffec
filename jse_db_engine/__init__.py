from .collection import Collection
from .config import DatabaseConfig
from .database import Database, open
from .errors import (
    CollectionNotFoundError,
    CorruptionError,
    InvalidArgumentError,
    JSEError,
    PoliteModeError,
    StorageIOError,
)

__version__ = "0.1.0"

__all__ = [
    "Collection",
    "CollectionNotFoundError",
    "CorruptionError",
    "Database",
    "DatabaseConfig",
    "InvalidArgumentError",
    "JSEError",
    "PoliteModeError",
    "StorageIOError",
    "open",
]
