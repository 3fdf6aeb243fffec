from __future__ import annotations


class JSEError(Exception):
    """Base class for all jse_db_engine errors."""

    def __init__(self, message: str) -> None:
        super().__init__(f"[JSE] {message}")


class InvalidArgumentError(JSEError):
    """A required argument is missing or has the wrong type."""


class StorageIOError(JSEError):
    """The backing file could not be created, read, written or deleted."""


class CorruptionError(JSEError):
    """The backing file is not a JSON array of collection records."""


class PoliteModeError(JSEError):
    """Overwrite of an existing key refused because polite mode is on."""

    def __init__(self, database: str, collection: str, key: str) -> None:
        self.database = database
        self.collection = collection
        self.key = key
        super().__init__(
            f"Cannot overwrite key '{key}' in {database}.{collection}. "
            "This key/value combination already exists"
        )


class CollectionNotFoundError(JSEError):
    """The record backing a collection is no longer in the file."""

    def __init__(self, database: str, collection: str) -> None:
        self.database = database
        self.collection = collection
        super().__init__(f"Collection {database}.{collection} no longer exists")
