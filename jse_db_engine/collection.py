from __future__ import annotations
import asyncio
import contextlib
import logging
from typing import Any, Dict, Iterable, List, Optional

from .config import DatabaseConfig
from .errors import CollectionNotFoundError, InvalidArgumentError, PoliteModeError
from .storage import FileStorage
from .utils import find_record

logger = logging.getLogger(__name__)


class Collection:
    """
    One named record inside the shared database file.

    The handle caches the whole record array from its last pull, plus a
    reference to its own entry in it. Every operation except self_destruct()
    pulls the file again before acting and writes the complete array back
    after a mutation. Without serialize_writes, concurrent un-awaited calls
    race at file granularity: the last full write wins.
    """
    def __init__(
        self,
        config: DatabaseConfig,
        name: str,
        *,
        write_lock: Optional[asyncio.Lock] = None,
    ) -> None:
        if not isinstance(config, DatabaseConfig):
            raise InvalidArgumentError("You must provide a DatabaseConfig to create a Collection")
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError("Collection name must be a non-empty string")
        self._config = config
        self.name = name.lower()
        self._fs = FileStorage(config.file_path)
        self._lock = write_lock
        self.contents: Optional[List[Dict[str, Any]]] = None
        self.self_entry: Optional[Dict[str, Any]] = None

    def __repr__(self) -> str:
        return f"<Collection {self._config.name}.{self.name}>"

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def file(self) -> str:
        return self._fs.path

    def _guard(self):
        return self._lock if self._lock is not None else contextlib.nullcontext()

    # ----- File sync -----

    async def pull_file(self) -> List[Dict[str, Any]]:
        """
        Re-read the whole file and re-point self_entry into the fresh array.
        """
        contents = await asyncio.to_thread(self._fs.read_records)
        self.contents = contents
        self.self_entry = find_record(contents, self.name)
        logger.debug("pulled %s (%d records)", self.file, len(contents))
        return contents

    async def update_file(self, contents: List[Dict[str, Any]]) -> None:
        await asyncio.to_thread(self._fs.write_records, contents)

    async def _pull_entry(self) -> tuple[List[Dict[str, Any]], Dict[str, Any]]:
        contents = await self.pull_file()
        entry = self.self_entry
        if entry is None:
            raise CollectionNotFoundError(self._config.name, self.name)
        return contents, entry

    # ----- Lifecycle -----

    async def init(self) -> None:
        """
        Make sure the file holds a record for this collection, appending
        {name, index, keys: {}} if it does not.
        """
        async with self._guard():
            contents = await self.pull_file()
            if self.self_entry is None:
                entry = {"name": self.name, "index": len(contents), "keys": {}}
                contents.append(entry)
                await self.update_file(contents)
                self.self_entry = entry
                logger.debug("created collection %s.%s", self._config.name, self.name)

    async def self_destruct(self, refresh: bool = False) -> None:
        """
        Remove this collection's record from the cached array and write it back.

        Unless refresh is set the cache is NOT pulled first (only loaded if
        this handle never pulled), so changes made by other handles since the
        last pull are overwritten.
        """
        async with self._guard():
            if refresh or self.contents is None:
                await self.pull_file()
            contents = self.contents
            entry = self.self_entry
            for pos, rec in enumerate(contents):
                if rec is entry:
                    del contents[pos]
                    break
            else:
                logger.debug("%s.%s has no record to remove", self._config.name, self.name)
                return
            self.self_entry = None
            await self.update_file(contents)

    # ----- Key access -----

    async def get(self, key: str) -> Any:
        """Return the value stored under key, or None if absent."""
        async with self._guard():
            _, entry = await self._pull_entry()
            return entry["keys"].get(key)

    async def has(self, key: str) -> bool:
        async with self._guard():
            _, entry = await self._pull_entry()
            return key in entry["keys"]

    async def keys(self) -> List[str]:
        async with self._guard():
            _, entry = await self._pull_entry()
            return list(entry["keys"])

    async def items(self) -> Dict[str, Any]:
        async with self._guard():
            _, entry = await self._pull_entry()
            return dict(entry["keys"])

    async def set(self, key: str, value: Any) -> Any:
        """
        Store value under key and return it. In polite mode an existing key
        raises PoliteModeError and nothing is written.
        """
        if not isinstance(key, str):
            raise InvalidArgumentError(f"Keys must be strings, got {type(key).__name__}")
        async with self._guard():
            contents, entry = await self._pull_entry()
            keys = entry["keys"]
            if key in keys and self._config.polite:
                raise PoliteModeError(self._config.name, self.name, key)
            keys[key] = value
            await self.update_file(contents)
            return keys[key]

    async def delete_one(self, key: str) -> List[Any]:
        """
        Remove key. Returns [old_value], or [] if the key was absent
        (in which case the file is not rewritten).
        """
        async with self._guard():
            contents, entry = await self._pull_entry()
            keys = entry["keys"]
            if key not in keys:
                return []
            val = keys.pop(key)
            await self.update_file(contents)
            return [val]

    async def delete_many(self, keys: Iterable[str]) -> List[Any]:
        """
        Remove every key in keys with a single write. Returns the removed
        values in input order; absent keys are skipped.
        """
        if isinstance(keys, str):
            raise InvalidArgumentError("delete_many() expects an iterable of keys; use delete_one() for a single key")
        wanted = list(keys)
        async with self._guard():
            contents, entry = await self._pull_entry()
            stored = entry["keys"]
            deleted: List[Any] = []
            for k in wanted:
                if k in stored:
                    deleted.append(stored.pop(k))
            await self.update_file(contents)
            return deleted

    async def delete(self, key: str | List[str] | tuple) -> List[Any]:
        if isinstance(key, str):
            return await self.delete_one(key)
        if isinstance(key, (list, tuple)):
            return await self.delete_many(key)
        raise InvalidArgumentError(f"delete() expects a key or a list of keys, got {type(key).__name__}")
