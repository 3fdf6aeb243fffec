from __future__ import annotations
import asyncio
import atexit
import contextlib
import logging
from typing import Any, Callable, Dict, List, Optional

from rich.console import Console

from .collection import Collection
from .config import DatabaseConfig
from .errors import InvalidArgumentError, StorageIOError
from .progress import Progress, ProgressCallback
from .storage import FileStorage
from .utils import EMPTY_DATABASE

logger = logging.getLogger(__name__)


class Database:
    """
    A JSON file holding named collections of key/value pairs.

    The constructor only records configuration and schedules initialization;
    await ready() (or use `async with`) before relying on the file. Every
    collection operation waits for readiness on its own.

    Cleanup policy: when persistent is False the file is deleted by close(),
    or by an atexit hook if close() was never called. With print_on_exit the
    file is printed to stdout first.
    """
    def __init__(
        self,
        name: str,
        path: str,
        persistent: bool = True,
        polite: bool = False,
        print_on_exit: bool = False,
        *,
        serialize_writes: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self._config = DatabaseConfig(
            name=name,
            path=path,
            persistent=persistent,
            polite=polite,
            print_on_exit=print_on_exit,
            serialize_writes=serialize_writes,
        )
        self._fs = FileStorage(self._config.file_path)
        self._progress = Progress(on_progress)
        self._collections: Dict[str, Collection] = {}
        self._write_lock = asyncio.Lock() if serialize_writes else None
        self._init_task: Optional[asyncio.Future] = None
        self._is_ready = False
        self._closed = False

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet: initialization starts on the first ready()
            pass
        else:
            self._init_task = asyncio.ensure_future(self._open())

        if not persistent:
            # Persistent databases have nothing to clean up at exit
            atexit.register(self._cleanup_at_exit)

    def __repr__(self) -> str:
        return f"<Database {self.name} at {self.file}>"

    async def __aenter__(self) -> "Database":
        await self.ready()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ----- Properties -----

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def path(self) -> str:
        return self._config.path

    @property
    def file(self) -> str:
        return self._config.file_path

    @property
    def persistent(self) -> bool:
        return self._config.persistent

    @property
    def polite(self) -> bool:
        return self._config.polite

    @property
    def print_on_exit(self) -> bool:
        return self._config.print_on_exit

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def collections(self) -> List[str]:
        return list(self._collections)

    # ----- Initialization -----

    async def ready(self) -> None:
        """
        Wait until the file exists and existing collections are tracked.
        Raises StorageIOError or CorruptionError if that failed.
        """
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._open())
        await self._init_task

    async def _open(self) -> None:
        """
        Create the file with an empty array if it is missing or empty,
        otherwise load it and track one lazy Collection per record.
        """
        self._progress.emit("open.start", 0, self.file)
        records = await asyncio.to_thread(self._load_or_create)
        self._progress.emit("open.load", 50, f"{len(records)} collections")
        for rec in records:
            name = rec["name"].lower()
            if name not in self._collections:
                self._collections[name] = self._new_collection(name)
        self._is_ready = True
        self._progress.emit("open.done", 100)
        logger.info("opened database %s (%d collections)", self.file, len(records))

    def _load_or_create(self) -> List[Dict[str, Any]]:
        if not self._fs.exists() or self._fs.read_text() == "":
            self._fs.write_text(EMPTY_DATABASE)
            return []
        return self._fs.read_records()

    def _new_collection(self, name: str) -> Collection:
        return Collection(self._config, name, write_lock=self._write_lock)

    @staticmethod
    def _fold(name: str) -> str:
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError("Collection name must be a non-empty string")
        return name.lower()

    # ----- Collections -----

    async def create_collection(self, name: str) -> Collection:
        """
        Return the collection called name (case-insensitive), adding its
        record to the file if it is not there yet.
        """
        await self.ready()
        name = self._fold(name)
        coll = self._collections.get(name)
        if coll is None:
            coll = self._new_collection(name)
            self._collections[name] = coll
        await coll.init()
        return coll

    async def get_collection(self, name: str) -> Optional[Collection]:
        await self.ready()
        return self._collections.get(self._fold(name))

    async def has_collection(self, name: str) -> bool:
        return (await self.get_collection(name)) is not None

    async def drop_collection(self, name: str) -> None:
        """
        Remove a collection's record from the file and stop tracking it.
        Waits for readiness first; unknown names are ignored.
        """
        await self.ready()
        name = self._fold(name)
        coll = self._collections.get(name)
        if coll is None:
            return
        await coll.self_destruct(refresh=True)
        self._collections.pop(name, None)
        logger.debug("dropped collection %s.%s", self.name, name)

    def for_each_collection(self, visitor: Callable[[Collection], Any]) -> None:
        for coll in list(self._collections.values()):
            visitor(coll)

    async def export(self) -> List[Dict[str, Any]]:
        """Fresh parse of the whole file."""
        await self.ready()
        return await asyncio.to_thread(self._fs.read_records)

    # ----- Shutdown -----

    async def close(self) -> None:
        """
        Apply the cleanup policy once. Safe to call repeatedly and never raises.
        """
        if self._closed:
            return
        self._closed = True
        atexit.unregister(self._cleanup_at_exit)
        if self._init_task is not None and not self._init_task.done():
            with contextlib.suppress(Exception):
                await self._init_task
        self._progress.emit("close.start", 0, self.file)
        await asyncio.to_thread(self._cleanup)
        self._progress.emit("close.done", 100)
        logger.info("closed database %s", self.file)

    def _cleanup_at_exit(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cleanup()

    def _cleanup(self) -> None:
        if self._config.persistent:
            return
        if self._config.print_on_exit:
            try:
                text = self._fs.read_text(errors="replace")
                console = Console()
                console.print("[JSE] Printing database file...", markup=False, highlight=False)
                console.out(text, highlight=False)
            except Exception as exc:
                logger.warning("print on exit skipped: %s", exc)
        try:
            self._fs.delete(missing_ok=True)
        except StorageIOError as exc:
            logger.warning("could not remove non-persistent database: %s", exc)


def open(
    name: str,
    path: str,
    persistent: bool = True,
    polite: bool = False,
    print_on_exit: bool = False,
    **kwargs: Any,
) -> Database:
    """
    Construct a Database and start initializing it. The result is not ready
    yet: await db.ready() or any collection operation.
    """
    return Database(name, path, persistent, polite, print_on_exit, **kwargs)
