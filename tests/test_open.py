import asyncio

import pytest

import jse_db_engine as jse
from jse_db_engine import CorruptionError, Database, StorageIOError


@pytest.mark.asyncio
async def test_new_database_writes_empty_array(tmp_path):
    db = Database("Main", str(tmp_path))
    await db.ready()

    assert db.name == "main"
    assert db.is_ready
    assert db.file.endswith("jse-main.json")
    assert (tmp_path / "jse-main.json").read_text(encoding="utf-8") == "[]"
    assert db.collections == []


@pytest.mark.asyncio
async def test_empty_file_is_reinitialized(tmp_path):
    (tmp_path / "jse-main.json").write_text("", encoding="utf-8")
    db = Database("main", str(tmp_path))
    await db.ready()
    assert (tmp_path / "jse-main.json").read_text(encoding="utf-8") == "[]"


@pytest.mark.asyncio
async def test_open_returns_database_before_it_is_ready(tmp_path):
    db = jse.open("Main", str(tmp_path))
    assert isinstance(db, Database)
    assert not db.is_ready

    users = await db.create_collection("users")
    assert db.is_ready
    assert users.name == "users"


@pytest.mark.asyncio
async def test_reopen_loads_existing_collections(tmp_path):
    db = Database("main", str(tmp_path))
    users = await db.create_collection("users")
    await users.set("alice", {"age": 30})
    await db.create_collection("orders")
    await db.close()

    db2 = Database("main", str(tmp_path))
    await db2.ready()
    assert db2.collections == ["users", "orders"]
    assert await db2.has_collection("orders")

    users2 = await db2.get_collection("users")
    assert users2 is not None
    # Stub handles load lazily on first use
    assert users2.contents is None
    assert await users2.get("alice") == {"age": 30}


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [
    "{not json",
    '{"name": "users"}',
    '[1, 2]',
    '[{"name": 5, "index": 0, "keys": {}}]',
    '[{"name": "users", "index": 0, "keys": []}]',
])
async def test_corrupt_file_fails_ready(tmp_path, content):
    (tmp_path / "jse-main.json").write_text(content, encoding="utf-8")
    db = Database("main", str(tmp_path))

    with pytest.raises(CorruptionError):
        await db.ready()
    # Later operations report the same failure
    with pytest.raises(CorruptionError):
        await db.create_collection("users")


@pytest.mark.asyncio
async def test_missing_directory_fails_ready(tmp_path):
    db = Database("main", str(tmp_path / "nope" / "deeper"))
    with pytest.raises(StorageIOError):
        await db.ready()


@pytest.mark.asyncio
async def test_progress_events(tmp_path):
    events = []

    def collect(evt):
        events.append(evt.get("phase"))

    db = Database("main", str(tmp_path), persistent=False, on_progress=collect)
    await db.ready()
    assert events == ["open.start", "open.load", "open.done"]

    events.clear()
    await db.close()
    assert events == ["close.start", "close.done"]


@pytest.mark.asyncio
async def test_broken_progress_callback_is_ignored(tmp_path):
    def boom(evt):
        raise RuntimeError("callback failure")

    db = Database("main", str(tmp_path), on_progress=boom)
    await db.ready()
    assert db.is_ready


def test_ready_outside_running_loop(tmp_path):
    # Built without a loop: initialization starts on the first ready()
    db = Database("main", str(tmp_path), persistent=False)
    assert not (tmp_path / "jse-main.json").exists()

    async def scenario():
        await db.ready()
        assert (tmp_path / "jse-main.json").exists()
        await db.close()

    asyncio.run(scenario())
    assert not (tmp_path / "jse-main.json").exists()


@pytest.mark.asyncio
async def test_invalid_utf8_fails_ready(tmp_path):
    (tmp_path / "jse-main.json").write_bytes(b"[\xff\xfe]")
    db = Database("main", str(tmp_path))

    with pytest.raises(CorruptionError):
        await db.ready()


@pytest.mark.asyncio
async def test_mixed_case_records_are_reachable(tmp_path, read_db):
    (tmp_path / "jse-main.json").write_text(
        '[{"name": "Users", "index": 0, "keys": {"a": 1}}]', encoding="utf-8"
    )
    db = Database("main", str(tmp_path))
    await db.ready()

    assert db.collections == ["users"]
    users = await db.get_collection("USERS")
    assert await users.get("a") == 1

    again = await db.create_collection("users")
    await again.set("b", 2)
    assert read_db("main") == [{"name": "Users", "index": 0, "keys": {"a": 1, "b": 2}}]
