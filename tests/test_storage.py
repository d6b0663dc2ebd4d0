import pytest

from coupure.db import make_engine, make_sessionmaker
from coupure.storage import MemoryStorage, SqlStorage


@pytest.fixture
async def sql_storage(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    yield SqlStorage(make_sessionmaker(engine))
    await engine.dispose()


async def test_sql_storage_get_missing_key(sql_storage):
    assert await sql_storage.get("outages_data") is None


async def test_sql_storage_set_overwrites(sql_storage):
    await sql_storage.set("outages_data", "[]")
    await sql_storage.set("outages_data", '[{"id": "a"}]')
    assert await sql_storage.get("outages_data") == '[{"id": "a"}]'


async def test_sql_storage_remove(sql_storage):
    await sql_storage.set("user_confirmations", "{}")
    await sql_storage.remove("user_confirmations")
    await sql_storage.remove("user_confirmations")
    assert await sql_storage.get("user_confirmations") is None


async def test_sql_storage_keeps_keys_apart(sql_storage):
    await sql_storage.set("outages_data", "o")
    await sql_storage.set("incidents_data", "i")
    assert await sql_storage.get("outages_data") == "o"
    assert await sql_storage.get("incidents_data") == "i"


async def test_memory_storage():
    storage = MemoryStorage({"k": "v"})
    assert await storage.get("k") == "v"
    await storage.remove("k")
    assert await storage.get("k") is None
