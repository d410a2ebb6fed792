import asyncio

import pytest

from randomtube.services.store import JsonFileKVStore, MemoryKVStore, StoreError, create_store


@pytest.fixture(params=["memory", "file"])
def kv(request, tmp_path):
    if request.param == "memory":
        return MemoryKVStore()
    return JsonFileKVStore(str(tmp_path / "kv.json"))


@pytest.mark.asyncio
async def test_missing_key(kv):
    assert await kv.get("nope") is None
    record = await kv.get_with_metadata("nope")
    assert record.value is None
    assert record.metadata is None


@pytest.mark.asyncio
async def test_put_and_get_with_metadata(kv):
    await kv.put("channel#UC1", "[]", metadata={"channelId": "UC1", "expiresAt": 123})
    await kv.put("uuid#abc", "")

    assert await kv.get("uuid#abc") == ""
    record = await kv.get_with_metadata("channel#UC1")
    assert record.value == "[]"
    assert record.metadata == {"channelId": "UC1", "expiresAt": 123}


@pytest.mark.asyncio
async def test_put_overwrites_value_and_metadata(kv):
    await kv.put("k", "one", metadata={"n": 1})
    await kv.put("k", "two")

    record = await kv.get_with_metadata("k")
    assert record.value == "two"
    assert record.metadata is None


@pytest.mark.asyncio
async def test_list_by_prefix(kv):
    await kv.put("channel#b", "")
    await kv.put("channel#a", "")
    await kv.put("uuid#x", "")

    assert await kv.list(prefix="channel#") == ["channel#a", "channel#b"]
    assert await kv.list() == ["channel#a", "channel#b", "uuid#x"]


@pytest.mark.asyncio
async def test_file_store_survives_reopen(tmp_path):
    path = str(tmp_path / "kv.json")
    await JsonFileKVStore(path).put("uuid#abc", "{}")

    assert await JsonFileKVStore(path).get("uuid#abc") == "{}"


@pytest.mark.asyncio
async def test_corrupted_file_raises(tmp_path):
    path = tmp_path / "kv.json"
    path.write_text("{broken")

    with pytest.raises(StoreError):
        await JsonFileKVStore(str(path)).get("uuid#abc")


def test_create_store(settings, tmp_path):
    settings.STORE_BACKEND = "file"
    settings.STORE_PATH = str(tmp_path / "kv.json")
    assert isinstance(create_store(settings), JsonFileKVStore)

    settings.STORE_BACKEND = "memory"
    assert isinstance(create_store(settings), MemoryKVStore)

    settings.STORE_BACKEND = "redis"
    with pytest.raises(ValueError):
        create_store(settings)


@pytest.mark.asyncio
async def test_file_stores_sharing_a_path_keep_every_write(tmp_path):
    path = str(tmp_path / "kv.json")
    first, second = JsonFileKVStore(path), JsonFileKVStore(path)

    await asyncio.gather(*(
        (first if i % 2 else second).put(f"uuid#{i}", "")
        for i in range(20)
    ))

    assert await JsonFileKVStore(path).list(prefix="uuid#") == sorted(f"uuid#{i}" for i in range(20))
