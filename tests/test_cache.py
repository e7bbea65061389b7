import asyncio
import json
import time

from app.cache import MemoryCache, build_cache_key


def test_set_get_and_delete():
    cache = MemoryCache()

    async def scenario():
        await cache.set("k", {"a": 1}, 60)
        assert await cache.get("k") == {"a": 1}
        assert await cache.exists("k")
        await cache.delete("k")
        assert await cache.get("k") is None

    asyncio.run(scenario())


def test_expired_entries_are_dropped():
    cache = MemoryCache()
    cache._store["old"] = (time.monotonic() - 1, json.dumps("stale"))

    assert asyncio.run(cache.get("old")) is None
    assert "old" not in cache._store


def test_delete_pattern_only_touches_matching_keys():
    cache = MemoryCache()

    async def scenario():
        await cache.set("public-notes:anonymous:/a", 1)
        await cache.set("public-notes:7:/b", 2)
        await cache.set("tags:anonymous:/tags", 3)
        removed = await cache.delete_pattern("public-notes:*")
        return removed, await cache.get("tags:anonymous:/tags")

    removed, remaining = asyncio.run(scenario())
    assert removed == 2
    assert remaining == 3


def test_disabled_cache_is_a_no_op():
    cache = MemoryCache(enabled=False)

    async def scenario():
        await cache.set("k", 1)
        return await cache.get("k")

    assert asyncio.run(scenario()) is None


def test_unserializable_value_is_not_stored():
    cache = MemoryCache()

    asyncio.run(cache.set("k", object()))
    assert asyncio.run(cache.get("k")) is None


def test_build_cache_key():
    assert build_cache_key("public-notes", None, "/api/v1/notes/public") == "public-notes:anonymous:/api/v1/notes/public"
    assert build_cache_key("public-notes", 5, "/x?page=2") == "public-notes:5:/x?page=2"
