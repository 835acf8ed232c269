import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from solarb.cache import Cache, CacheError


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            self.ttls.pop(key, None)
            return 1
        return 0


class BrokenRedis:
    async def get(self, key):
        raise RedisConnectionError("down")

    async def setex(self, key, ttl, value):
        raise RedisConnectionError("down")

    async def delete(self, key):
        raise RedisConnectionError("down")


def test_generate_key_joins_with_colons():
    params = ["SOL", "USDC", "1000"]
    key = Cache.generate_key("quote", params)
    assert key.split(":") == ["quote", *params]


def test_generate_key_without_params_is_prefix():
    assert Cache.generate_key("quote", []) == "quote"


@pytest.mark.asyncio
async def test_round_trip_json():
    fake = FakeRedis()
    cache = Cache(fake, 60)
    value = {"price": 101.5, "route": ["SOL", "USDC"], "ok": True}
    await cache.set_ex("quote", ["SOL", "USDC"], value)
    assert await cache.get_json("quote", ["SOL", "USDC"]) == value


@pytest.mark.asyncio
async def test_stored_value_is_json_under_generated_key():
    fake = FakeRedis()
    cache = Cache(fake, 60)
    await cache.set_ex("quote", ["SOL"], {"a": 1})
    key = Cache.generate_key("quote", ["SOL"])
    assert json.loads(fake.store[key]) == {"a": 1}


@pytest.mark.asyncio
async def test_default_and_explicit_ttl():
    fake = FakeRedis()
    cache = Cache(fake, 45)
    await cache.set_ex("a", ["x"], 1)
    await cache.set_ex("b", ["y"], 2, ttl_seconds=7)
    assert fake.ttls[Cache.generate_key("a", ["x"])] == 45
    assert fake.ttls[Cache.generate_key("b", ["y"])] == 7


@pytest.mark.asyncio
async def test_miss_returns_none():
    cache = Cache(FakeRedis(), 60)
    assert await cache.get_json("quote", ["missing"]) is None


@pytest.mark.asyncio
async def test_bytes_values_are_decoded():
    fake = FakeRedis()
    fake.store["k:1"] = b'[1, 2, 3]'
    cache = Cache(fake, 60)
    assert await cache.get_json("k", ["1"]) == [1, 2, 3]


@pytest.mark.asyncio
async def test_corrupt_value_raises():
    fake = FakeRedis()
    fake.store["k:1"] = "{not json"
    cache = Cache(fake, 60)
    with pytest.raises(CacheError, match="deserialization"):
        await cache.get_json("k", ["1"])


@pytest.mark.asyncio
async def test_delete_reports_whether_removed():
    fake = FakeRedis()
    cache = Cache(fake, 60)
    await cache.set_ex("k", ["1"], "v")
    assert await cache.delete("k", ["1"]) is True
    assert await cache.delete("k", ["1"]) is False
    assert await cache.get_json("k", ["1"]) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["get", "set", "delete"])
async def test_redis_errors_become_cache_errors(operation):
    cache = Cache(BrokenRedis(), 60)
    with pytest.raises(CacheError):
        if operation == "get":
            await cache.get_json("k", ["1"])
        elif operation == "set":
            await cache.set_ex("k", ["1"], 1)
        else:
            await cache.delete("k", ["1"])


@pytest.mark.asyncio
async def test_connect_rejects_bad_url():
    with pytest.raises(CacheError):
        await Cache.connect("not-a-url", 60)