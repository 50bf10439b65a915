import pytest

from app.core import cache


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.expiry = {}

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value, ex=None):
        self.values[key] = value
        self.expiry[key] = ex

    async def delete(self, key):
        self.values.pop(key, None)


@pytest.fixture
def fake(monkeypatch):
    r = FakeRedis()
    monkeypatch.setattr(cache, "_redis", r)
    return r


@pytest.mark.asyncio
async def test_json_round_trip_with_ttl(fake):
    await cache.cache_json_set("k", {"price": 10.5, "currency": "EUR"}, 60)
    assert fake.expiry["k"] == 60
    assert await cache.cache_json_get("k") == {"price": 10.5, "currency": "EUR"}
    assert await cache.cache_json_get("missing") is None


@pytest.mark.asyncio
async def test_undecodable_values_are_dropped(fake):
    fake.values["bad"] = "{not json"
    assert await cache.cache_json_get("bad") is None
    assert "bad" not in fake.values


def test_hashed_key_is_stable_and_namespaced():
    a = cache.hashed_key("enrich", "https://shop.example.com/p/1")
    assert a == cache.hashed_key("enrich", "https://shop.example.com/p/1")
    assert a.startswith("enrich:") and len(a) == len("enrich:") + 64
    assert a != cache.hashed_key("enrich", "https://shop.example.com/p/2")
