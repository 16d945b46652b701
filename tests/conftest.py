"""
Pytest configuration for vegan guides tests.

Environment is pinned before any package import so the global config is
built without Redis and with placeholder API keys. No test touches the
network: providers and API clients are replaced by fakes.
"""
import os

os.environ["ENVIRONMENT"] = "testing"
os.environ["REDIS_URL"] = ""
os.environ["GOOGLE_API_KEY"] = "test-google-key"
os.environ["GROQ_API_KEY"] = "test-groq-key"

import pytest

from vegan_guides.config import reload_config
from vegan_guides.models import RestaurantRecord
from vegan_guides.providers.base import PlacesProvider
from vegan_guides.src.metrics import reset_memory_metrics


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Fresh config and metrics for every test."""
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.setenv("REDIS_URL", "")
    monkeypatch.setenv("GOOGLE_API_KEY", "test-google-key")
    monkeypatch.setenv("GROQ_API_KEY", "test-groq-key")
    reload_config()
    reset_memory_metrics()
    yield
    reset_memory_metrics()


@pytest.fixture
def make_place():
    """Factory for raw Places records as returned by text/nearby search."""
    def _make(place_id, name=None, rating=None, lat=40.4168, lng=-3.7038, **extra):
        place = {
            "place_id": place_id,
            "name": name or f"Place {place_id}",
            "formatted_address": f"Calle {place_id}, Madrid",
            "geometry": {"location": {"lat": lat, "lng": lng}},
            "types": ["restaurant", "food"],
        }
        if rating is not None:
            place["rating"] = rating
        place.update(extra)
        return place
    return _make


@pytest.fixture
def make_record():
    def _make(place_id, rating=4.0, vegan=False, name=None, **extra):
        return RestaurantRecord(
            id=place_id,
            name=name or f"Place {place_id}",
            address=f"Calle {place_id}",
            lat=extra.pop("lat", 40.4168),
            lng=extra.pop("lng", -3.7038),
            rating=rating,
            is_fully_vegan=vegan,
            **extra,
        )
    return _make


class FakePlacesProvider(PlacesProvider):
    """Returns canned results keyed on query text / keyword and records calls."""

    def __init__(self, vegan=None, options=None, error=None, photo=(b"img", "image/png")):
        super().__init__()
        self.vegan = vegan or []
        self.options = options or []
        self.error = error
        self.photo = photo
        self.text_queries = []
        self.nearby_calls = []
        self.photo_calls = []

    def _pick(self, text):
        if self.error is not None:
            raise self.error
        return list(self.options if "options" in text else self.vegan)

    async def text_search(self, query):
        self.text_queries.append(query)
        return self._pick(query)

    async def nearby_search(self, lat, lng, radius, keyword):
        self.nearby_calls.append((lat, lng, radius, keyword))
        return self._pick(keyword)

    async def fetch_photo(self, ref, max_width):
        self.photo_calls.append((ref, max_width))
        if self.error is not None:
            raise self.error
        return self.photo


@pytest.fixture
def fake_provider_cls():
    return FakePlacesProvider


class FakeRedis:
    """Just enough of redis.asyncio.Redis for metrics and the search cache."""

    def __init__(self, fail=False):
        self.store = {}
        self.ttls = {}
        self.fail = fail
        self.closed = False

    def _check(self):
        if self.fail:
            raise ConnectionError("redis down")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value.encode("utf-8") if isinstance(value, str) else value
        self.ttls[key] = ttl

    async def incrby(self, key, amount):
        self._check()
        self.store[key] = int(self.store.get(key, 0)) + amount

    async def lpush(self, key, value):
        self._check()
        self.store.setdefault(key, []).insert(0, float(value))

    async def ltrim(self, key, start, stop):
        self._check()
        if key in self.store:
            self.store[key] = self.store[key][start:stop + 1]

    async def keys(self, pattern):
        self._check()
        prefix = pattern.rstrip('*')
        return [k for k in self.store if k.startswith(prefix)]

    async def lrange(self, key, start, stop):
        self._check()
        values = self.store.get(key, [])
        return values[start:] if stop == -1 else values[start:stop + 1]

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def failing_redis():
    return FakeRedis(fail=True)
