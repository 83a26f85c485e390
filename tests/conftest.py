import json
from io import BytesIO
from types import SimpleNamespace

import pytest
import requests
from PIL import Image

import dependencies
import sheet_gateway
from sheet_gateway import CircuitBreaker, SheetGateway

SHEET_URL = "https://script.example.com/macros/s/test/exec"


class FakeRedis:
    """In-memory stand-in covering the redis-py calls this app makes (decode_responses=True)."""

    def __init__(self):
        self.store = {}
        self.expiries = {}

    def ping(self):
        return True

    def get(self, key):
        value = self.store.get(key)
        return value if isinstance(value, str) else None

    def set(self, key, value, ex=None):
        self.store[key] = str(value)
        if ex is not None:
            self.expiries[key] = ex
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.expiries.pop(key, None)
        return removed

    def exists(self, *keys):
        return sum(1 for key in keys if key in self.store)

    # --- lists ---
    def _list(self, key):
        return self.store.setdefault(key, [])

    @staticmethod
    def _bounds(length, start, end):
        if start < 0:
            start = max(0, length + start)
        end = length + end if end < 0 else end
        return start, end + 1

    def rpush(self, key, *values):
        items = self._list(key)
        items.extend(values)
        return len(items)

    def lpush(self, key, *values):
        items = self._list(key)
        for value in values:
            items.insert(0, value)
        return len(items)

    def lrange(self, key, start, end):
        items = self.store.get(key, [])
        lo, hi = self._bounds(len(items), start, end)
        return list(items[lo:hi])

    def ltrim(self, key, start, end):
        items = self.store.get(key, [])
        lo, hi = self._bounds(len(items), start, end)
        self.store[key] = items[lo:hi]
        return True

    def lset(self, key, index, value):
        self.store[key][index] = value
        return True

    # --- hashes ---
    def hset(self, key, field, value):
        self.store.setdefault(key, {})[field] = value
        return 1

    def hget(self, key, field):
        return self.store.get(key, {}).get(field)

    def hgetall(self, key):
        return dict(self.store.get(key, {}))


class FakeSheet:
    """
    Replaces requests.post for the sheet endpoint. `responses` maps an action
    name to a dict/list (sent as JSON), a raw string, an exception to raise, or
    a callable taking the payload. Unknown actions behave like an unreachable host.
    """

    def __init__(self):
        self.responses = {}
        self.calls = []

    def actions(self):
        return [call["action"] for call in self.calls]

    def __call__(self, url, data=None, headers=None, timeout=None):
        payload = json.loads(data)
        self.calls.append(payload)
        action = payload["action"]
        if action not in self.responses:
            raise requests.ConnectionError("sheet endpoint unreachable")
        result = self.responses[action]
        if isinstance(result, Exception):
            raise result
        if callable(result):
            result = result(payload)
        text = result if isinstance(result, str) else json.dumps(result)
        return SimpleNamespace(text=text, status_code=200)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def sheet(monkeypatch):
    fake = FakeSheet()
    monkeypatch.setattr(sheet_gateway.requests, "post", fake)
    return fake


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway(sheet, clock):
    return SheetGateway(SHEET_URL, timeout=1, breaker=CircuitBreaker(failure_threshold=3, reset_timeout=300, clock=clock))


@pytest.fixture
def app(fake_redis, gateway):
    from main import create_app

    dependencies.reset(redis_client=fake_redis, gateway=gateway)
    app = create_app({
        "TESTING": True,
        "RATELIMIT_ENABLED": False,
        "RATELIMIT_STORAGE_URI": "memory://",
    })
    yield app
    dependencies.reset()


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, school_id="SM-2024-889"):
    """Logs in and returns (auth headers, response json)."""
    response = client.post("/auth/login", json={"schoolId": school_id})
    assert response.status_code == 200, response.get_json()
    body = response.get_json()
    return {"Authorization": f"Bearer {body['token']}"}, body


@pytest.fixture
def auth_headers(client):
    headers, _ = login(client)
    return headers


@pytest.fixture
def admin_headers(client):
    headers, _ = login(client, "ADMIN-01")
    return headers


def make_image(size=(1200, 900), fmt="PNG", mode="RGB"):
    buffer = BytesIO()
    Image.new(mode, size, (20, 160, 60, 128) if mode == "RGBA" else (20, 160, 60)).save(buffer, fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_image()
