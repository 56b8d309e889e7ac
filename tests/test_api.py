from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from main import app
from pgcache.api.router import build_router
from pgcache.core.dependencies import get_cache_service
from pgcache.core.exceptions.handlers import register_exception_handlers
from pgcache.core.lifespan import lifespan
from pgcache.services.results import StoreFailure, StoreUnavailable


def test_end_to_end_example(client):
    resp = client.post("/cache", json={"Key": "a", "Value": {"x": 1}})
    assert resp.status_code == 200
    assert resp.content == b""

    resp = client.get("/cache/a")
    assert resp.status_code == 200
    assert resp.json() == {"x": 1}

    resp = client.delete("/cache")
    assert resp.status_code == 200
    assert resp.content == b""

    resp = client.get("/cache/a")
    assert resp.status_code == 404
    assert resp.content == b""


def test_unknown_key_is_404(client):
    resp = client.get("/cache/never-written")
    assert resp.status_code == 404
    assert resp.content == b""


def test_overwrite_returns_latest_value(client):
    client.post("/cache", json={"Key": "k", "Value": [1]})
    client.post("/cache", json={"Key": "k", "Value": {"replaced": True}})

    resp = client.get("/cache/k")
    assert resp.status_code == 200
    assert resp.json() == {"replaced": True}


@pytest.mark.parametrize(
    "value",
    [{"a": {"b": [1, 2, {"c": None}]}}, [], [1, "x", False], 42, 2.5, "text", True, None],
)
def test_values_come_back_as_json(client, value):
    assert client.post("/cache", json={"Key": "rt", "Value": value}).status_code == 200

    resp = client.get("/cache/rt")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/json"
    assert resp.json() == value


def test_key_is_used_verbatim(client):
    key = "user:42 ünïcode"
    client.post("/cache", json={"Key": key, "Value": "ok"})

    assert client.get(f"/cache/{key}").json() == "ok"
    assert client.get("/cache/user:42").status_code == 404


def test_key_with_slashes_round_trips(client):
    assert client.post("/cache", json={"Key": "a/b/c", "Value": [1]}).status_code == 200

    assert client.get("/cache/a/b/c").json() == [1]
    resp = client.get("/cache/a/b")
    assert resp.status_code == 404
    assert resp.content == b""


@pytest.mark.parametrize(
    "body",
    [
        b"{not json",
        b"[]",
        b'{"Key": "a"}',
        b'{"Value": 1}',
        b'{"Key": "", "Value": 1}',
        b'{"Key": 7, "Value": 1}',
        b"",
        b'{"Key": "a", "Value": NaN}',
        b'{"Key": "a", "Value": Infinity}',
        b'{"Key": "a", "Value": 1e400}',
    ],
)
def test_malformed_body_is_400_and_not_stored(client, body):
    resp = client.post(
        "/cache", content=body, headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    data = resp.json()
    assert data["success"] is False
    assert data["message"] == "Malformed cache entry."

    assert client.get("/cache/a").status_code == 404


def test_concurrent_puts_on_one_key(client):
    values = [{"writer": i} for i in range(16)]

    def put(value):
        return client.post("/cache", json={"Key": "race", "Value": value}).status_code

    with ThreadPoolExecutor(max_workers=8) as pool:
        statuses = list(pool.map(put, values))

    assert statuses == [200] * len(values)
    resp = client.get("/cache/race")
    assert resp.status_code == 200
    assert resp.json() in values


def test_health_reports_store(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["data"]["database"] == "ok"


# ---- store failures ----


class BrokenCache:
    def __init__(self, problem):
        self.problem = problem

    async def put(self, key, value):
        return self.problem

    async def get(self, key):
        return self.problem

    async def clear(self):
        return self.problem

    async def ping(self):
        return False


@pytest.mark.parametrize(
    "problem, status_code, message",
    [
        (StoreUnavailable(reason="OperationalError"), 503, "Cache store unavailable."),
        (StoreFailure(reason="IntegrityError"), 500, "Cache store error."),
    ],
)
def test_store_problems_map_to_server_errors(client, problem, status_code, message):
    app.dependency_overrides[get_cache_service] = lambda: BrokenCache(problem)

    responses = [
        client.post("/cache", json={"Key": "a", "Value": 1}),
        client.get("/cache/a"),
        client.delete("/cache"),
    ]

    for resp in responses:
        assert resp.status_code == status_code
        data = resp.json()
        assert data["success"] is False
        assert data["message"] == message
        # No driver or exception detail leaks out
        assert problem.reason not in resp.text


def test_health_when_store_is_down(client):
    app.dependency_overrides[get_cache_service] = lambda: BrokenCache(
        StoreUnavailable(reason="down")
    )
    resp = client.get("/health")
    assert resp.status_code == 503
    assert resp.json()["data"]["database"] == "unavailable"


# ---- route prefix ----


def test_cache_routes_honour_prefix():
    prefixed = FastAPI(lifespan=lifespan)
    register_exception_handlers(prefixed)
    prefixed.include_router(build_router("/postgres"))

    with TestClient(prefixed) as c:
        c.delete("/postgres/cache")
        assert c.post("/postgres/cache", json={"Key": "p", "Value": 1}).status_code == 200
        assert c.get("/postgres/cache/p").json() == 1
        assert c.get("/cache/p").status_code == 404
        assert c.get("/health").status_code == 200
        assert c.delete("/postgres/cache").status_code == 200
