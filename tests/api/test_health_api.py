"""Tests for health endpoints."""

from pathlib import Path
from typing import Any

import fakeredis.aioredis
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.infrastructure.cache import RedisCache
from storefront.infrastructure.config import Settings
from storefront.main import create_app


class DownRedis:
    def __getattr__(self, name: str) -> Any:
        async def fail(*args: Any, **kwargs: Any) -> Any:
            raise RedisConnectionError("Connection refused")

        return fail


def fake_cache() -> RedisCache:
    return RedisCache(
        fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    )


def make_settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'health.db'}",
        database_create_all=True,
        event_dispatch_background=False,
        log_json=False,
    )


class TestHealthEndpoints:
    """Tests for /health and /ready."""

    def test_health(self, tmp_path: Path) -> None:
        """Liveness always reports healthy."""
        cache = fake_cache()
        with TestClient(create_app(make_settings(tmp_path), cache=cache)) as client:
            response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "storefront-core"
        assert "version" in data

    def test_ready(self, tmp_path: Path) -> None:
        """Readiness is 200 when database and cache answer."""
        cache = fake_cache()
        with TestClient(create_app(make_settings(tmp_path), cache=cache)) as client:
            response = client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ready",
            "checks": {"database": "ok", "cache": "ok"},
        }

    def test_not_ready_when_cache_down(self, tmp_path: Path) -> None:
        """Readiness is 503 when the cache fails."""
        cache = RedisCache(DownRedis())  # type: ignore[arg-type]
        with TestClient(create_app(make_settings(tmp_path), cache=cache)) as client:
            response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"] == {"database": "ok", "cache": "unavailable"}
