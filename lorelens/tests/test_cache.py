from __future__ import annotations

import time
from unittest.mock import patch

from fastapi.testclient import TestClient

from lorelens.app import app
from lorelens.discovery.cache import cache_get, cache_set, clear_cache, get_cache_stats
from lorelens.discovery.images import find_image_urls
from lorelens.discovery.models import AgentContext
from lorelens.llm.config import LLMConfig

client = TestClient(app)


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


def test_cache_miss_then_hit():
    key = {"name": "frieren", "type": "anime", "year": 2023}
    assert cache_get(key) is None
    cache_set(key, "https://img.example/frieren.jpg")
    assert cache_get(key) == "https://img.example/frieren.jpg"

    stats = get_cache_stats()
    assert stats == {"size": 1, "hits": 1, "misses": 1, "hit_rate": 50.0}


def test_cache_key_ignores_dict_order():
    cache_set({"name": "a", "type": "movie"}, "x")
    assert cache_get({"type": "movie", "name": "a"}) == "x"


def test_cache_entry_expires():
    key = {"name": "old"}
    cache_set(key, "stale")
    with patch("lorelens.discovery.cache.time.time", return_value=time.time() + 10):
        assert cache_get(key, ttl=5) is None
    assert get_cache_stats()["size"] == 0


def test_clear_cache_resets_stats():
    cache_set({"k": 1}, "v")
    cache_get({"k": 1})
    clear_cache()
    assert get_cache_stats() == {"size": 0, "hits": 0, "misses": 0, "hit_rate": 0.0}


@patch("lorelens.discovery.images.complete", return_value="https://img.example/cover.jpg")
def test_repeat_lookup_served_from_cache(mock_complete, make_item):
    context = AgentContext(llm_config=LLMConfig(api_key="test-key"))

    find_image_urls([make_item()], context)
    find_image_urls([make_item(id="again")], context)

    assert mock_complete.call_count == 1
    assert get_cache_stats()["hits"] == 1


def test_cache_stats_endpoint():
    _login_admin(client)
    cache_set({"name": "x"}, "https://img.example/x.jpg")
    resp = client.get("/cache/stats")
    assert resp.status_code == 200
    assert resp.json()["size"] == 1
