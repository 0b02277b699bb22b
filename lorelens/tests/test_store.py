from __future__ import annotations

import importlib
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

from lorelens.store.history import delete_recommendations, list_recommendations, upsert_recommendations
from lorelens.store.interactions import get_user_interactions, upsert_interaction


def test_history_reads_while_other_users_write():
    def write(n):
        upsert_recommendations(f"user{n % 7}", [(f"c{n}-{i}", 0.5, "Search result") for i in range(20)])

    def read(n):
        list_recommendations("user0", limit=5)
        delete_recommendations("user3", recommendation_id="missing")

    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(write if n % 2 else read, n) for n in range(400)]
        for future in futures:
            future.result()

    assert list_recommendations("user1")[1] > 0


def test_interaction_reads_while_other_users_write():
    def write(n):
        upsert_interaction(f"user{n % 5}", f"c{n}", "planned")

    def read(n):
        get_user_interactions("user0")

    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(write if n % 2 else read, n) for n in range(400)]
        for future in futures:
            future.result()

    assert len(get_user_interactions("user1")) == 40


def test_importing_app_leaves_logging_config_alone():
    import lorelens.app

    with patch("logging.basicConfig") as mock_basic_config:
        importlib.reload(lorelens.app)

    mock_basic_config.assert_not_called()
