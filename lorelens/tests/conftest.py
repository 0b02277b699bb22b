from __future__ import annotations

import os

# Vendor keys must be blank before lorelens config modules are imported so
# no test can reach Groq or Serper.
os.environ["GROQ_API_KEY"] = ""
os.environ["SERPER_API_KEY"] = ""
os.environ["LORELENS_IMAGE_BATCH_DELAY"] = "0"

import pytest  # noqa: E402

from lorelens.analytics.store import clear_events  # noqa: E402
from lorelens.discovery.cache import clear_cache  # noqa: E402
from lorelens.discovery.models import ContentItem  # noqa: E402
from lorelens.store.content import clear_content  # noqa: E402
from lorelens.store.history import clear_history  # noqa: E402
from lorelens.store.interactions import clear_interactions  # noqa: E402
from lorelens.store.preferences import clear_preferences  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_stores():
    clear_events()
    clear_cache()
    clear_content()
    clear_history()
    clear_interactions()
    clear_preferences()
    yield


@pytest.fixture
def make_item():
    """Build a ContentItem with sensible defaults and keyword overrides."""

    def _make(**overrides) -> ContentItem:
        data = {
            "id": "c1",
            "name": "Frieren: Beyond Journey's End",
            "type": "anime",
            "description": "An elf mage reflects on life after the hero's party disbands.",
            "release_year": 2023,
            "rating": 9.1,
            "studio": "Madhouse",
            "genres": ["Fantasy", "Adventure"],
            "image_url": "",
        }
        data.update(overrides)
        return ContentItem(**data)

    return _make
