from __future__ import annotations

from ..discovery.models import ContentItem

_content: dict[str, ContentItem] = {}


def upsert_content(items: list[ContentItem]) -> None:
    for item in items:
        # is_saved is per-user state and never stored on the catalog row
        _content[item.id] = item.model_copy(update={"is_saved": None})


def get_content(content_id: str) -> ContentItem | None:
    return _content.get(content_id)


def list_content() -> list[ContentItem]:
    return list(_content.values())


def clear_content() -> None:
    _content.clear()
