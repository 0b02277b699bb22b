from __future__ import annotations

import time
import uuid
from typing import Any

from ..discovery.models import InteractionType, UserInteraction
from .content import get_content

_interactions: dict[tuple[str, str], dict[str, Any]] = {}


def upsert_interaction(
    user_id: str,
    content_id: str,
    interaction_type: InteractionType,
    rating: float | None = None,
    review: str | None = None,
) -> dict[str, Any]:
    """Insert or replace the single interaction a user has with a content item."""
    now = time.time()
    existing = _interactions.get((user_id, content_id))
    record = {
        "id": existing["id"] if existing else str(uuid.uuid4()),
        "user_id": user_id,
        "content_id": content_id,
        "interaction_type": InteractionType(interaction_type),
        "rating": rating,
        "review": review,
        "created_at": existing["created_at"] if existing else now,
        "updated_at": now,
    }
    _interactions[(user_id, content_id)] = record
    return record


def get_user_interactions(user_id: str) -> list[dict[str, Any]]:
    return [r for (uid, _), r in list(_interactions.items()) if uid == user_id]


def load_user_interactions(user_id: str) -> list[UserInteraction]:
    """Join a user's interactions with the catalog, skipping unknown content."""
    joined: list[UserInteraction] = []
    for record in get_user_interactions(user_id):
        content = get_content(record["content_id"])
        if content is None:
            continue
        joined.append(UserInteraction(
            content=content,
            interaction_type=record["interaction_type"],
            rating=record["rating"],
            review=record["review"],
        ))
    return joined


def get_saved_content_ids(user_id: str) -> set[str]:
    return {
        r["content_id"]
        for r in get_user_interactions(user_id)
        if r["interaction_type"] == InteractionType.saved
    }


def remove_saved(user_id: str, content_id: str) -> bool:
    record = _interactions.get((user_id, content_id))
    if record and record["interaction_type"] == InteractionType.saved:
        del _interactions[(user_id, content_id)]
        return True
    return False


def get_all_interactions() -> list[dict[str, Any]]:
    return list(_interactions.values())


def clear_interactions() -> None:
    _interactions.clear()
