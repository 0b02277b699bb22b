from __future__ import annotations

import time
import uuid
from typing import Any

_records: dict[tuple[str, str], dict[str, Any]] = {}


def upsert_recommendations(user_id: str, rows: list[tuple[str, float, str]]) -> None:
    """Store ``(content_id, score, reason)`` rows, replacing earlier ones for the same content."""
    now = time.time()
    for content_id, score, reason in rows:
        existing = _records.get((user_id, content_id))
        _records[(user_id, content_id)] = {
            "id": existing["id"] if existing else str(uuid.uuid4()),
            "user_id": user_id,
            "content_id": content_id,
            "score": score,
            "reason": reason,
            "created_at": existing["created_at"] if existing else now,
        }


def list_recommendations(
    user_id: str,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[dict[str, Any]], int]:
    """Return one page of a user's history, newest first, and the total count."""
    rows = [r for (uid, _), r in list(_records.items()) if uid == user_id]
    rows.sort(key=lambda r: r["created_at"], reverse=True)
    return rows[offset:offset + limit], len(rows)


def delete_recommendations(user_id: str, recommendation_id: str | None = None) -> int:
    keys = [
        key for key, r in list(_records.items())
        if key[0] == user_id and (recommendation_id is None or r["id"] == recommendation_id)
    ]
    for key in keys:
        del _records[key]
    return len(keys)


def clear_history() -> None:
    _records.clear()
