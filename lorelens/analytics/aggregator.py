from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable

from ..discovery.models import ContentItem


def _search_stats(searches: list[dict[str, Any]]) -> dict[str, Any]:
    total = len(searches)

    times = [s["response_time_ms"] for s in searches if "response_time_ms" in s]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    query_counter: Counter[str] = Counter()
    for s in searches:
        if s.get("query"):
            query_counter[s["query"].strip().lower()] += 1
    top_queries = [{"query": q, "count": c} for q, c in query_counter.most_common(10)]

    type_counter: Counter[str] = Counter()
    for s in searches:
        for t in s.get("content_types", []) or []:
            type_counter[t] += 1

    filter_counts = {"query": 0, "genres": 0, "studios": 0, "personalized": 0}
    for s in searches:
        if s.get("query"):
            filter_counts["query"] += 1
        if s.get("genres"):
            filter_counts["genres"] += 1
        if s.get("studios"):
            filter_counts["studios"] += 1
        if s.get("personalized"):
            filter_counts["personalized"] += 1
    filter_usage = {
        k: round(v / total * 100, 1) if total else 0.0
        for k, v in filter_counts.items()
    }

    return {
        "total_searches": total,
        "avg_response_time_ms": avg_time,
        "top_queries": top_queries,
        "content_type_usage": dict(type_counter),
        "filter_usage": filter_usage,
    }


def _interaction_stats(
    interactions: list[dict[str, Any]],
    lookup: Callable[[str], ContentItem | None],
    now: datetime,
) -> dict[str, Any]:
    by_type: Counter[str] = Counter()
    by_content_type: Counter[str] = Counter()
    per_day: Counter[str] = Counter()
    ratings: dict[str, list[float]] = defaultdict(list)

    for record in interactions:
        content = lookup(record["content_id"])
        by_type[str(getattr(record["interaction_type"], "value", record["interaction_type"]))] += 1
        by_content_type[content.type if content else "unknown"] += 1
        per_day[datetime.fromtimestamp(record["created_at"]).date().isoformat()] += 1
        if record.get("rating") is not None:
            ratings[record["content_id"]].append(record["rating"])

    all_ratings = [r for values in ratings.values() for r in values]
    avg_rating = round(sum(all_ratings) / len(all_ratings), 2) if all_ratings else 0.0

    top_rated = []
    for content_id, values in ratings.items():
        content = lookup(content_id)
        top_rated.append({
            "id": content_id,
            "name": content.name if content else "Unknown Content",
            "type": content.type if content else "unknown",
            "rating": round(sum(values) / len(values), 2),
            "interactions": len(values),
        })
    top_rated.sort(key=lambda c: c["rating"], reverse=True)

    last_week = []
    for days_ago in range(6, -1, -1):
        day = (now - timedelta(days=days_ago)).date()
        last_week.append({"date": day.strftime("%b %d"), "count": per_day[day.isoformat()]})

    return {
        "total_interactions": len(interactions),
        "interactions_by_type": dict(by_type),
        "interactions_by_content_type": dict(by_content_type),
        "average_rating": avg_rating,
        "top_rated_content": top_rated[:5],
        "interactions_last_7_days": last_week,
    }


def compute_analytics(
    events: list[dict[str, Any]],
    interactions: list[dict[str, Any]],
    lookup: Callable[[str], ContentItem | None],
    now: datetime | None = None,
) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "search"]
    return {
        **_search_stats(searches),
        "interactions": _interaction_stats(interactions, lookup, now or datetime.now()),
    }
