from __future__ import annotations

import logging
import uuid
from typing import Any

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import complete
from .models import ContentItem, SearchFilters
from .parsing import extract_json_array, is_number
from .prompts import GENERATION_TEMPLATE

logger = logging.getLogger(__name__)

_FALLBACK_GENRES = (["Action", "Drama"], ["Adventure", "Thriller"])
_FALLBACK_DETAILS = (
    ("A highly recommended pick based on your search criteria.", 2020, 8.0, "Major Studio"),
    ("Another great recommendation matching your preferences.", 2021, 7.5, "Popular Productions"),
)


def build_generation_prompt(
    query: str | None,
    content_types: list[str],
    filters: SearchFilters,
) -> str:
    return GENERATION_TEMPLATE.format(
        content_types=", ".join(content_types) or "any content type",
        query=query or "None specified",
        min_rating=filters.min_rating,
        year_start=filters.year_start,
        year_end=filters.year_end,
        genres=", ".join(filters.genres) or "Any",
        studios=", ".join(filters.studios) or "Any",
    )


def _pick(raw: dict[str, Any], key: str, kind: type | tuple[type, ...], default: Any) -> Any:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, kind):
        return default
    if isinstance(value, (int, float)) and not is_number(value):
        return default
    return value


def normalize_item(raw: Any, content_types: list[str]) -> ContentItem:
    """Coerce one generated object into a ``ContentItem`` with a fresh id."""
    if not isinstance(raw, dict):
        raw = {}
    genres = raw.get("genres")
    if not isinstance(genres, list) or not genres:
        genres = ["Unknown"]
    return ContentItem(
        id=str(uuid.uuid4()),
        name=_pick(raw, "name", str, "Unknown Title"),
        type=_pick(raw, "type", str, content_types[0] if content_types else "movie"),
        description=_pick(raw, "description", str, "No description available"),
        release_year=int(_pick(raw, "release_year", (int, float), 2000)),
        rating=float(_pick(raw, "rating", (int, float), 7.0)),
        studio=_pick(raw, "studio", str, "Unknown Studio"),
        genres=[str(g) for g in genres],
        image_url=_pick(raw, "image_url", str, ""),
        views_count=int(_pick(raw, "views_count", (int, float), 0)),
        likes_count=int(_pick(raw, "likes_count", (int, float), 0)),
        comments_count=int(_pick(raw, "comments_count", (int, float), 0)),
    )


def fallback_items(
    query: str | None,
    content_types: list[str],
    filters: SearchFilters,
) -> list[ContentItem]:
    label = query or "Recommended"
    content_type = content_types[0] if content_types else "movie"
    items: list[ContentItem] = []
    for n, (description, year, rating, studio) in enumerate(_FALLBACK_DETAILS, start=1):
        items.append(ContentItem(
            id=str(uuid.uuid4()),
            name=f"{label} Movie {n}",
            type=content_type,
            description=description,
            release_year=year,
            rating=rating,
            studio=studio,
            genres=list(filters.genres) or list(_FALLBACK_GENRES[n - 1]),
        ))
    return items


def generate_candidates(
    query: str | None,
    content_types: list[str],
    filters: SearchFilters,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> list[ContentItem]:
    """
    Ask the LLM for candidate items matching the search constraints.

    Falls back to two placeholder items when the model is unavailable,
    errors, or returns nothing parseable.
    """
    prompt = build_generation_prompt(query, content_types, filters)
    raw_items: list[Any] = []
    if config.available:
        try:
            text = complete(prompt, temperature=0.7, max_tokens=4096, config=config)
            raw_items = extract_json_array(text)
        except Exception:
            logger.warning("Candidate generation failed, using placeholder items", exc_info=True)

    items = [normalize_item(raw, content_types) for raw in raw_items]
    if not items:
        logger.info("No valid content items generated, using fallbacks")
        return fallback_items(query, content_types, filters)
    logger.info("Generated %d content items", len(items))
    return items
