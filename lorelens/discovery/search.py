from __future__ import annotations

import json
import logging
from typing import Any

from ..llm.groq_client import complete
from .models import AgentContext, ContentItem, SearchFilters, SearchResult
from .parsing import (
    ResponseParseError,
    as_index,
    is_number,
    is_valid_score_list,
    recover_json_array,
    strip_code_fences,
)
from .prompts import render_search_prompt

logger = logging.getLogger(__name__)

NO_QUERY_EXPLANATION = "No search query provided, showing all results"
INVALID_FORMAT_EXPLANATION = "Default ranking due to invalid response format"
INVALID_SCORES_EXPLANATION = "Default ranking due to invalid score format"
RANKING_ERROR_EXPLANATION = "Error in search ranking, showing default order"
PROCESSING_EXPLANATION = "Default ranking due to processing issues"


def filter_content(items: list[ContentItem], filters: SearchFilters) -> list[ContentItem]:
    """Apply the hard rating, year, genre and studio constraints."""
    kept: list[ContentItem] = []
    for item in items:
        if item.rating < filters.min_rating:
            continue
        if item.release_year < filters.year_start or item.release_year > filters.year_end:
            continue
        if filters.genres and not any(g in filters.genres for g in item.genres):
            continue
        if filters.studios and item.studio not in filters.studios:
            continue
        kept.append(item)
    return kept


def group_by_type(items: list[ContentItem]) -> dict[str, list[ContentItem]]:
    groups: dict[str, list[ContentItem]] = {}
    for item in items:
        groups.setdefault(item.type.lower(), []).append(item)
    return groups


def format_items(items: list[ContentItem]) -> str:
    blocks = []
    for n, item in enumerate(items, start=1):
        blocks.append(
            f"Item {n}:\n"
            f"Title: {item.name}\n"
            f"Type: {item.type}\n"
            f"Description: {item.description}\n"
            f"Genres: {', '.join(item.genres)}\n"
            f"Studio: {item.studio}\n"
            f"Rating: {item.rating}\n"
            f"Year: {item.release_year}\n"
            f"Image: {item.image_url or 'No image available'}"
        )
    return "\n\n".join(blocks)


def _default_results(items: list[ContentItem], explanation: str) -> list[SearchResult]:
    return [SearchResult(content=c, relevance_score=1.0, explanation=explanation) for c in items]


def _map_scores(scores: list[Any], items: list[ContentItem]) -> list[SearchResult]:
    """
    Turn 1-based score entries into results.

    A missing or out-of-range index lands on the first item. A fractional
    index names no item, so that entry is dropped.
    """
    results: list[SearchResult] = []
    for entry in scores:
        if not isinstance(entry, dict):
            entry = {}
        index = entry.get("index")
        if is_number(index):
            position = as_index(index)
            if position is None:
                continue
            position -= 1
        else:
            position = 0
        content = items[position] if 0 <= position < len(items) else items[0]

        score = entry.get("score")
        if not is_number(score):
            score = 0.5
        explanation = entry.get("explanation")
        if not isinstance(explanation, str) or not explanation:
            explanation = "No explanation provided"
        results.append(SearchResult(
            content=content,
            relevance_score=float(score),
            explanation=explanation,
        ))
    return results


def _score_group(
    query: str,
    content_type: str,
    items: list[ContentItem],
    context: AgentContext,
) -> list[SearchResult]:
    prompt = render_search_prompt(content_type, query, format_items(items))
    try:
        text = complete(prompt, temperature=0.2, max_tokens=1024, config=context.llm_config)
    except Exception:
        logger.warning("Search ranking failed for %s", content_type, exc_info=True)
        return _default_results(items, RANKING_ERROR_EXPLANATION)

    try:
        scores = json.loads(strip_code_fences(text))
    except json.JSONDecodeError:
        logger.warning("Unparseable search reply for %s: %r", content_type, text[:200])
        try:
            scores = recover_json_array(text)
        except ResponseParseError:
            return _default_results(items, RANKING_ERROR_EXPLANATION)
    else:
        if not isinstance(scores, list) or not scores:
            logger.warning("Search reply for %s is not a non-empty array", content_type)
            return _default_results(items, INVALID_FORMAT_EXPLANATION)
        if not is_valid_score_list(scores):
            logger.warning("Search reply for %s has malformed score objects", content_type)
            return _default_results(items, INVALID_SCORES_EXPLANATION)

    return _map_scores(scores, items)


def search_content(
    query: str,
    items: list[ContentItem],
    context: AgentContext,
) -> list[SearchResult]:
    """
    Score ``items`` against ``query`` with one LLM call per content type.

    Every failure mode degrades to relevance 1.0 for the affected group, so a
    search never loses its candidates. Results come back sorted by relevance.
    """
    if not query.strip() or not items:
        return _default_results(items, NO_QUERY_EXPLANATION)

    results: list[SearchResult] = []
    for content_type, group in group_by_type(items).items():
        results.extend(_score_group(query, content_type, group, context))

    if not results:
        logger.warning("No valid results after processing, using default scoring")
        return _default_results(items, PROCESSING_EXPLANATION)

    return sorted(results, key=lambda r: r.relevance_score, reverse=True)
