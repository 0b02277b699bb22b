"""
Request-level Lore Lens search flow.

Steps:
- Generate candidates with the LLM.
- Load preferences and interactions for personalized, signed-in searches.
- Run the recommendation agent and explain the top results.
- Mark saved items, persist the catalog and the user's history.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor

from ..analytics.store import record_event
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..store.content import upsert_content
from ..store.history import upsert_recommendations
from ..store.interactions import get_saved_content_ids, load_user_interactions
from ..store.preferences import get_preferences, has_preferences
from .generation import generate_candidates
from .images import DEFAULT_IMAGE_CONFIG, ImageSearchConfig
from .models import AgentContext, SearchRequest, SearchResponse, SearchResult
from .pipeline import generate_explanation, get_recommendations

logger = logging.getLogger(__name__)

TOP_RESULTS = 10
_EXPLANATION_WORKERS = 4


def _explain_all(results: list[SearchResult], context: AgentContext) -> list[SearchResult]:
    if not results:
        return results
    with ThreadPoolExecutor(max_workers=_EXPLANATION_WORKERS) as pool:
        explanations = list(pool.map(lambda r: generate_explanation(r, context), results))
    return [r.model_copy(update={"explanation": e}) for r, e in zip(results, explanations)]


def _history_rows(
    results: list[SearchResult],
    personalized: bool,
) -> list[tuple[str, float, str]]:
    rows = []
    for rank, result in enumerate(results):
        score = result.relevance_score or result.personalization_score or (10 - rank) / 10
        reason = result.explanation or ("Personalized recommendation" if personalized else "Search result")
        rows.append((result.content.id, score, reason))
    return rows


def run_search(
    request: SearchRequest,
    user_id: str | None = None,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
    image_config: ImageSearchConfig = DEFAULT_IMAGE_CONFIG,
) -> SearchResponse:
    start_time = time.time()
    personalized = request.is_personalized and user_id is not None
    context = AgentContext(
        filters=request.filters,
        user_id=user_id,
        is_personalized=personalized,
        llm_config=config,
    )

    items = generate_candidates(request.query, request.content_types, request.filters, config)

    preferences = None
    interactions = None
    if personalized:
        if has_preferences(user_id):
            preferences = get_preferences(user_id)
        interactions = load_user_interactions(user_id)
        logger.info("Found %d interactions for personalization", len(interactions))

    recommendations = get_recommendations(
        request.query or "",
        items,
        context,
        preferences=preferences,
        interactions=interactions,
        image_config=image_config,
    )

    results = _explain_all(recommendations[:TOP_RESULTS], context)

    if user_id:
        saved_ids = get_saved_content_ids(user_id)
        results = [
            r.model_copy(update={"content": r.content.model_copy(update={"is_saved": r.content.id in saved_ids})})
            for r in results
        ]

    if results:
        upsert_content([r.content for r in results])
        if user_id:
            upsert_recommendations(user_id, _history_rows(results, personalized))

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("search", {
        "query": request.query,
        "content_types": request.content_types,
        "min_rating": request.filters.min_rating,
        "genres": request.filters.genres,
        "studios": request.filters.studios,
        "personalized": personalized,
        "total_candidates": len(items),
        "results_returned": len(results),
        "response_time_ms": elapsed_ms,
    })

    message = (
        "Personalized recommendations generated successfully"
        if personalized else "Recommendations generated successfully"
    )
    return SearchResponse(results=results, total=len(recommendations), message=message)
