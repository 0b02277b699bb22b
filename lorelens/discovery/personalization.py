from __future__ import annotations

import logging
from collections import defaultdict

from ..llm.groq_client import complete
from .models import AgentContext, SearchResult, UserInteraction, UserPreferences
from .parsing import (
    ResponseParseError,
    as_index,
    extract_json_array,
    is_number,
    is_valid_score_list,
    recover_json_array,
)
from .prompts import render_personalization_prompt

logger = logging.getLogger(__name__)

RELEVANCE_WEIGHT = 0.4
PERSONALIZATION_WEIGHT = 0.6
MAX_PROMPT_INTERACTIONS = 5

INTERACTION_WEIGHTS: dict[str, float] = {
    "completed": 1.0,
    "watching": 0.8,
    "watched": 0.8,
    "reading": 0.8,
    "planned": 0.3,
    "dropped": -0.2,
}


def blend_scores(relevance: float, personalization: float) -> float:
    return relevance * RELEVANCE_WEIGHT + personalization * PERSONALIZATION_WEIGHT


def _format_interactions(interactions: list[UserInteraction]) -> str:
    lines = []
    for interaction in interactions[:MAX_PROMPT_INTERACTIONS]:
        content = interaction.content
        lines.append(
            f"- {content.name} ({content.type})\n"
            f"  * Status: {interaction.interaction_type.value}\n"
            f"  * Rating: {interaction.rating or 'Not rated'}\n"
            f"  * Genres: {', '.join(content.genres)}\n"
            f"  * Studio: {content.studio}"
        )
    return "\n".join(lines) or "No interactions yet"


def _format_results(results: list[SearchResult]) -> str:
    blocks = []
    for n, result in enumerate(results, start=1):
        content = result.content
        blocks.append(
            f"Item {n}:\n"
            f"Title: {content.name}\n"
            f"Type: {content.type}\n"
            f"Genres: {', '.join(content.genres)}\n"
            f"Studio: {content.studio}\n"
            f"Rating: {content.rating}\n"
            f"Year: {content.release_year}\n"
            f"Image: {content.image_url or 'No image available'}\n"
            f"Base Relevance Score: {result.relevance_score}"
        )
    return "\n\n".join(blocks)


def build_personalization_prompt(
    results: list[SearchResult],
    preferences: UserPreferences,
    interactions: list[UserInteraction],
) -> str:
    return render_personalization_prompt(
        favorite_genres=", ".join(preferences.favorite_genres) or "None specified",
        favorite_studios=", ".join(preferences.favorite_studios) or "None specified",
        min_rating=str(preferences.min_rating) if preferences.min_rating else "Not set",
        preferred_content_types=", ".join(preferences.preferred_content_types) or "All types",
        user_interactions=_format_interactions(interactions),
        content_items=_format_results(results),
    )


def personalize_results(
    results: list[SearchResult],
    preferences: UserPreferences,
    interactions: list[UserInteraction],
    context: AgentContext,
) -> list[SearchResult]:
    """
    Re-rank ``results`` for the context user and blend the two scores.

    Results the model does not score are dropped, matching how the reply is
    interpreted as the new ranking. Any failure returns ``results`` unchanged.
    """
    if not context.is_personalized or not context.user_id or not results:
        return results

    prompt = build_personalization_prompt(results, preferences, interactions)
    try:
        text = complete(prompt, temperature=0.6, max_tokens=1024, config=context.llm_config)
    except Exception:
        logger.warning("Personalization call failed, keeping search ranking", exc_info=True)
        return results

    try:
        scores = extract_json_array(text)
        if not is_valid_score_list(scores):
            raise ResponseParseError("Some score objects are missing required properties")
    except ResponseParseError:
        logger.warning("Unusable personalization reply: %r", text[:200])
        try:
            scores = recover_json_array(text)
        except ResponseParseError:
            return results

    personalized: list[SearchResult] = []
    for entry in scores:
        raw_index = entry.get("index") if isinstance(entry, dict) else None
        score = entry.get("score") if isinstance(entry, dict) else None
        index = as_index(raw_index)
        if index is None or not 1 <= index <= len(results):
            logger.warning("No result found for index %r, skipping", raw_index)
            continue
        if not is_number(score):
            logger.warning("Non-numeric personalization score %r, skipping", score)
            continue

        original = results[index - 1]
        explanation = entry.get("explanation")
        personalized.append(original.model_copy(update={
            "personalization_score": float(score),
            "relevance_score": blend_scores(original.relevance_score, float(score)),
            "explanation": explanation if isinstance(explanation, str) else original.explanation,
        }))

    return sorted(personalized, key=lambda r: r.relevance_score, reverse=True)


def interaction_weight(interaction: UserInteraction) -> float:
    weight = INTERACTION_WEIGHTS.get(interaction.interaction_type.value, 0.0)
    if interaction.rating:
        weight *= interaction.rating / 5
    return weight


def analyze_user_preferences(interactions: list[UserInteraction]) -> dict[str, dict[str, float]]:
    """Sum weighted affinities per genre, studio and content type."""
    genres: dict[str, float] = defaultdict(float)
    studios: dict[str, float] = defaultdict(float)
    content_types: dict[str, float] = defaultdict(float)

    for interaction in interactions:
        weight = interaction_weight(interaction)
        content = interaction.content
        for genre in content.genres:
            genres[genre] += weight
        studios[content.studio] += weight
        content_types[content.type] += weight

    return {
        "genre_affinities": dict(genres),
        "studio_affinities": dict(studios),
        "content_type_preferences": dict(content_types),
    }
