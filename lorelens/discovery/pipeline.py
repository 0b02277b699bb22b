from __future__ import annotations

import json
import logging

from ..llm.groq_client import complete
from .images import DEFAULT_IMAGE_CONFIG, ImageSearchConfig, find_image_urls
from .models import AgentContext, ContentItem, SearchResult, UserInteraction, UserPreferences
from .parsing import is_number
from .personalization import personalize_results
from .prompts import EXPLANATION_TEMPLATE, render_related_prompt
from .search import filter_content, search_content

logger = logging.getLogger(__name__)


def get_recommendations(
    query: str,
    items: list[ContentItem],
    context: AgentContext,
    preferences: UserPreferences | None = None,
    interactions: list[UserInteraction] | None = None,
    image_config: ImageSearchConfig = DEFAULT_IMAGE_CONFIG,
) -> list[SearchResult]:
    """Filter, resolve images, score relevance, then personalize when possible."""
    filtered = filter_content(items, context.filters)
    logger.info("%d of %d candidates passed the filters", len(filtered), len(items))

    enhanced = find_image_urls(filtered, context, image_config)
    results = search_content(query, enhanced, context)

    if context.is_personalized and preferences is not None and interactions is not None:
        return personalize_results(results, preferences, interactions, context)
    return results


def build_explanation_prompt(result: SearchResult) -> str:
    content = result.content
    personalization_line = (
        f"Personalization Score: {result.personalization_score}"
        if result.personalization_score else ""
    )
    return EXPLANATION_TEMPLATE.format(
        title=content.name,
        type=content.type,
        genres=", ".join(content.genres),
        creator=content.studio,
        rating=content.rating,
        year=content.release_year,
        description=content.description,
        relevance_score=result.relevance_score,
        personalization_line=personalization_line,
        original_explanation=result.explanation or "None provided",
    )


def generate_explanation(result: SearchResult, context: AgentContext) -> str:
    fallback = result.explanation or "No explanation available"
    if not context.llm_config.available:
        return fallback
    try:
        text = complete(
            build_explanation_prompt(result),
            temperature=0.7,
            max_tokens=256,
            config=context.llm_config,
        ).strip()
    except Exception:
        logger.warning("Explanation generation failed for %s", result.content.name, exc_info=True)
        return fallback
    return text or fallback


def _format_catalog(items: list[ContentItem]) -> str:
    blocks = []
    for n, item in enumerate(items, start=1):
        blocks.append(
            f"Item {n}:\n"
            f"Title: {item.name}\n"
            f"Type: {item.type}\n"
            f"Genres: {', '.join(item.genres)}\n"
            f"Studio: {item.studio}\n"
            f"Description: {item.description}\n"
            f"Image: {item.image_url}"
        )
    return "\n\n".join(blocks)


def suggest_related_content(
    content: ContentItem,
    all_content: list[ContentItem],
    context: AgentContext,
) -> list[SearchResult]:
    """
    Rank ``all_content`` by similarity to ``content``.

    The reply must be a bare JSON array; anything else yields no suggestions.
    """
    if not all_content:
        return []

    prompt = render_related_prompt(
        title=content.name,
        type=content.type,
        description=content.description,
        genres=", ".join(content.genres),
        creator=content.studio,
        content_items=_format_catalog(all_content),
    )
    try:
        text = complete(prompt, temperature=0.7, max_tokens=1024, config=context.llm_config)
        scores = json.loads(text)
        if not isinstance(scores, list):
            raise ValueError("Response is not an array")
    except Exception:
        logger.warning("Related content suggestion failed for %s", content.name, exc_info=True)
        return []

    related: list[SearchResult] = []
    for entry in scores:
        if not isinstance(entry, dict):
            continue
        index, score = entry.get("index"), entry.get("score")
        if isinstance(index, bool) or not isinstance(index, int) or not 1 <= index <= len(all_content):
            continue
        if not is_number(score):
            continue
        explanation = entry.get("explanation")
        related.append(SearchResult(
            content=all_content[index - 1],
            relevance_score=float(score),
            explanation=explanation if isinstance(explanation, str) else None,
        ))
    return sorted(related, key=lambda r: r.relevance_score, reverse=True)
