from __future__ import annotations

import logging
import os
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from urllib.parse import urlparse

import requests

from ..llm.groq_client import complete
from .cache import cache_get, cache_set
from .models import AgentContext, ContentItem
from .prompts import IMAGE_SEARCH_TEMPLATE, image_priority_for

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "/images/placeholder.jpg"

_IMAGE_EXT_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp)($|\?)")

TRUSTED_IMAGE_HOSTS = (
    "media-amazon.com",
    "ssl-images-amazon.com",
    "amazon.com",
    "wikimedia.org",
    "myanimelist.net",
    "tmdb.org",
    "themoviedb.org",
    "imdb.com",
    "anilist.co",
    "crunchyroll.com",
    "netflix.com",
    "hulu.com",
    "tvdb.com",
    "imgur.com",
    "staticflickr.com",
    "cloudfront.net",
    "akamaized.net",
    "ytimg.com",
    "googleusercontent.com",
    "pbs.twimg.com",
    "animenewsnetwork.com",
    "gstatic.com",
    "ggpht.com",
    "bp.blogspot.com",
    "static.wikia.nocookie.net",
    "i.pinimg.com",
)

_SITE_HINTS: dict[str, str] = {
    "anime": "myanimelist and fandom",
    "manga": "myanimelist and fandom",
    "manhua": "myanimelist and fandom",
    "manhwa": "myanimelist and fandom",
    "lightnovel": "lightnovelpub, webnovel, goodreads or novelupdates and fandom",
    "webnovel": "lightnovelpub, webnovel, goodreads or novelupdates and fandom",
    "book": "goodreads and fandom",
}
_DEFAULT_SITE_HINT = "imdb and fandom"


@dataclass(frozen=True)
class ImageSearchConfig:
    serper_api_key: str = os.getenv("SERPER_API_KEY", "")
    endpoint: str = "https://google.serper.dev/images"
    timeout: float = 10.0
    batch_size: int = 3
    batch_delay: float = float(os.getenv("LORELENS_IMAGE_BATCH_DELAY", "1.0"))


DEFAULT_IMAGE_CONFIG = ImageSearchConfig()


def is_valid_image_url(url: str | None) -> bool:
    """Accept https URLs that look like an image file or live on a known image host."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme != "https" or not parsed.hostname:
        return False
    has_extension = bool(_IMAGE_EXT_RE.search(parsed.path.lower()))
    trusted = any(host in parsed.hostname for host in TRUSTED_IMAGE_HOSTS)
    return has_extension or trusted


def build_search_query(item: ContentItem) -> str:
    hint = _SITE_HINTS.get(item.type.lower(), _DEFAULT_SITE_HINT)
    return f"{item.name} {item.type} {item.release_year} poster official search {hint}"


def _cache_key(item: ContentItem) -> dict:
    return {"name": item.name.lower(), "type": item.type.lower(), "year": item.release_year}


def search_serper(
    item: ContentItem,
    config: ImageSearchConfig = DEFAULT_IMAGE_CONFIG,
) -> str | None:
    """Query Serper image search and pick the most poster-like hit."""
    query = build_search_query(item)
    try:
        resp = requests.post(
            config.endpoint,
            json={"q": query, "gl": "us", "hl": "en", "num": 10},
            headers={"X-API-KEY": config.serper_api_key, "Content-Type": "application/json"},
            timeout=config.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError):
        logger.warning("Serper image search failed for %r", query, exc_info=True)
        return None

    if data.get("error"):
        logger.warning("Serper returned an error for %r: %s", query, data["error"])
        return None

    images = data.get("images") or []
    if not images:
        logger.info("Serper found no images for %r", query)
        return None

    def _looks_like_poster(img: dict) -> bool:
        text = f"{img.get('title') or ''} {img.get('source') or ''}".lower()
        return "poster" in text or "cover" in text

    best = next((img for img in images if _looks_like_poster(img)), images[0])
    return best.get("imageUrl")


def find_image_with_model(item: ContentItem, context: AgentContext) -> ContentItem:
    """Ask the LLM for an image URL; an invalid answer yields the placeholder."""
    if not context.llm_config.available:
        return item
    prompt = IMAGE_SEARCH_TEMPLATE.format(
        title=item.name,
        type=item.type,
        year=item.release_year,
        creator=item.studio,
        genres=", ".join(item.genres),
        priority=image_priority_for(item.type),
    )
    try:
        image_url = complete(prompt, temperature=0.2, max_tokens=256, config=context.llm_config).strip()
    except Exception:
        logger.warning("Model image search failed for %s", item.name, exc_info=True)
        return item

    if is_valid_image_url(image_url):
        cache_set(_cache_key(item), image_url)
        return item.model_copy(update={"image_url": image_url})
    logger.info("Using placeholder image for %s", item.name)
    return item.model_copy(update={"image_url": PLACEHOLDER_IMAGE})


def find_image_for_content(
    item: ContentItem,
    context: AgentContext,
    config: ImageSearchConfig = DEFAULT_IMAGE_CONFIG,
) -> ContentItem:
    if is_valid_image_url(item.image_url):
        return item

    try:
        cached = cache_get(_cache_key(item))
        if cached:
            return item.model_copy(update={"image_url": cached})

        if config.serper_api_key:
            image_url = search_serper(item, config)
            if is_valid_image_url(image_url):
                logger.info("Found image for %s using Serper: %s", item.name, image_url)
                cache_set(_cache_key(item), image_url)
                return item.model_copy(update={"image_url": image_url})

        return find_image_with_model(item, context)
    except Exception:
        logger.warning("Image lookup failed for %s", item.name, exc_info=True)
        return item.model_copy(update={"image_url": PLACEHOLDER_IMAGE})


def find_image_urls(
    items: list[ContentItem],
    context: AgentContext,
    config: ImageSearchConfig = DEFAULT_IMAGE_CONFIG,
) -> list[ContentItem]:
    """
    Resolve cover images for ``items`` in small concurrent batches.

    Order is preserved. A batch that fails as a whole keeps its original
    items, and batches are spaced by ``config.batch_delay`` seconds to stay
    under the image API's rate limit.
    """
    if not items:
        return items
    if not config.serper_api_key:
        logger.info("SERPER_API_KEY is not set, image search limited to the LLM")

    size = max(1, config.batch_size)
    enhanced: list[ContentItem] = []
    with ThreadPoolExecutor(max_workers=size) as pool:
        for start in range(0, len(items), size):
            batch = items[start:start + size]
            try:
                resolved = list(pool.map(lambda it: find_image_for_content(it, context, config), batch))
            except Exception:
                logger.warning("Image batch starting at %d failed", start, exc_info=True)
                enhanced.extend(batch)
            else:
                enhanced.extend(resolved)
            if start + size < len(items) and config.batch_delay > 0:
                time.sleep(config.batch_delay)
    return enhanced
