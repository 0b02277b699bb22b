"""
Prompt templates for the Lore Lens agents.

Search prompts are assembled from a per-type profile (expert persona, ranking
aspects, explanation highlights) so every content type shares one response
contract. Templates use ``str.format`` fields, so literal JSON braces are
doubled.
"""
from __future__ import annotations

from dataclasses import dataclass

SCORE_FORMAT = """\
IMPORTANT: Return ONLY a valid JSON array without any markdown formatting or code blocks.
Format your response as:
[
  {{
    "index": 1,
    "score": 0.95,
    "explanation": "{example}"
  }}
]"""


@dataclass(frozen=True)
class SearchProfile:
    persona: str
    noun: str
    aspects: tuple[str, ...]
    highlights: tuple[str, ...] = ()


BASE_PROFILE = SearchProfile(
    persona="an expert content discovery assistant with deep knowledge of entertainment media",
    noun="content items",
    aspects=(
        "Title and description semantic relevance to the query",
        "Genre matching and thematic alignment",
        "Creator reputation and quality standards",
        "Rating and popularity metrics",
        "Recency and cultural relevance",
    ),
)

SEARCH_PROFILES: dict[str, SearchProfile] = {
    "anime": SearchProfile(
        persona="an anime discovery specialist with expertise in Japanese animation",
        noun="anime titles",
        aspects=(
            "Title and synopsis semantic relevance",
            "Genre and subgenre matching (shounen, seinen, isekai, etc.)",
            "Studio reputation and animation quality",
            "MAL/AniList ratings and popularity",
            "Seasonal relevance and cultural impact",
            "Art style and visual aesthetics",
            "Target demographic alignment",
        ),
        highlights=(
            "Plot elements matching the query",
            "Art style and animation quality",
            "Character development and themes",
            "Comparable popular titles",
        ),
    ),
    "movie": SearchProfile(
        persona="a film critic and discovery specialist with expertise in cinema",
        noun="movies",
        aspects=(
            "Plot and thematic relevance to the query",
            "Director, cast, and production quality",
            "Critical acclaim and audience reception",
            "Cultural impact and cinematic significance",
            "Visual style and cinematography",
            "Awards and recognition",
        ),
        highlights=(
            "Directorial style and vision",
            "Standout performances",
            "Thematic depth and storytelling",
        ),
    ),
    "webseries": SearchProfile(
        persona="a streaming content expert with deep knowledge of web series across platforms",
        noun="web series",
        aspects=(
            "Platform and production quality (Netflix, Amazon, Hulu, etc.)",
            "Narrative structure and binge-worthiness",
            "Release schedule and season availability",
            "Creator/showrunner reputation",
            "Cultural relevance and social media buzz",
        ),
        highlights=(
            "Platform-specific advantages",
            "Narrative innovation and structure",
            "Production values and visual style",
        ),
    ),
    "manga": SearchProfile(
        persona="a manga expert with deep knowledge of Japanese comics and visual storytelling",
        noun="manga titles",
        aspects=(
            "Story and thematic relevance to the query",
            "Mangaka style and artistic quality",
            "Publication history and completion status",
            "Demographic target (shounen, shoujo, seinen, josei)",
            "Cultural impact in Japan and internationally",
        ),
        highlights=(
            "Art style and visual distinctiveness",
            "Storytelling approach and pacing",
            "Publication context and history",
        ),
    ),
    "manhua": SearchProfile(
        persona="a Chinese comics expert with deep knowledge of manhua and its unique characteristics",
        noun="manhua titles",
        aspects=(
            "Story and thematic relevance to the query",
            "Artist style and color usage",
            "Cultivation, xianxia, and wuxia elements",
            "Translation quality and accessibility",
            "Update frequency and chapter length",
        ),
        highlights=(
            "Distinctive art style and color usage",
            "Chinese cultural elements and themes",
            "What distinguishes it from manga or manhwa",
        ),
    ),
    "manhwa": SearchProfile(
        persona="a Korean comics expert with deep knowledge of manhwa and its distinctive features",
        noun="manhwa titles",
        aspects=(
            "Story and thematic relevance to the query",
            "Webtoon format and vertical scrolling design",
            "Platform distribution (Naver, LINE, Tapas, etc.)",
            "Translation quality and official localization",
            "Update schedule and episode length",
        ),
        highlights=(
            "Color usage and digital-first design",
            "Korean storytelling elements",
            "Platform availability and translation",
        ),
    ),
    "lightnovel": SearchProfile(
        persona="a light novel expert with deep knowledge of Japanese light novels and their adaptations",
        noun="light novel titles",
        aspects=(
            "Story premise and narrative hooks",
            "Writing style and translation quality",
            "Illustration quality and character designs",
            "Adaptation status (anime, manga, etc.)",
            "Subgenre tropes and innovations",
        ),
        highlights=(
            "Narrative strengths and unique premise",
            "Illustration style and quality",
            "Related adaptations and multimedia presence",
        ),
    ),
    "webnovel": SearchProfile(
        persona="a web novel expert with deep knowledge of online fiction across platforms",
        noun="web novel titles",
        aspects=(
            "Story premise and narrative engagement",
            "Platform and accessibility (Wuxiaworld, RoyalRoad, Webnovel, etc.)",
            "Translation quality for non-English originals",
            "Length and completion status",
            "Author consistency and writing quality",
        ),
        highlights=(
            "Narrative strengths and reader engagement",
            "Update schedule and reliability",
            "What makes it worth investing time in",
        ),
    ),
}

TYPE_ALIASES: dict[str, str] = {
    "anime": "anime",
    "animation": "anime",
    "movie": "movie",
    "movies": "movie",
    "film": "movie",
    "feature": "movie",
    "webseries": "webseries",
    "web series": "webseries",
    "web-series": "webseries",
    "manga": "manga",
    "manhua": "manhua",
    "manhwa": "manhwa",
    "lightnovel": "lightnovel",
    "light novel": "lightnovel",
    "light-novel": "lightnovel",
    "webnovel": "webnovel",
    "web novel": "webnovel",
    "web-novel": "webnovel",
}

IMAGE_PRIORITIES: dict[str, str] = {
    "anime": "Official key visuals, Blu-ray covers, streaming service artwork, MyAnimeList or AniList images",
    "movie": "Theatrical release posters, Blu-ray/DVD covers, official promotional stills, IMDB or TMDB images",
    "webseries": "Official platform artwork (Netflix/Amazon/Hulu), season posters, promotional stills",
    "manga": "Volume covers, official color spreads, publisher promotional images, MyAnimeList images",
    "manhua": "Official cover art, platform promotional images (Kuaikan, Bilibili), color spreads",
    "manhwa": "Official Webtoon/Naver covers, promotional banners, creator-approved artwork",
    "lightnovel": "Official light novel covers, publisher website images, promotional artwork",
    "webnovel": "Official platform covers (Wuxiaworld, Webnovel, etc.), author-approved artwork",
}
DEFAULT_IMAGE_PRIORITY = "Official artwork, promotional images, high-quality cover art"


def canonical_type(content_type: str) -> str | None:
    return TYPE_ALIASES.get(content_type.strip().lower())


def search_profile_for(content_type: str) -> SearchProfile:
    key = canonical_type(content_type)
    return SEARCH_PROFILES.get(key, BASE_PROFILE) if key else BASE_PROFILE


def image_priority_for(content_type: str) -> str:
    key = canonical_type(content_type)
    return IMAGE_PRIORITIES.get(key, DEFAULT_IMAGE_PRIORITY) if key else DEFAULT_IMAGE_PRIORITY


def _numbered(lines: tuple[str, ...]) -> str:
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))


def render_search_prompt(content_type: str, query: str, content_items: str) -> str:
    profile = search_profile_for(content_type)
    parts = [
        f"You are LoreLens, {profile.persona}.",
        f"Your task is to analyze the search query and rank {profile.noun} based on their relevance.",
        "",
        f'Search Query: "{query}"',
        "",
        "Consider these aspects when ranking:",
        _numbered(profile.aspects),
        "",
        f"{profile.noun.capitalize()} to analyze:",
        content_items,
        "",
        "For each item, provide:",
        "1. A relevance score between 0 and 1 (1 being most relevant)",
        "2. A brief explanation of why this content matches or doesn't match the query",
    ]
    if profile.highlights:
        parts.append("   Highlight aspects like:")
        parts.extend(f"   - {h}" for h in profile.highlights)
    parts.extend(["", SCORE_FORMAT.format(example="Strong match because...")])
    return "\n".join(parts)


GENERATION_TEMPLATE = """\
Generate 5 diverse content recommendations for a user interested in {content_types} with the following criteria:
- Search query: {query}
- Minimum rating: {min_rating}
- Year range: {year_start} to {year_end}
- Preferred genres: {genres}
- Preferred studios: {studios}

For each recommendation, provide:
- name: a unique title
- type: one of ({content_types})
- description: a brief description
- release_year: between {year_start} and {year_end}
- rating: between {min_rating} and 10
- studio: the studio or creator name
- genres: a list of genres

Format as a JSON array of objects."""

PERSONALIZATION_TEMPLATE = """\
You are LoreLens, a personalization expert with deep understanding of user preferences and content recommendation.
Analyze the user's profile and interaction history to rerank the content items for maximum personal relevance.

User Profile:
- Favorite Genres: {favorite_genres}
- Favorite Studios/Creators: {favorite_studios}
- Minimum Rating Preference: {min_rating}
- Preferred Content Types: {preferred_content_types}

Recent Interaction History:
{user_interactions}

Content items to analyze and personalize:
{content_items}

For each item provide:
1. A personalization score between 0 and 1 (1 being perfectly aligned with user preferences)
2. An explanation of why this content would appeal to this specific user, including
   connections to their favorite genres and creators and similarities to content they enjoyed.

DO NOT include any text before or after the JSON array."""

EXPLANATION_TEMPLATE = """\
You are LoreLens, a content recommendation expert with a talent for explaining why content would appeal to users.
Create a compelling, conversational explanation for why this content item would be interesting to the user.

Content Details:
Title: {title}
Type: {type}
Genres: {genres}
Creator: {creator}
Rating: {rating}
Year: {year}
Description: {description}

Relevance Score: {relevance_score}
{personalization_line}

Original Explanation: {original_explanation}

Highlight the most compelling aspects, mention similar works as reference points,
and connect it to the user's search or preferences in a friendly tone.
Keep it concise (2-3 sentences) and specific to THIS content."""

RELATED_CONTENT_TEMPLATE = """\
You are LoreLens, a content connection expert who excels at finding meaningful relationships between media.
Find similar content items that would genuinely appeal to someone who enjoys the reference content.

Reference Content:
Title: {title}
Type: {type}
Description: {description}
Genres: {genres}
Creator: {creator}

Available content to analyze:
{content_items}

For each potential match, provide:
1. A similarity score between 0 and 1 (1 being most similar)
2. An explanation focusing on thematic connections, shared creative approaches,
   and why fans of the reference content would enjoy it.
"""

IMAGE_SEARCH_TEMPLATE = """\
You are LoreLens, a visual content specialist with expertise in finding the perfect representative images.
Find the best official poster or cover image URL for the following content:

Title: {title}
Type: {type}
Year: {year}
Creator: {creator}
Genres: {genres}

The image should be an official poster, cover art, or promotional image in high resolution,
from a reputable source, and a direct image URL (ending with .jpg, .png, .webp, etc.).

For {type} content, prioritize:
{priority}

Return ONLY the direct image URL with no additional text or explanation."""


def render_personalization_prompt(**fields: str) -> str:
    return "\n\n".join([
        PERSONALIZATION_TEMPLATE.format(**fields),
        SCORE_FORMAT.format(example="Strongly matches user preferences because..."),
    ])


def render_related_prompt(**fields: str) -> str:
    return "\n\n".join([
        RELATED_CONTENT_TEMPLATE.format(**fields),
        SCORE_FORMAT.format(example="Fans of the reference would enjoy this because..."),
    ])
