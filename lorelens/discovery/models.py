from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from pydantic import BaseModel, Field

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig

CONTENT_TYPES = [
    "anime",
    "movie",
    "webseries",
    "manga",
    "manhua",
    "manhwa",
    "lightnovel",
    "webnovel",
]


def _current_year() -> int:
    return date.today().year


class ContentItem(BaseModel):
    id: str
    name: str
    type: str
    description: str = ""
    release_year: int
    rating: float
    studio: str = ""
    genres: list[str] = Field(default_factory=list)
    image_url: str = ""
    views_count: int = 0
    likes_count: int = 0
    comments_count: int = 0
    is_saved: bool | None = None


class SearchFilters(BaseModel):
    min_rating: float = Field(default=8.0, ge=0.0, le=10.0)
    year_start: int = 2010
    year_end: int = Field(default_factory=_current_year)
    genres: list[str] = Field(default_factory=list)
    studios: list[str] = Field(default_factory=list)


class UserPreferences(BaseModel):
    favorite_genres: list[str] = Field(default_factory=list)
    favorite_studios: list[str] = Field(default_factory=list)
    min_rating: float = Field(default=7.0, ge=0.0, le=10.0)
    preferred_content_types: list[str] = Field(default_factory=list)


class InteractionType(str, Enum):
    watched = "watched"
    watching = "watching"
    reading = "reading"
    completed = "completed"
    dropped = "dropped"
    planned = "planned"
    saved = "saved"


class UserInteraction(BaseModel):
    content: ContentItem
    interaction_type: InteractionType
    rating: float | None = None
    review: str | None = None


class SearchResult(BaseModel):
    content: ContentItem
    relevance_score: float
    personalization_score: float | None = None
    explanation: str | None = None


@dataclass
class AgentContext:
    """Per-request state shared by the discovery agents."""

    filters: SearchFilters = field(default_factory=SearchFilters)
    user_id: str | None = None
    is_personalized: bool = False
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG


# ── HTTP bodies ──────────────────────────────────────────────────────────


class SearchRequest(BaseModel):
    query: str | None = Field(default=None, max_length=500)
    content_types: list[str] = Field(default_factory=list)
    filters: SearchFilters = Field(default_factory=SearchFilters)
    is_personalized: bool = False


class SearchResponse(BaseModel):
    results: list[SearchResult]
    total: int
    message: str


class SaveContentRequest(BaseModel):
    content_id: str = Field(..., min_length=1)


class InteractionRequest(BaseModel):
    content_id: str = Field(..., min_length=1)
    interaction_type: InteractionType
    rating: float | None = Field(default=None, ge=0.0, le=10.0)
    review: str | None = Field(default=None, max_length=2000)


class SavedContentOut(ContentItem):
    interaction_id: str
    interaction_type: InteractionType
    updated_at: float


class RecommendationRecord(BaseModel):
    recommendation_id: str
    score: float
    reason: str
    created_at: float
    content: ContentItem | None


class RecommendationHistoryResponse(BaseModel):
    recommendations: list[RecommendationRecord]
    count: int
    limit: int
    offset: int
