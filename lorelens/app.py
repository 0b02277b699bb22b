from __future__ import annotations

import os

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .auth.dependencies import get_current_user, require_admin, require_user
from .auth.models import LoginRequest, RegisterRequest
from .auth.users import RegistrationError, authenticate, register
from .discovery.cache import get_cache_stats
from .discovery.models import (
    CONTENT_TYPES,
    AgentContext,
    InteractionRequest,
    RecommendationHistoryResponse,
    RecommendationRecord,
    SaveContentRequest,
    SavedContentOut,
    SearchRequest,
    SearchResponse,
    SearchResult,
    UserPreferences,
)
from .discovery.personalization import analyze_user_preferences
from .discovery.pipeline import suggest_related_content
from .discovery.service import run_search
from .store.content import get_content, list_content
from .store.history import delete_recommendations, list_recommendations
from .store.interactions import (
    get_all_interactions,
    get_user_interactions,
    load_user_interactions,
    remove_saved,
    upsert_interaction,
)
from .store.preferences import get_preferences, save_preferences

app = FastAPI(title="Lore Lens Discovery API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "lorelens-secret-change-in-production"),
)


def _require_content(content_id: str):
    content = get_content(content_id)
    if content is None:
        raise HTTPException(status_code=404, detail="Content not found")
    return content


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/content-types")
def content_types() -> dict:
    return {"content_types": CONTENT_TYPES}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/register", status_code=201)
def sign_up(body: RegisterRequest, request: Request) -> dict:
    try:
        user = register(body.username, body.password)
    except RegistrationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Lore Lens search ─────────────────────────────────────────────────────


@app.post("/lore-lens/search", response_model=SearchResponse)
def search(
    body: SearchRequest,
    user: dict | None = Depends(get_current_user),
) -> SearchResponse:
    return run_search(body, user_id=user["user_id"] if user else None)


@app.get("/lore-lens/content/{content_id}/related", response_model=list[SearchResult])
def related_content(
    content_id: str,
    user: dict = Depends(require_user),
) -> list[SearchResult]:
    content = _require_content(content_id)
    others = [c for c in list_content() if c.id != content_id]
    return suggest_related_content(content, others, AgentContext(user_id=user["user_id"]))


# ── Saved content & interactions ─────────────────────────────────────────


@app.put("/lore-lens/saved")
def save_content(body: SaveContentRequest, user: dict = Depends(require_user)) -> dict:
    _require_content(body.content_id)
    upsert_interaction(user["user_id"], body.content_id, "saved")
    return {"success": True, "message": "Content saved successfully"}


@app.get("/lore-lens/saved")
def saved_content(user: dict = Depends(require_user)) -> dict:
    saved: list[SavedContentOut] = []
    for record in get_user_interactions(user["user_id"]):
        if record["interaction_type"] != "saved":
            continue
        content = get_content(record["content_id"])
        if content is None:
            continue
        saved.append(SavedContentOut(
            **content.model_dump(exclude={"is_saved"}),
            is_saved=True,
            interaction_id=record["id"],
            interaction_type=record["interaction_type"],
            updated_at=record["updated_at"],
        ))
    return {"success": True, "saved_content": saved, "count": len(saved)}


@app.delete("/lore-lens/saved/{content_id}")
def unsave_content(content_id: str, user: dict = Depends(require_user)) -> dict:
    removed = remove_saved(user["user_id"], content_id)
    return {"success": True, "removed": removed, "message": "Content removed successfully"}


@app.post("/lore-lens/interactions", status_code=201)
def record_interaction(body: InteractionRequest, user: dict = Depends(require_user)) -> dict:
    _require_content(body.content_id)
    record = upsert_interaction(
        user["user_id"],
        body.content_id,
        body.interaction_type,
        rating=body.rating,
        review=body.review,
    )
    return {"success": True, "interaction": record}


@app.get("/lore-lens/affinities")
def affinities(user: dict = Depends(require_user)) -> dict:
    return analyze_user_preferences(load_user_interactions(user["user_id"]))


# ── Recommendation history ───────────────────────────────────────────────


@app.get("/lore-lens/recommendations", response_model=RecommendationHistoryResponse)
def recommendation_history(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: dict = Depends(require_user),
) -> RecommendationHistoryResponse:
    rows, total = list_recommendations(user["user_id"], limit=limit, offset=offset)
    records = [
        RecommendationRecord(
            recommendation_id=row["id"],
            score=row["score"],
            reason=row["reason"],
            created_at=row["created_at"],
            content=get_content(row["content_id"]),
        )
        for row in rows
    ]
    return RecommendationHistoryResponse(
        recommendations=records, count=total, limit=limit, offset=offset,
    )


@app.delete("/lore-lens/recommendations")
def clear_recommendation_history(
    recommendation_id: str | None = None,
    user: dict = Depends(require_user),
) -> dict:
    deleted = delete_recommendations(user["user_id"], recommendation_id)
    message = (
        "Recommendation deleted successfully"
        if recommendation_id else "All recommendations deleted successfully"
    )
    return {"success": True, "deleted": deleted, "message": message}


# ── Preferences ──────────────────────────────────────────────────────────


@app.get("/user-preferences", response_model=UserPreferences)
def read_preferences(user: dict = Depends(require_user)) -> UserPreferences:
    return get_preferences(user["user_id"])


@app.post("/user-preferences")
def update_preferences(body: UserPreferences, user: dict = Depends(require_user)) -> dict:
    return {"success": True, "data": save_preferences(user["user_id"], body)}


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events(), get_all_interactions(), get_content)


@app.get("/cache/stats")
def cache_stats(user: dict = Depends(require_admin)) -> dict:
    return get_cache_stats()
