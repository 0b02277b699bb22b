from __future__ import annotations

from ..discovery.models import UserPreferences

_DEFAULT_MIN_RATING = 7.0

_preferences: dict[str, UserPreferences] = {}


def get_preferences(user_id: str) -> UserPreferences:
    """Return stored preferences, or the defaults for a user who never saved any."""
    stored = _preferences.get(user_id)
    return stored.model_copy() if stored else UserPreferences()


def has_preferences(user_id: str) -> bool:
    return user_id in _preferences


def save_preferences(user_id: str, prefs: UserPreferences) -> UserPreferences:
    saved = UserPreferences(
        favorite_genres=prefs.favorite_genres or [],
        favorite_studios=prefs.favorite_studios or [],
        min_rating=prefs.min_rating or _DEFAULT_MIN_RATING,
        preferred_content_types=prefs.preferred_content_types or [],
    )
    _preferences[user_id] = saved
    return saved


def clear_preferences() -> None:
    _preferences.clear()
