from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from lorelens.discovery.models import (
    AgentContext,
    InteractionType,
    SearchResult,
    UserInteraction,
    UserPreferences,
)
from lorelens.discovery.personalization import (
    analyze_user_preferences,
    blend_scores,
    build_personalization_prompt,
    interaction_weight,
    personalize_results,
)
from lorelens.llm.config import LLMConfig

CONTEXT = AgentContext(
    user_id="reader",
    is_personalized=True,
    llm_config=LLMConfig(api_key="test-key"),
)
PREFS = UserPreferences(favorite_genres=["Fantasy"], favorite_studios=["Madhouse"])


@pytest.fixture
def results(make_item):
    return [
        SearchResult(content=make_item(id="a1"), relevance_score=0.9, explanation="Fits the query"),
        SearchResult(
            content=make_item(id="m1", name="Arrival", type="movie", studio="Paramount", genres=["Sci-Fi"]),
            relevance_score=0.5,
            explanation="Loosely related",
        ),
    ]


def test_blend_scores():
    assert blend_scores(1.0, 0.0) == pytest.approx(0.4)
    assert blend_scores(0.5, 1.0) == pytest.approx(0.8)


def test_prompt_defaults_for_empty_profile(results):
    prompt = build_personalization_prompt(results, UserPreferences(min_rating=0), [])

    assert "Favorite Genres: None specified" in prompt
    assert "Minimum Rating Preference: Not set" in prompt
    assert "Preferred Content Types: All types" in prompt
    assert "No interactions yet" in prompt
    assert "Base Relevance Score: 0.9" in prompt
    assert '"index": 1' in prompt


def test_prompt_lists_at_most_five_interactions(make_item, results):
    interactions = [
        UserInteraction(content=make_item(id=str(n), name=f"Show {n}"), interaction_type="completed")
        for n in range(8)
    ]

    prompt = build_personalization_prompt(results, PREFS, interactions)

    assert "Show 4" in prompt
    assert "Show 5" not in prompt
    assert "Status: completed" in prompt


@patch("lorelens.discovery.personalization.complete")
def test_personalize_reranks_and_blends(mock_complete, results):
    mock_complete.return_value = json.dumps([
        {"index": 1, "score": 0.2, "explanation": "Not your usual pick"},
        {"index": 2, "score": 1.0, "explanation": "Right up your alley"},
    ])

    ranked = personalize_results(results, PREFS, [], CONTEXT)

    assert [r.content.id for r in ranked] == ["m1", "a1"]
    assert ranked[0].personalization_score == 1.0
    assert ranked[0].relevance_score == pytest.approx(0.5 * 0.4 + 1.0 * 0.6)
    assert ranked[0].explanation == "Right up your alley"
    assert ranked[1].relevance_score == pytest.approx(0.9 * 0.4 + 0.2 * 0.6)
    assert mock_complete.call_args.kwargs["temperature"] == 0.6


@patch("lorelens.discovery.personalization.complete")
def test_out_of_range_and_non_numeric_entries_are_skipped(mock_complete, results):
    mock_complete.return_value = json.dumps([
        {"index": 5, "score": 0.9, "explanation": "ghost"},
        {"index": 2, "score": "high", "explanation": "bad score"},
        {"index": 1, "score": 0.7, "explanation": "kept"},
    ])

    ranked = personalize_results(results, PREFS, [], CONTEXT)

    assert [r.content.id for r in ranked] == ["a1"]
    assert ranked[0].explanation == "kept"


@patch("lorelens.discovery.personalization.complete")
def test_recovers_array_from_prose(mock_complete, results):
    mock_complete.return_value = (
        'Here you go:\n[{"index": 2, "score": 0.9}, {"index": 1, "score": 0.1}]\nEnjoy!'
    )

    ranked = personalize_results(results, PREFS, [], CONTEXT)

    assert [r.content.id for r in ranked] == ["m1", "a1"]
    assert ranked[0].explanation == "Loosely related"


@pytest.mark.parametrize("reply", ["no json here", '{"index": 1, "score": 0.4}'])
@patch("lorelens.discovery.personalization.complete")
def test_unparseable_reply_keeps_search_ranking(mock_complete, reply, results):
    mock_complete.return_value = reply
    assert personalize_results(results, PREFS, [], CONTEXT) == results


@patch("lorelens.discovery.personalization.complete")
def test_model_error_keeps_search_ranking(mock_complete, results):
    mock_complete.side_effect = Exception("rate limited")
    assert personalize_results(results, PREFS, [], CONTEXT) == results


@patch("lorelens.discovery.personalization.complete")
def test_not_personalized_is_passthrough(mock_complete, results):
    anonymous = AgentContext(llm_config=LLMConfig(api_key="test-key"))

    assert personalize_results(results, PREFS, [], anonymous) is results
    assert personalize_results([], PREFS, [], CONTEXT) == []
    mock_complete.assert_not_called()


def test_interaction_weight_scales_with_rating(make_item):
    item = make_item()
    assert interaction_weight(UserInteraction(content=item, interaction_type="completed")) == 1.0
    assert interaction_weight(
        UserInteraction(content=item, interaction_type="watching", rating=10)
    ) == pytest.approx(1.6)
    assert interaction_weight(UserInteraction(content=item, interaction_type=InteractionType.saved)) == 0.0


def test_analyze_user_preferences(make_item):
    interactions = [
        UserInteraction(content=make_item(), interaction_type="completed"),
        UserInteraction(
            content=make_item(id="m1", type="movie", studio="Paramount", genres=["Sci-Fi", "Fantasy"]),
            interaction_type="dropped",
        ),
        UserInteraction(content=make_item(id="a2"), interaction_type="planned", rating=5),
    ]

    affinities = analyze_user_preferences(interactions)

    assert affinities["genre_affinities"]["Fantasy"] == pytest.approx(1.0 - 0.2 + 0.3)
    assert affinities["genre_affinities"]["Sci-Fi"] == pytest.approx(-0.2)
    assert affinities["studio_affinities"]["Madhouse"] == pytest.approx(1.3)
    assert affinities["content_type_preferences"] == pytest.approx({"anime": 1.3, "movie": -0.2})


def test_analyze_user_preferences_empty():
    assert analyze_user_preferences([]) == {
        "genre_affinities": {},
        "studio_affinities": {},
        "content_type_preferences": {},
    }


@patch("lorelens.discovery.personalization.complete")
def test_non_finite_entries_are_skipped(mock_complete, results):
    mock_complete.return_value = (
        '[{"index": NaN, "score": 0.9, "explanation": "nan index"},'
        ' {"index": 1, "score": Infinity, "explanation": "infinite score"},'
        ' {"index": 1e999, "score": 0.8, "explanation": "overflowing index"},'
        ' {"index": 2, "score": 0.6, "explanation": "kept"}]'
    )

    ranked = personalize_results(results, PREFS, [], CONTEXT)

    assert [r.content.id for r in ranked] == ["m1"]
    assert ranked[0].personalization_score == 0.6


@patch("lorelens.discovery.personalization.complete")
def test_fractional_index_is_skipped(mock_complete, results):
    mock_complete.return_value = json.dumps([
        {"index": 1.5, "score": 0.9, "explanation": "between"},
        {"index": 1.0, "score": 0.4, "explanation": "whole"},
    ])

    ranked = personalize_results(results, PREFS, [], CONTEXT)

    assert [(r.content.id, r.explanation) for r in ranked] == [("a1", "whole")]
