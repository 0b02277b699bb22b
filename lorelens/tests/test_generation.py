from __future__ import annotations

import json
from unittest.mock import patch

from lorelens.discovery.generation import (
    build_generation_prompt,
    fallback_items,
    generate_candidates,
    normalize_item,
)
from lorelens.discovery.models import SearchFilters
from lorelens.llm.config import LLMConfig

ENABLED = LLMConfig(api_key="test-key")
DISABLED = LLMConfig(api_key="")


def test_generation_prompt_includes_constraints():
    filters = SearchFilters(min_rating=8.5, year_start=2015, year_end=2024, genres=["Horror"])
    prompt = build_generation_prompt("haunted school", ["anime", "manga"], filters)

    assert "interested in anime, manga" in prompt
    assert "Search query: haunted school" in prompt
    assert "Year range: 2015 to 2024" in prompt
    assert "Preferred genres: Horror" in prompt
    assert "Preferred studios: Any" in prompt


def test_generation_prompt_without_query_or_types():
    prompt = build_generation_prompt(None, [], SearchFilters())

    assert "any content type" in prompt
    assert "Search query: None specified" in prompt


def test_normalize_item_fills_defaults():
    item = normalize_item({"name": "Blame!", "rating": True, "genres": []}, ["manga"])

    assert item.name == "Blame!"
    assert item.type == "manga"
    assert item.description == "No description available"
    assert item.release_year == 2000
    assert item.rating == 7.0
    assert item.studio == "Unknown Studio"
    assert item.genres == ["Unknown"]
    assert item.image_url == ""
    assert item.id


def test_normalize_item_keeps_generated_fields():
    item = normalize_item({
        "name": "Vinland Saga",
        "type": "anime",
        "description": "Vikings.",
        "release_year": 2019,
        "rating": 8.8,
        "studio": "Wit Studio",
        "genres": ["Action", "Historical"],
    }, ["movie"])

    assert (item.type, item.release_year, item.rating, item.studio) == ("anime", 2019, 8.8, "Wit Studio")
    assert item.genres == ["Action", "Historical"]


def test_normalize_item_assigns_unique_ids():
    assert normalize_item({}, []).id != normalize_item({}, []).id
    assert normalize_item("not an object", []).type == "movie"


def test_fallback_items():
    items = fallback_items("space opera", ["webseries"], SearchFilters())

    assert [i.name for i in items] == ["space opera Movie 1", "space opera Movie 2"]
    assert [i.rating for i in items] == [8.0, 7.5]
    assert [i.release_year for i in items] == [2020, 2021]
    assert items[0].genres == ["Action", "Drama"]
    assert items[1].genres == ["Adventure", "Thriller"]
    assert all(i.type == "webseries" for i in items)


def test_fallback_items_use_filter_genres():
    items = fallback_items(None, [], SearchFilters(genres=["Romance"]))

    assert items[0].name == "Recommended Movie 1"
    assert items[0].type == "movie"
    assert all(i.genres == ["Romance"] for i in items)


@patch("lorelens.discovery.generation.complete")
def test_generate_candidates_parses_fenced_reply(mock_complete):
    mock_complete.return_value = "```json\n" + json.dumps([
        {"name": "Mushishi", "type": "anime", "rating": 8.7, "release_year": 2005},
        {"name": "Dorohedoro", "type": "manga", "rating": 8.4, "release_year": 2000},
    ]) + "\n```"

    items = generate_candidates("eerie", ["anime", "manga"], SearchFilters(), ENABLED)

    assert [i.name for i in items] == ["Mushishi", "Dorohedoro"]
    assert mock_complete.call_args.kwargs["temperature"] == 0.7
    assert mock_complete.call_args.kwargs["max_tokens"] == 4096


@patch("lorelens.discovery.generation.complete")
def test_generate_candidates_falls_back_on_error(mock_complete):
    mock_complete.side_effect = Exception("timeout")

    items = generate_candidates("eerie", ["anime"], SearchFilters(), ENABLED)

    assert [i.name for i in items] == ["eerie Movie 1", "eerie Movie 2"]


@patch("lorelens.discovery.generation.complete")
def test_generate_candidates_falls_back_on_empty_array(mock_complete):
    mock_complete.return_value = "[]"
    assert len(generate_candidates("x", [], SearchFilters(), ENABLED)) == 2


@patch("lorelens.discovery.generation.complete")
def test_generate_candidates_skips_model_without_key(mock_complete):
    items = generate_candidates("eerie", ["anime"], SearchFilters(), DISABLED)

    assert len(items) == 2
    mock_complete.assert_not_called()


def test_normalize_item_rejects_non_finite_numbers():
    item = normalize_item({
        "name": "Overflow",
        "release_year": float("inf"),
        "rating": float("nan"),
        "views_count": -float("inf"),
    }, ["anime"])

    assert item.release_year == 2000
    assert item.rating == 7.0
    assert item.views_count == 0


@patch("lorelens.discovery.generation.complete")
def test_generate_candidates_survives_overflowing_literals(mock_complete):
    mock_complete.return_value = '[{"name": "Big Year", "release_year": 1e999, "rating": NaN}]'

    items = generate_candidates("eerie", ["anime"], SearchFilters(), ENABLED)

    assert [i.name for i in items] == ["Big Year"]
    assert (items[0].release_year, items[0].rating) == (2000, 7.0)
