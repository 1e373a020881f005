"""
Tests for the seasonal capsule heuristic.
"""
from datetime import date

import pytest

from stylist_ai.core.capsule import (
    current_season,
    find_missing_items,
    get_template,
    get_wardrobe_gaps,
    season_for_month,
)


class TestSeasons:
    """Month to season mapping."""

    @pytest.mark.parametrize("month,season", [
        (1, "Winter"), (2, "Winter"), (3, "Spring"), (5, "Spring"),
        (6, "Summer"), (8, "Summer"), (9, "Fall"), (11, "Fall"), (12, "Winter"),
    ])
    def test_season_for_month(self, month, season):
        assert season_for_month(month) == season

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_invalid_month_rejected(self, month):
        with pytest.raises(ValueError):
            season_for_month(month)

    def test_current_season_uses_given_date(self):
        assert current_season(date(2024, 7, 14)) == "Summer"

    def test_template_lookup_is_case_insensitive(self):
        assert get_template("winter").season == "Winter"
        assert get_template("AUTUMN").season == "Fall"

    def test_unknown_template(self):
        with pytest.raises(ValueError):
            get_template("Monsoon")


class TestWardrobeGaps:
    """Gap report against templates."""

    def test_empty_wardrobe_misses_everything(self):
        missing = find_missing_items("Winter", [])
        assert {"category": "Outerwear", "subcategory": "Overcoat", "needed": 1} in missing
        assert {"category": "Shoes", "subcategory": "Boots", "needed": 2} in missing
        assert len(missing) == len(get_template("Winter").core)

    def test_owned_items_reduce_need(self):
        wardrobe = [
            {"main_category": "Shoes", "subcategory": "Boots"},
            {"category": "outerwear", "subcategory": "overcoat"},
        ]
        missing = find_missing_items("Winter", wardrobe)
        boots = [m for m in missing if m["subcategory"] == "Boots"]
        assert boots == [{"category": "Shoes", "subcategory": "Boots", "needed": 1}]
        assert not any(m["subcategory"] == "Overcoat" for m in missing)

    def test_complete_capsule(self):
        wardrobe = []
        for item in get_template("Summer").core:
            wardrobe += [{"category": item.category, "subcategory": item.subcategory}] * item.recommended
        assert get_wardrobe_gaps("Summer", wardrobe) == "Your Summer capsule is complete."

    def test_gap_report_format(self):
        report = get_wardrobe_gaps("fall", [])
        assert report.startswith("For Fall, you're missing: 1 × Field Jacket, 1 × Blazer")
        assert report.endswith(".")

    def test_malformed_entries_ignored(self):
        wardrobe = ["boots", None, {"category": 5}]
        assert len(find_missing_items("Spring", wardrobe)) == len(get_template("Spring").core)
