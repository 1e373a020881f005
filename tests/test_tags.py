"""
Tests for tag normalization, weighting and trend enrichment.
"""
from unittest.mock import patch, MagicMock, AsyncMock
import asyncio

import httpx

from stylist_ai.core.tags import (
    DEFAULT_WEIGHT,
    TREND_WEIGHT,
    compress_tags,
    enrich_tags,
    normalize_tag,
    normalize_tags,
    weight_tags,
)
from stylist_ai.services.trends import DEFAULT_TREND_TAGS, fetch_trend_tags


class TestNormalization:

    def test_normalize_tag(self):
        assert normalize_tag("  Leather_Jacket!! ") == "leather jacket"
        assert normalize_tag("Off-White") == "off-white"
        assert normalize_tag("Outfit") == ""
        assert normalize_tag(None) == ""

    def test_normalize_tags_dedupes_first_wins(self):
        assert normalize_tags(["Denim", "denim", "LOOK", "Blazer", "denim!"]) == ["denim", "blazer"]

    def test_empty_input(self):
        assert normalize_tags(None) == []
        assert normalize_tags([]) == []


class TestWeighting:

    def test_garments_outrank_moods(self):
        weighted = weight_tags(["cozy", "blazer", "casual"])
        assert [w.tag for w in weighted] == ["blazer", "cozy", "casual"]
        assert weighted[1].weight == DEFAULT_WEIGHT

    def test_ties_keep_input_order(self):
        weighted = weight_tags(["alpha", "beta", "gamma"])
        assert [w.tag for w in weighted] == ["alpha", "beta", "gamma"]

    def test_enrich_adds_new_trends_after_user_tags(self):
        enriched = enrich_tags(["jeans", "loafers"], ["Loafers", "quiet luxury", "suede", "earth tones", "y2k"])
        tags = [w.tag for w in enriched]
        assert tags[:2] == ["jeans", "loafers"]
        assert tags[2:] == ["quiet luxury", "suede", "earth tones"]
        assert all(w.weight == TREND_WEIGHT and w.source == "trend" for w in enriched[2:])

    def test_enrich_caps_total(self):
        enriched = enrich_tags([f"tag{i}" for i in range(10)], ["trend"], max_tags=8)
        assert len(enriched) == 8
        assert all(w.source == "user" for w in enriched)

    def test_compress_tags(self):
        assert compress_tags(["Black", "blazer", "Outfit", "wool"], limit=2) == "black blazer"


class TestTrendFeed:

    def test_defaults_without_feed(self):
        tags = asyncio.run(fetch_trend_tags(limit=3))
        assert tags == normalize_tags(DEFAULT_TREND_TAGS)[:3]

    def test_feed_payload_parsed_and_cached(self, configure):
        configure(STYLIST_TRENDS_FEED_URL="https://trends.example.com/feed")
        response = MagicMock()
        response.json.return_value = {"trends": [{"name": "Barn Jacket"}, "Mesh Flats", {"title": "Burgundy"}]}
        response.raise_for_status.return_value = None

        client = AsyncMock()
        client.get.return_value = response
        client.__aenter__.return_value = client

        with patch("stylist_ai.services.trends.httpx.AsyncClient", return_value=client):
            first = asyncio.run(fetch_trend_tags())
            second = asyncio.run(fetch_trend_tags())

        assert first == ["barn jacket", "mesh flats", "burgundy"]
        assert second == first
        assert client.get.await_count == 1

    def test_feed_failure_falls_back(self, configure):
        configure(STYLIST_TRENDS_FEED_URL="https://trends.example.com/feed")
        client = AsyncMock()
        client.get.side_effect = httpx.ConnectError("down")
        client.__aenter__.return_value = client

        with patch("stylist_ai.services.trends.httpx.AsyncClient", return_value=client):
            tags = asyncio.run(fetch_trend_tags(limit=2))

        assert tags == normalize_tags(DEFAULT_TREND_TAGS)[:2]
