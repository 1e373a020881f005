"""
Tests for product search, image search and barcode services.
"""
import asyncio
from unittest.mock import patch, MagicMock, AsyncMock

import pytest

from stylist_ai.core.validation import ValidationError
from stylist_ai.llm.router import LLMResult
from stylist_ai.services import barcode, images, product_search
from stylist_ai.services.product_search import ProductResult


def _http_client(payload=None, status_code=200, error=None):
    """AsyncMock standing in for `async with httpx.AsyncClient() as client`."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.raise_for_status.return_value = None

    client = AsyncMock()
    if error is not None:
        client.get.side_effect = error
    else:
        client.get.return_value = response
    client.__aenter__.return_value = client
    return client


class TestFallbackImages:

    @pytest.mark.parametrize("category,family", [
        ("Short Sleeve Shirt", "top"),
        ("baggy jeans", "bottom"),
        ("Trench coat", "outerwear"),
        ("Chelsea Boots", "shoes"),
        ("slip dress", "dress"),
        ("leather belt", "accessory"),
        ("", None),
    ])
    def test_category_family(self, category, family):
        assert images.category_family(category) == family

    def test_pick_by_presentation(self):
        assert images.pick_fallback_image("jacket", "feminine") == images.FALLBACK_IMAGES[("outerwear", "feminine")]
        assert images.pick_fallback_image("dress", "masculine") == images.FALLBACK_IMAGES[("dress", "mixed")]
        assert images.pick_fallback_image("widget", "masculine") == images.DEFAULT_FALLBACK_IMAGE

    def test_unsplash_search(self, configure):
        configure(UNSPLASH_ACCESS_KEY="unsplash-key")
        client = _http_client({"results": [{"urls": {"regular": "https://images.unsplash.com/a"}}]})

        with patch("stylist_ai.services.images.httpx.AsyncClient", return_value=client):
            result = asyncio.run(images.search_image("navy overcoat"))

        assert result == {"term": "navy overcoat", "image": "https://images.unsplash.com/a"}
        headers = client.get.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Client-ID unsplash-key"

    def test_unsplash_unexpected_payload(self, configure):
        configure(UNSPLASH_ACCESS_KEY="unsplash-key")
        client = _http_client(["unexpected"])
        with patch("stylist_ai.services.images.httpx.AsyncClient", return_value=client):
            assert asyncio.run(images.search_images("navy overcoat")) == []

    def test_unsplash_without_key(self):
        assert asyncio.run(images.search_images("navy overcoat")) == []


class TestProductSearch:

    def test_simplify_query(self):
        assert product_search.simplify_query("men's luxury casual navy blazer") == "navy blazer"

    def test_farfetch_first(self, configure):
        configure(SERPAPI_KEY="serp")
        data = {"shopping_results": [{
            "title": "Wool Overcoat", "source": "Farfetch - Toteme", "extracted_price": 890,
            "thumbnail": "https://img/1.jpg", "product_link": "https://farfetch.com/1",
        }]}
        with patch("stylist_ai.services.product_search._serp_get", AsyncMock(return_value=data)) as serp:
            results = asyncio.run(product_search.search_products("camel overcoat", gender="feminine"))

        assert results == [ProductResult(
            name="Wool Overcoat", brand="Farfetch - Toteme", price="$890",
            image="https://img/1.jpg", shop_url="https://farfetch.com/1", source="Farfetch",
        )]
        assert serp.call_args.args[0]["q"] == "women's camel overcoat site:farfetch.com"

    def test_asos_when_farfetch_empty(self, configure):
        configure(RAPIDAPI_KEY="rapid")
        client = _http_client({"products": [
            {"name": "ASOS DESIGN oxford shirt", "brandName": "ASOS DESIGN",
             "price": {"current": {"text": "$35.00"}}, "imageUrl": "images.asos-media.com/1", "url": "prd/1"},
            {"name": "ASOS DESIGN shirt jacket", "price": {}, "url": "prd/2"},
        ]})
        with patch("stylist_ai.services.product_search.httpx.AsyncClient", return_value=client):
            results = asyncio.run(product_search.search_products("white oxford shirt"))

        assert len(results) == 1
        assert results[0].source == "ASOS"
        assert results[0].brand == "ASOS DESIGN"
        assert results[0].image == "https://images.asos-media.com/1"
        assert results[0].shop_url == "https://www.asos.com/prd/1"

    def test_simplified_retry_and_cache(self):
        calls = []

        async def chain(query, limit):
            calls.append(query)
            return [ProductResult(name="Navy Blazer")] if query == "navy blazer" else []

        with patch("stylist_ai.services.product_search._run_chain", side_effect=chain):
            first = asyncio.run(product_search.search_products("luxury navy blazer"))
            second = asyncio.run(product_search.search_products("luxury navy blazer"))

        assert calls == ["luxury navy blazer", "navy blazer"]
        assert first == second == [ProductResult(name="Navy Blazer")]

    def test_empty_result_is_not_cached(self):
        outage = [True]

        async def chain(query, limit):
            return [] if outage[0] else [ProductResult(name="Navy Blazer")]

        with patch("stylist_ai.services.product_search._run_chain", side_effect=chain) as run:
            during = asyncio.run(product_search.search_products("navy blazer"))
            outage[0] = False
            after = asyncio.run(product_search.search_products("navy blazer"))

        assert during == []
        assert after == [ProductResult(name="Navy Blazer")]
        assert run.call_count == 2

    def test_rate_limit_starts_cooldown(self, configure):
        configure(SERPAPI_KEY="serp")
        client = _http_client({}, status_code=429)
        with patch("stylist_ai.services.product_search.httpx.AsyncClient", return_value=client):
            assert asyncio.run(product_search.search_google_shopping("jeans")) == []
        assert product_search._serp_available() is False

    def test_similar_looks(self, configure):
        configure(SERPAPI_KEY="serp")
        data = {"visual_matches": [
            {"title": f"Look {i}", "thumbnail": f"https://t/{i}.jpg", "link": f"https://l/{i}"} for i in range(12)
        ]}
        with patch("stylist_ai.services.product_search._serp_get", AsyncMock(return_value=data)) as serp:
            looks = asyncio.run(product_search.find_similar_looks(
                "https://app/_next/image?url=https%3A%2F%2Fcdn%2Flook.jpg&w=640"))

        assert len(looks) == 10
        assert looks[0] == {"title": "Look 0", "image": "https://t/0.jpg", "link": "https://l/0"}
        assert serp.call_args.args[0] == {"engine": "google_lens", "url": "https://cdn/look.jpg"}

    def test_similar_looks_failure(self, configure):
        configure(SERPAPI_KEY="serp")
        with patch("stylist_ai.services.product_search._serp_get", AsyncMock(side_effect=RuntimeError("x"))):
            assert asyncio.run(product_search.find_similar_looks("https://cdn/look.jpg")) == []


class TestBarcodeDecode:

    @pytest.mark.parametrize("code,valid", [
        ("036000291452", True),
        ("036000291453", False),
        ("4006381333931", True),
        ("96385074", True),
        ("1234567", False),
    ])
    def test_check_digit(self, code, valid):
        assert barcode.has_valid_check_digit(code) is valid

    def test_prefers_valid_candidate(self):
        candidates = barcode.extract_barcode_candidates("lot 12345678 / 0 36000-29145 2")
        assert candidates == ["12345678", "036000291452"]
        assert barcode.pick_barcode(candidates) == "036000291452"

    def test_decode(self, test_image):
        result = LLMResult(provider="openai", data={"barcode": "4006381333931"})
        with patch("stylist_ai.services.barcode.complete_vision_json", AsyncMock(return_value=result)) as vision:
            decoded = asyncio.run(barcode.decode_barcode(test_image, "image/jpeg"))

        assert decoded == {"barcode": "4006381333931"}
        kwargs = vision.call_args.kwargs
        assert kwargs["image_bytes"] == test_image
        assert kwargs["prefer_vertex"] is False

    def test_decode_unreadable(self, test_image):
        result = LLMResult(provider="openai", data={"barcode": None})
        with patch("stylist_ai.services.barcode.complete_vision_json", AsyncMock(return_value=result)):
            assert asyncio.run(barcode.decode_barcode(test_image, "image/png")) == {"barcode": None}

    def test_decode_rejects_bad_upload(self):
        with pytest.raises(ValidationError) as exc:
            asyncio.run(barcode.decode_barcode(b"%PDF", "application/pdf"))
        assert exc.value.status_code == 415


class TestBarcodeLookup:

    def test_upcitemdb_hit(self):
        client = _http_client({"items": [{"title": "Levi's 501", "brand": "Levi's", "images": ["https://img/501"]}]})
        with patch("stylist_ai.services.barcode.httpx.AsyncClient", return_value=client):
            result = asyncio.run(barcode.lookup_barcode("036000291452"))

        assert result["found"] is True
        assert result["source"] == "upcitemdb"
        assert result["name"] == "Levi's 501"
        assert result["image"] == "https://img/501"

    def test_cascade_to_ai_guess(self):
        guess = {"name": "Canvas Sneaker", "brand": None, "category": "Shoes", "image": None, "source": "ai"}
        with patch.object(barcode, "lookup_upcitemdb", AsyncMock(return_value=None)), \
                patch.object(barcode, "lookup_rapidapi", AsyncMock(return_value=None)), \
                patch.object(barcode, "lookup_ai_guess", AsyncMock(return_value=guess)):
            result = asyncio.run(barcode.lookup_barcode("0360-0029-1452"))

        assert result["upc"] == "036000291452"
        assert result["source"] == "ai"
        assert result["found"] is True

    def test_nothing_found(self):
        with patch.object(barcode, "lookup_upcitemdb", AsyncMock(return_value=None)), \
                patch.object(barcode, "lookup_rapidapi", AsyncMock(return_value=None)), \
                patch.object(barcode, "lookup_ai_guess", AsyncMock(return_value=None)):
            assert asyncio.run(barcode.lookup_barcode("96385074")) == {"upc": "96385074", "found": False}

    def test_unexpected_payload_shape_is_a_miss(self, configure):
        configure(RAPIDAPI_KEY="rapid")
        client = _http_client(["not", "an", "object"])
        with patch("stylist_ai.services.barcode.httpx.AsyncClient", return_value=client):
            assert asyncio.run(barcode.lookup_upcitemdb("036000291452")) is None
            assert asyncio.run(barcode.lookup_rapidapi("036000291452")) is None

    def test_rapidapi_needs_key(self):
        assert asyncio.run(barcode.lookup_rapidapi("96385074")) is None

    def test_ai_guess_prompt_carries_upc(self):
        result = LLMResult(provider="openai", data={"name": "Tote Bag", "confidence": "medium"})
        with patch("stylist_ai.services.barcode.complete_json", AsyncMock(return_value=result)) as complete:
            hit = asyncio.run(barcode.lookup_ai_guess("96385074"))

        assert hit["name"] == "Tote Bag"
        assert hit["confidence"] == "medium"
        assert "96385074" in complete.call_args.args[1]

    def test_invalid_upc(self):
        with pytest.raises(ValidationError):
            asyncio.run(barcode.lookup_barcode("abc"))
