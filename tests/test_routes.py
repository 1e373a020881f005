"""
Route tests for Stylist AI Service v1.0.0
Flows are patched at the route module; validation runs for real.
"""
import io
from unittest.mock import patch, AsyncMock

import pytest
from fastapi.testclient import TestClient

from stylist_ai.core.errors import StylistError, LLMUnavailableError


@pytest.fixture
def client():
    """Create test client."""
    from stylist_ai.app.main import app
    return TestClient(app)


# ==================== HEALTH / METRICS ====================

class TestHealthEndpoint:
    """Tests for /health and /metrics."""

    def test_health_returns_ok(self, client, fake_redis):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "1.0.0"
        assert data["redis"] == {"connected": True}
        assert data["postgres"]["status"] == "disconnected"
        assert data["llm"]["active_provider"] is None
        assert data["services"] == {"serpapi": False, "rapidapi": False, "unsplash": False}
        assert data["observability"]["logging_enabled"] is False

    def test_health_reports_configured_services(self, client, fake_redis, configure):
        configure(OPENAI_API_KEY="sk", SERPAPI_KEY="serp")
        data = client.get("/health").json()
        assert data["llm"]["active_provider"] == "openai"
        assert data["services"]["serpapi"] is True

    def test_metrics(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.json()["total_requests"] == 0


# ==================== STYLIST FLOWS ====================

class TestFlowRoutes:
    """Camel-case bodies reach the flows; StylistError becomes an HTTP error."""

    def test_analyze(self, client):
        result = {"tags": ["denim jacket"], "provider": "openai"}
        with patch("stylist_ai.app.routes.analyze_image", AsyncMock(return_value=result)) as flow:
            response = client.post("/ai/analyze", json={"imageUrl": "https://cdn/look.jpg"})

        assert response.status_code == 200
        assert response.json() == result
        flow.assert_awaited_once_with("https://cdn/look.jpg")

    def test_analyze_error_status(self, client):
        with patch("stylist_ai.app.routes.analyze_image",
                   AsyncMock(side_effect=StylistError("Missing image URL", status_code=400))):
            response = client.post("/ai/analyze", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing image URL"

    def test_recreate_aliases(self, client):
        with patch("stylist_ai.app.routes.recreate_look", AsyncMock(return_value={"outfit": []})) as flow:
            response = client.post("/ai/recreate", json={
                "userId": "u1", "tags": ["blazer"], "imageUrl": "https://cdn/a.jpg", "userGender": "female",
            })

        assert response.status_code == 200
        flow.assert_awaited_once_with("u1", ["blazer"], "https://cdn/a.jpg", "female")

    def test_recreate_without_provider(self, client):
        with patch("stylist_ai.app.routes.recreate_look", AsyncMock(side_effect=LLMUnavailableError())):
            response = client.post("/ai/recreate", json={"tags": ["blazer"]})
        assert response.status_code == 503

    def test_personalized_shop(self, client):
        with patch("stylist_ai.app.routes.personalized_shop",
                   AsyncMock(side_effect=StylistError("Model returned an unusable plan", status_code=502))) as flow:
            response = client.post("/ai/personalized-shop",
                                   json={"userId": "u1", "imageUrl": "https://cdn/a.jpg", "gender": "male"})

        assert response.status_code == 502
        flow.assert_awaited_once_with("u1", "https://cdn/a.jpg", "male")

    def test_chat(self, client):
        reply = {"reply": "Try loafers.", "search_terms": [], "images": []}
        with patch("stylist_ai.app.routes.chat", AsyncMock(return_value=reply)) as flow:
            response = client.post("/ai/chat", json={
                "userId": "u1", "messages": [{"role": "user", "content": "Shoes?"}],
            })

        assert response.json()["reply"] == "Try loafers."
        flow.assert_awaited_once_with("u1", [{"role": "user", "content": "Shoes?"}])

    def test_chat_rejects_malformed_messages(self, client):
        response = client.post("/ai/chat", json={"messages": [{"content": "no role"}]})
        assert response.status_code == 422

    def test_forget_memory(self, client):
        with patch("stylist_ai.app.routes.forget_memory", AsyncMock(return_value=True)):
            response = client.delete("/ai/chat/memory/u1")
        assert response.json() == {"user_id": "u1", "removed": True}

    def test_suggest_drops_missing_fields(self, client):
        with patch("stylist_ai.app.routes.suggest", AsyncMock(return_value={"suggestion": "x"})) as flow:
            response = client.post("/ai/suggest", json={"userId": "u1", "occasion": "office"})

        assert response.status_code == 200
        flow.assert_awaited_once_with({"user_id": "u1", "occasion": "office"})

    def test_suggest_without_body(self, client):
        with patch("stylist_ai.app.routes.suggest", AsyncMock(return_value={"suggestion": "x"})) as flow:
            response = client.post("/ai/suggest")

        assert response.status_code == 200
        flow.assert_awaited_once_with({})

    def test_similar_looks(self, client):
        looks = [{"title": "Look", "image": "https://t/0.jpg", "link": "https://l/0"}]
        with patch("stylist_ai.app.routes.find_similar_looks", AsyncMock(return_value=looks)):
            response = client.post("/ai/similar-looks", json={"imageUrl": "https://cdn/a.jpg"})
        assert response.json() == {"looks": looks}

    def test_similar_looks_needs_url(self, client):
        response = client.post("/ai/similar-looks", json={})
        assert response.status_code == 400


# ==================== BARCODE ====================

class TestBarcodeRoutes:
    """Upload validation and UPC lookup."""

    def test_decode(self, client, test_image):
        with patch("stylist_ai.app.routes.decode_barcode",
                   AsyncMock(return_value={"barcode": "036000291452"})) as flow:
            response = client.post(
                "/ai/decode-barcode",
                files={"file": ("code.jpg", io.BytesIO(test_image), "image/jpeg")},
            )

        assert response.json() == {"barcode": "036000291452"}
        assert flow.call_args.args == (test_image, "image/jpeg")

    def test_decode_rejects_pdf(self, client):
        response = client.post(
            "/ai/decode-barcode",
            files={"file": ("doc.pdf", io.BytesIO(b"%PDF-1.4 fake"), "application/pdf")},
        )
        assert response.status_code == 415

    def test_decode_rejects_large_file(self, client):
        large_content = b"x" * (11 * 1024 * 1024)
        response = client.post(
            "/ai/decode-barcode",
            files={"file": ("large.jpg", io.BytesIO(large_content), "image/jpeg")},
        )
        assert response.status_code == 413
        assert "too large" in response.json()["detail"].lower()

    def test_decode_without_provider(self, client, test_image):
        response = client.post(
            "/ai/decode-barcode",
            files={"file": ("code.jpg", io.BytesIO(test_image), "image/jpeg")},
        )
        assert response.status_code == 503

    def test_lookup(self, client):
        hit = {"upc": "036000291452", "found": True, "name": "Levi's 501", "source": "upcitemdb"}
        with patch("stylist_ai.app.routes.lookup_barcode", AsyncMock(return_value=hit)) as flow:
            response = client.post("/ai/lookup-barcode", json={"upc": "036000291452"})

        assert response.json() == hit
        flow.assert_awaited_once_with("036000291452")

    def test_lookup_invalid_upc(self, client):
        response = client.post("/ai/lookup-barcode", json={"upc": "abc"})
        assert response.status_code == 400
        assert "Invalid UPC" in response.json()["detail"]
