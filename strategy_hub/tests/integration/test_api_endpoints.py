# strategy_hub/tests/integration/test_api_endpoints.py
"""Integration tests for API endpoints."""
import json

import pytest

from strategy_hub.middleware.rate_limiter import RequestThrottle
from strategy_hub.middleware.rate_limiter_redis import RedisThrottleStore


NEW_STRATEGY = {
    "name": "RSI Bounce",
    "description": "Buy when RSI(14) dips below 30 and exit above 55.",
    "parameters": {"entry": "RSI<30", "exit": "RSI>55", "timeframe": "4h"},
    "riskLevel": "Medium",
    "assetClass": "Stocks",
    "isPublic": True,
    "tags": ["rsi"],
}


@pytest.fixture
def owner(make_user):
    return make_user(name="Owner")


@pytest.fixture
def owner_headers(owner, auth_headers_for):
    return auth_headers_for(owner)


@pytest.fixture
def created(client, owner_headers):
    response = client.post("/api/strategies", json=NEW_STRATEGY, headers=owner_headers)
    assert response.status_code == 201
    return response.json()["data"]


class TestHealthEndpoints:

    def test_health_endpoint(self, client, created):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["strategiesCount"] == 1

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "Strict-Transport-Security" not in response.headers


class TestStrategyEndpoints:
    """Strategy CRUD over HTTP."""

    def test_create_returns_owner(self, created, owner):
        assert created["createdBy"]["id"] == owner.id
        assert created["createdBy"]["email"] == owner.email
        assert created["copyCount"] == 0
        assert created["averageRating"] == 0
        assert created["ratings"] == [] and created["comments"] == []

    def test_create_requires_auth(self, client):
        response = client.post("/api/strategies", json=NEW_STRATEGY)
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    def test_create_reports_every_invalid_field(self, client, owner_headers):
        bad = dict(NEW_STRATEGY, name="ab", description="short", parameters={}, riskLevel="Wild")
        response = client.post("/api/strategies", json=bad, headers=owner_headers)
        assert response.status_code == 400
        details = response.json()["details"]
        assert {"name", "description", "parameters", "riskLevel"} <= set(details)

    def test_create_is_throttled(self, client, owner_headers):
        for _ in range(30):
            assert client.post("/api/strategies", json=NEW_STRATEGY, headers=owner_headers).status_code == 201
        response = client.post("/api/strategies", json=NEW_STRATEGY, headers=owner_headers)
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json()["error"] == "Too many requests"

    def test_create_survives_redis_outage(self, client, app, owner_headers):
        unreachable = RedisThrottleStore.from_url("redis://127.0.0.1:1/0")
        app.state.throttle = RequestThrottle(unreachable, limit=30, window_seconds=60)
        response = client.post("/api/strategies", json=NEW_STRATEGY, headers=owner_headers)
        assert response.status_code == 201

    def test_create_rejects_non_finite_parameters(self, client, owner_headers):
        raw = json.dumps(dict(NEW_STRATEGY, parameters={"stop": float("nan")}))
        response = client.post(
            "/api/strategies",
            content=raw,
            headers={**owner_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert "parameters" in response.json()["details"]

    def test_throttle_is_per_caller(self, client, owner_headers, make_user, auth_headers_for):
        for _ in range(30):
            client.post("/api/strategies", json=NEW_STRATEGY, headers=owner_headers)
        other = auth_headers_for(make_user())
        assert client.post("/api/strategies", json=NEW_STRATEGY, headers=other).status_code == 201

    def test_list_anonymous_sees_public(self, client, created, owner_headers):
        private = dict(NEW_STRATEGY, name="Hidden Edge", isPublic=False)
        client.post("/api/strategies", json=private, headers=owner_headers)

        anonymous = client.get("/api/strategies").json()["data"]
        assert [s["id"] for s in anonymous] == [created["id"]]

        own = client.get("/api/strategies", headers=owner_headers).json()["data"]
        assert len(own) == 2

    def test_update_by_owner(self, client, created, owner_headers):
        response = client.put(
            "/api/strategies",
            json={"_id": created["id"], "riskLevel": "High", "tags": ["rsi", "mean-reversion"]},
            headers=owner_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["riskLevel"] == "High"
        assert data["tags"] == ["rsi", "mean-reversion"]
        assert data["name"] == "RSI Bounce"

    def test_update_by_non_owner(self, client, created, make_user, auth_headers_for):
        response = client.put(
            "/api/strategies",
            json={"_id": created["id"], "name": "Stolen"},
            headers=auth_headers_for(make_user()),
        )
        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden: Not owner"

    def test_delete(self, client, created, owner_headers, make_user, auth_headers_for):
        stranger = auth_headers_for(make_user())
        assert client.delete(f"/api/strategies?id={created['id']}", headers=stranger).status_code == 403
        assert client.delete(f"/api/strategies?id={created['id']}", headers=owner_headers).status_code == 200
        assert client.delete(f"/api/strategies?id={created['id']}", headers=owner_headers).status_code == 404

    def test_export_csv(self, client, created, owner_headers):
        response = client.get(f"/api/strategies/export?id={created['id']}&format=csv", headers=owner_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="strategy-RSI Bounce-' in response.headers["content-disposition"]
        assert response.text.startswith('"Field","Value"')

    def test_export_bad_format(self, client, created, owner_headers):
        response = client.get(f"/api/strategies/export?id={created['id']}&format=xml", headers=owner_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid format. Use 'json' or 'csv'"


class TestSocialEndpoints:

    def test_ratings_average(self, client, created, make_user, auth_headers_for):
        first, second = auth_headers_for(make_user()), auth_headers_for(make_user())
        client.post("/api/strategies/ratings", json={"strategyId": created["id"], "rating": 4}, headers=first)
        response = client.post("/api/strategies/ratings", json={"strategyId": created["id"], "rating": 2}, headers=second)
        assert response.json()["data"]["averageRating"] == 3.0

        response = client.post("/api/strategies/rating", json={"strategyId": created["id"], "rating": 5}, headers=first)
        data = response.json()["data"]
        assert data["averageRating"] == 3.5
        assert data["totalRatings"] == 2

        summary = client.get(f"/api/strategies/ratings?strategyId={created['id']}", headers=first).json()["data"]
        assert summary["userRating"] == 5

    def test_rating_out_of_range(self, client, created, owner_headers):
        response = client.post(
            "/api/strategies/ratings", json={"strategyId": created["id"], "rating": 6}, headers=owner_headers
        )
        assert response.status_code == 400
        assert "rating" in response.json()["details"]

    def test_comment_lifecycle(self, client, created, owner_headers, make_user, auth_headers_for):
        author = auth_headers_for(make_user())
        response = client.post(
            "/api/strategies/comments", json={"strategyId": created["id"], "text": "Works on SPY"}, headers=author
        )
        comments = response.json()["data"]
        assert comments[0]["text"] == "Works on SPY"

        comment_id = comments[0]["id"]
        response = client.delete(
            f"/api/strategies/comments?strategyId={created['id']}&commentId={comment_id}", headers=owner_headers
        )
        assert response.status_code == 200
        assert client.get(f"/api/strategies/comments?strategyId={created['id']}").json()["data"] == []

    def test_favorites_filter(self, client, created, make_user, auth_headers_for):
        fan = auth_headers_for(make_user())
        response = client.post("/api/strategies/favorite", json={"strategyId": created["id"]}, headers=fan)
        assert response.json()["favorited"] is True

        favorites = client.get("/api/strategies?favorites=true", headers=fan).json()["data"]
        assert [s["id"] for s in favorites] == [created["id"]]

    def test_copy_twice(self, client, created, make_user, auth_headers_for):
        copier = auth_headers_for(make_user())
        first = client.post("/api/strategies/copy", json={"strategyId": created["id"]}, headers=copier).json()
        second = client.post("/api/strategies/copy", json={"strategyId": created["id"]}, headers=copier).json()

        assert first["message"] == "Strategy copied successfully"
        assert second["message"] == "Strategy already copied"
        assert first["data"]["id"] == second["data"]["id"]
        assert first["data"]["copiedFrom"] == created["id"]

    def test_templates(self, client, created, owner_headers, make_user, auth_headers_for):
        client.post("/api/strategies/templates", json={"strategyId": created["id"]}, headers=owner_headers)
        templates = client.get("/api/strategies/templates").json()["data"]
        assert [t["id"] for t in templates] == [created["id"]]

        user = auth_headers_for(make_user())
        response = client.post(
            "/api/strategies/use-template", json={"templateId": created["id"], "name": "My RSI"}, headers=user
        )
        assert response.json()["data"]["name"] == "My RSI"
        assert response.json()["data"]["isPublic"] is False

        client.delete(f"/api/strategies/templates?id={created['id']}", headers=owner_headers)
        assert client.get("/api/strategies/templates").json()["data"] == []

    def test_private_template_is_listed(self, client, owner_headers):
        private = dict(NEW_STRATEGY, name="Private Blueprint", isPublic=False)
        strategy_id = client.post("/api/strategies", json=private, headers=owner_headers).json()["data"]["id"]
        client.post("/api/strategies/templates", json={"strategyId": strategy_id}, headers=owner_headers)

        templates = client.get("/api/strategies/templates").json()["data"]
        assert [t["id"] for t in templates] == [strategy_id]
        assert templates[0]["isPublic"] is False

    def test_copy_count_across_copiers(self, client, created, make_user, auth_headers_for):
        for _ in range(2):
            copier = auth_headers_for(make_user())
            client.post("/api/strategies/copy", json={"strategyId": created["id"]}, headers=copier)
            client.post("/api/strategies/copy", json={"strategyId": created["id"]}, headers=copier)

        listed = client.get("/api/strategies?public=true").json()["data"]
        assert [s["copyCount"] for s in listed if s["id"] == created["id"]] == [2]


class TestGenerateEndpoint:

    def test_generate_returns_unsaved_draft(self, client, owner_headers):
        response = client.post(
            "/api/strategies/generate",
            json={"prompt": "Breakout strategy for bitcoin", "assetClass": "Crypto"},
            headers=owner_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Momentum Breakout"
        assert client.get("/health").json()["strategiesCount"] == 0

    def test_generate_validates_prompt(self, client, owner_headers):
        response = client.post("/api/strategies/generate", json={"prompt": "short"}, headers=owner_headers)
        assert response.status_code == 400
        assert "prompt" in response.json()["details"]

    def test_generate_requires_auth(self, client):
        response = client.post("/api/strategies/generate", json={"prompt": "Breakout strategy for bitcoin"})
        assert response.status_code == 401

    def test_generate_unconfigured(self, client, app, owner_headers):
        app.state.generator.client.api_key = None
        response = client.post(
            "/api/strategies/generate", json={"prompt": "Breakout strategy for bitcoin"}, headers=owner_headers
        )
        assert response.status_code == 500
        assert response.json()["error"] == "AI service not configured"
