# strategy_hub/tests/conftest.py
"""
Pytest configuration and fixtures for Strategy Hub tests.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from strategy_hub.db import crud
from strategy_hub.db.models import Base, RiskLevel, AssetClass
from strategy_hub.db.session import get_db
from strategy_hub.main import create_app
from strategy_hub.middleware.rate_limiter import InMemoryThrottleStore, RequestThrottle
from strategy_hub.services.jwt_service import jwt_service
from strategy_hub.services.llm_client import TextGenerationClient
from strategy_hub.strategy_engine.generation import StrategyGenerator
from strategy_hub.utils.auth import hash_password


# Test database URL (in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite:///:memory:"

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(scope="function")
def db_session():
    """Create a test database session."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db_session):
    """Factory for persisted users with a known password."""
    counter = {"n": 0}

    def _make(email=None, name="Test User", password=DEFAULT_PASSWORD):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        return crud.create_user(db_session, email=email, password_hash=hash_password(password), name=name)

    return _make


@pytest.fixture
def make_strategy(db_session):
    """Factory for persisted strategies."""

    def _make(owner, name="Mean Reversion", is_public=True, **overrides):
        fields = {
            "description": "Buy oversold dips and sell into strength",
            "parameters": {"entry": "RSI<30", "exit": "RSI>70", "timeframe": "1h"},
            "risk_level": RiskLevel.MEDIUM,
            "asset_class": AssetClass.STOCKS,
            "tags": ["rsi", "swing"],
        }
        fields.update(overrides)
        return crud.create_trading_strategy(db_session, user_id=owner.id, name=name, is_public=is_public, **fields)

    return _make


@pytest.fixture
def auth_headers_for():
    """Bearer headers for a given user."""

    def _headers(user):
        token = jwt_service.create_access_token({"sub": user.id, "email": user.email})
        return {"Authorization": f"Bearer {token}"}

    return _headers


class FakeCompletions:
    """
    Stands in for the chat-completions endpoint through httpx.MockTransport.
    Set `reply` (message content) or `status_code`/`error_body` per test.
    """

    def __init__(self):
        self.reply = json.dumps({
            "name": "Momentum Breakout",
            "description": "Enter on a close above the 20-day high with volume confirmation.",
            "parameters": {"entry": "close > 20d high", "exit": "close < 10d low", "timeframe": "1d"},
            "riskLevel": "High",
            "assetClass": "Crypto",
            "backtestPerformance": "Win Rate: 55%",
            "tags": ["momentum", "breakout"],
        })
        self.status_code = 200
        self.error_body = None
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.status_code != 200:
            return httpx.Response(self.status_code, json=self.error_body or {})
        return httpx.Response(200, json={"choices": [{"message": {"content": self.reply}}]})


@pytest.fixture
def fake_completions():
    return FakeCompletions()


@pytest.fixture
def generation_client(fake_completions):
    """A configured client whose HTTP traffic never leaves the process."""
    http_client = httpx.Client(transport=httpx.MockTransport(fake_completions))
    client = TextGenerationClient(
        api_key="test-key",
        api_url="https://llm.test/v1/chat/completions",
        model="test-model",
        http_client=http_client,
    )
    yield client
    client.close()


@pytest.fixture
def app(db_session, generation_client):
    """Application wired to the test database, a fresh throttle and the fake generator."""
    app = create_app()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.throttle = RequestThrottle(InMemoryThrottleStore(), limit=30, window_seconds=60)
    app.state.generator = StrategyGenerator(generation_client)
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)
