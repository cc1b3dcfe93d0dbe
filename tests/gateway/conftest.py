"""
Pytest fixtures for gateway route tests.

The app is built around in-memory repositories, fake providers and a fake
token verifier, so requests run through the real governance chain and
route handlers without any network or database access.
"""

import asyncio
import os

# Set environment variables BEFORE any imports from gateway_service so the
# module-level app builds in development mode without vendor overrides.
os.environ["ENVIRONMENT"] = "development"
os.environ["AI_PROVIDER"] = ""
os.environ.pop("REDIS_URL", None)

import pytest
from fastapi.testclient import TestClient

from gateway_service.app import create_app
from gateway_service.config import GatewaySettings
from gateway_service.dependencies import build_services
from interview_gateway.common.cost_tracker import CostCategory
from interview_gateway.common.tiers import AIBackend, VoiceBackend
from interview_gateway.services.selector import ProviderSelector
from helpers.fakes import (
    FakeAIProvider,
    FakeScraper,
    FakeTokenVerifier,
    FakeVoiceProvider,
    in_memory_repositories,
)

TOKENS = {
    "free-token": "free-user",
    "pro-token": "pro-user",
    "premium-token": "premium-user",
    "other-premium-token": "other-premium-user",
    "admin-token": "admin-1",
}

TIERS = {
    "pro-user": "pro",
    "premium-user": "premium",
    "other-premium-user": "premium",
    "admin-1": "pro",
}


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings():
    return GatewaySettings(
        monthly_budget_usd=100.0,
        admin_user_ids="admin-1",
        supabase_url="https://proj.supabase.co",
        supabase_service_key="service-key",
        max_audio_bytes=2048,
    )


@pytest.fixture
def fake_ai():
    return FakeAIProvider()


@pytest.fixture
def fake_voice():
    return FakeVoiceProvider()


@pytest.fixture
def fake_scraper():
    return FakeScraper()


@pytest.fixture
def verifier():
    return FakeTokenVerifier(TOKENS)


@pytest.fixture
def services(settings, fake_ai, fake_voice, fake_scraper, verifier):
    selector = ProviderSelector(
        {backend: (lambda: fake_ai) for backend in AIBackend},
        {backend: (lambda: fake_voice) for backend in VoiceBackend},
        override="",
    )
    return build_services(
        settings,
        repositories=in_memory_repositories(TIERS),
        selector=selector,
        scraper=fake_scraper,
        verifier=verifier,
    )


@pytest.fixture
def client(services):
    """FastAPI test client fixture."""
    return TestClient(create_app(services=services), raise_server_exceptions=False)


@pytest.fixture
def free_headers():
    return _bearer("free-token")


@pytest.fixture
def pro_headers():
    return _bearer("pro-token")


@pytest.fixture
def premium_headers():
    return _bearer("premium-token")


@pytest.fixture
def other_premium_headers():
    return _bearer("other-premium-token")


@pytest.fixture
def admin_headers():
    return _bearer("admin-token")


@pytest.fixture
def spend(services):
    """Put a USD amount of AI spend on this month's ledger."""
    def _spend(usd: float) -> None:
        tokens = usd / services.costs.rates.ai_token
        asyncio.run(services.costs.record_cost(CostCategory.AI, tokens))
    return _spend


@pytest.fixture
def use(services):
    """Add consumption to a user's ledger for today."""
    def _use(user_id: str, ai_tokens: int = 0, tts_chars: int = 0) -> None:
        asyncio.run(services.usage.record(user_id, ai_tokens=ai_tokens, tts_chars=tts_chars))
    return _use
