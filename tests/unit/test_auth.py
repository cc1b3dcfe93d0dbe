"""
Unit tests for gateway_service/auth.py
"""

import httpx
import pytest

from gateway_service.auth import (
    ANONYMOUS_USER_ID,
    AuthenticationUnavailableError,
    IdentityResolver,
    InvalidTokenError,
    RequestIdentity,
    SupabaseTokenVerifier,
)
from interview_gateway.common.tiers import Tier
from helpers.fakes import FakeTokenVerifier, InMemoryProfileRepository


def _verifier(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseTokenVerifier("https://proj.supabase.co/", "service-key", http_client=client)


class TestSupabaseTokenVerifier:
    @pytest.mark.asyncio
    async def test_valid_token(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": "user-123", "email": "a@b.c"})

        assert await _verifier(handler).verify("jwt") == "user-123"
        assert str(seen[0].url) == "https://proj.supabase.co/auth/v1/user"
        assert seen[0].headers["authorization"] == "Bearer jwt"
        assert seen[0].headers["apikey"] == "service-key"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    async def test_rejected_token(self, status):
        with pytest.raises(InvalidTokenError):
            await _verifier(lambda r: httpx.Response(status, json={"msg": "bad jwt"})).verify("jwt")

    @pytest.mark.asyncio
    async def test_provider_error_is_unavailable(self):
        with pytest.raises(AuthenticationUnavailableError):
            await _verifier(lambda r: httpx.Response(503)).verify("jwt")

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        with pytest.raises(AuthenticationUnavailableError):
            await _verifier(handler).verify("jwt")

    @pytest.mark.asyncio
    async def test_missing_user_id(self):
        with pytest.raises(InvalidTokenError):
            await _verifier(lambda r: httpx.Response(200, json={})).verify("jwt")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        with pytest.raises(AuthenticationUnavailableError):
            await SupabaseTokenVerifier(None, None).verify("jwt")


class TestIdentityResolver:
    @pytest.mark.asyncio
    async def test_no_token_is_anonymous_free(self):
        resolver = IdentityResolver(FakeTokenVerifier(), InMemoryProfileRepository())
        identity = await resolver.resolve(None)

        assert identity == RequestIdentity.anonymous()
        assert identity.user_id == ANONYMOUS_USER_ID
        assert identity.tier == Tier.FREE
        assert not identity.is_authenticated

    @pytest.mark.asyncio
    async def test_tier_from_profile(self):
        resolver = IdentityResolver(
            FakeTokenVerifier({"tok": "user-1"}),
            InMemoryProfileRepository({"user-1": "premium"}),
        )
        identity = await resolver.resolve("tok")
        assert identity == RequestIdentity("user-1", Tier.PREMIUM)
        assert identity.is_authenticated

    @pytest.mark.asyncio
    async def test_missing_profile_is_free(self):
        resolver = IdentityResolver(FakeTokenVerifier({"tok": "user-1"}), InMemoryProfileRepository())
        assert (await resolver.resolve("tok")).tier == Tier.FREE

    @pytest.mark.asyncio
    async def test_profile_lookup_failure_defaults_to_free(self):
        profiles = InMemoryProfileRepository({"user-1": "pro"})
        profiles.error = RuntimeError("mongo down")
        resolver = IdentityResolver(FakeTokenVerifier({"tok": "user-1"}), profiles)

        identity = await resolver.resolve("tok")
        assert identity == RequestIdentity("user-1", Tier.FREE)

    @pytest.mark.asyncio
    async def test_invalid_token_is_never_downgraded_to_anonymous(self):
        resolver = IdentityResolver(FakeTokenVerifier({"tok": "user-1"}), InMemoryProfileRepository())
        with pytest.raises(InvalidTokenError):
            await resolver.resolve("forged")
