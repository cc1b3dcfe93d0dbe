"""
Authentication Module

Resolves the bearer credential on each request into a RequestIdentity.

- No credential: anonymous caller on the free tier
- Valid credential: the Supabase user, tier looked up in the profile store
- Invalid or expired credential: rejected, never silently downgraded
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from starlette.concurrency import run_in_threadpool

from interview_gateway.common.tiers import Tier, parse_tier
from interview_gateway.repositories import ProfileRepository

logger = logging.getLogger(__name__)

ANONYMOUS_USER_ID = "anonymous"


@dataclass(frozen=True)
class RequestIdentity:
    """Who is calling, and on which tier."""

    user_id: str
    tier: Tier

    @property
    def is_authenticated(self) -> bool:
        return self.user_id != ANONYMOUS_USER_ID

    @classmethod
    def anonymous(cls) -> "RequestIdentity":
        return cls(user_id=ANONYMOUS_USER_ID, tier=Tier.FREE)


class InvalidTokenError(Exception):
    """The credential was checked and refused."""


class AuthenticationUnavailableError(Exception):
    """The credential could not be checked (provider down, not configured)."""


class SupabaseTokenVerifier:
    """Verifies access tokens against Supabase's /auth/v1/user endpoint."""

    def __init__(
        self,
        supabase_url: Optional[str],
        service_key: Optional[str],
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.supabase_url = (supabase_url or "").rstrip("/")
        self.service_key = service_key or ""
        self.timeout = timeout
        self._http_client = http_client

    async def verify(self, token: str) -> str:
        """
        Verify a token.

        Returns:
            The authenticated user id

        Raises:
            InvalidTokenError: Supabase refused the token
            AuthenticationUnavailableError: Verification could not be performed
        """
        if not self.supabase_url or not self.service_key:
            raise AuthenticationUnavailableError("Supabase credentials are not configured")

        url = f"{self.supabase_url}/auth/v1/user"
        headers = {"Authorization": f"Bearer {token}", "apikey": self.service_key}

        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            raise AuthenticationUnavailableError(f"Token verification failed: {e.__class__.__name__}") from e

        if response.status_code in (400, 401, 403, 404):
            raise InvalidTokenError(f"Token rejected ({response.status_code})")
        if response.status_code >= 400:
            raise AuthenticationUnavailableError(f"Supabase auth error {response.status_code}")

        try:
            user_id = response.json().get("id")
        except ValueError as e:
            raise AuthenticationUnavailableError("Supabase returned a non-JSON body") from e
        if not user_id:
            raise InvalidTokenError("Token has no user")
        return str(user_id)


class IdentityResolver:
    """Maps an optional bearer token to a RequestIdentity."""

    def __init__(self, verifier: SupabaseTokenVerifier, profiles: ProfileRepository):
        self.verifier = verifier
        self.profiles = profiles

    async def resolve(self, token: Optional[str]) -> RequestIdentity:
        """
        Raises:
            InvalidTokenError: Credential present but invalid or expired
            AuthenticationUnavailableError: Credential present but unverifiable
        """
        if not token:
            return RequestIdentity.anonymous()

        user_id = await self.verifier.verify(token)
        return RequestIdentity(user_id=user_id, tier=await self._lookup_tier(user_id))

    async def _lookup_tier(self, user_id: str) -> Tier:
        try:
            stored = await run_in_threadpool(self.profiles.get_tier, user_id)
        except Exception as e:
            logger.warning(f"Tier lookup failed for {user_id}, defaulting to free: {e}")
            return Tier.FREE
        return parse_tier(stored)
