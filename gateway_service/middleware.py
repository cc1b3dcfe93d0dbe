"""
Request Governance Chain

Every governed request passes four stages in strict order, and the first
stage that rejects ends the request:

    1. Auth            bearer token -> RequestIdentity            (401)
    2. RateLimit       per-user sliding window for the tier       (429)
    3. UsageCap        daily AI-token cap, TTS cap on /voice/tts  (403)
    4. CostDegradation monthly budget level gates free tier/voice (503)

A request that passes gets a RequestContext. Handlers meter the vendor work
they trigger and hand the meter back through RequestContext.record_usage(),
which advances the user's daily usage and the global cost ledger.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

from interview_gateway.common.cost_tracker import CostCategory, CostTracker, DegradationLevel
from interview_gateway.common.logger import get_logger
from interview_gateway.common.rate_limiter import RateLimitExceededError, TierRateLimiter
from interview_gateway.common.tiers import Tier
from interview_gateway.common.token_meter import TokenMeter, metered
from interview_gateway.common.usage_tracker import UsageExceededError, UsageKind, UsageTracker

from .auth import (
    AuthenticationUnavailableError,
    IdentityResolver,
    InvalidTokenError,
    RequestIdentity,
)
from .responses import ApiError

logger = logging.getLogger(__name__)

VOICE_ROUTE_PREFIX = "/api/voice/"
TTS_ROUTE = "/api/voice/tts"


class GovernanceRejection(ApiError):
    """A governance stage refused the request."""

    def __init__(self, stage: str, status_code: int, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None):
        self.stage = stage
        super().__init__(status_code, body, headers)


def is_voice_route(path: str) -> bool:
    return path.startswith(VOICE_ROUTE_PREFIX)


def is_tts_route(path: str) -> bool:
    return path.rstrip("/") == TTS_ROUTE


@dataclass
class RequestContext:
    """What the chain learned about a request, plus the usage recording hook."""

    identity: RequestIdentity
    degradation_level: DegradationLevel
    usage: UsageTracker
    costs: CostTracker

    @property
    def user_id(self) -> str:
        return self.identity.user_id

    @property
    def tier(self) -> Tier:
        return self.identity.tier

    async def record_usage(self, meter: TokenMeter) -> None:
        """
        Advance the user's daily usage and the monthly cost ledger.

        Awaited by the handler once its vendor work is done (successful or
        not), so the next request from this user sees the new totals.
        """
        if meter.is_empty:
            return

        if meter.ai_tokens or meter.tts_chars:
            await self.usage.record(self.user_id, ai_tokens=meter.ai_tokens, tts_chars=meter.tts_chars)
        if meter.ai_tokens:
            await self.costs.record_cost(CostCategory.AI, meter.ai_tokens)
        if meter.tts_chars:
            await self.costs.record_cost(CostCategory.TTS, meter.tts_chars)
        if meter.stt_seconds:
            await self.costs.record_cost(CostCategory.STT, meter.stt_minutes)

    @asynccontextmanager
    async def metering(self) -> AsyncIterator[TokenMeter]:
        """
        Meter the vendor work done inside the block and record it on exit.

        Usage:
            async with ctx.metering():
                evaluation = await ai.evaluate_answer(...)
        """
        with metered() as meter:
            try:
                yield meter
            finally:
                await self.record_usage(meter)


class GovernanceChain:
    """Auth -> RateLimit -> UsageCap -> CostDegradation."""

    def __init__(
        self,
        resolver: IdentityResolver,
        rate_limiter: TierRateLimiter,
        usage: UsageTracker,
        costs: CostTracker,
    ):
        self.resolver = resolver
        self.rate_limiter = rate_limiter
        self.usage = usage
        self.costs = costs

    async def run(self, path: str, token: Optional[str]) -> RequestContext:
        """
        Run every stage for one request.

        Raises:
            GovernanceRejection: From the first stage that refuses the request
        """
        identity = await self.authenticate(token)
        self.enforce_rate_limit(identity)
        await self.enforce_usage_caps(identity, path)
        level = await self.enforce_cost_level(identity, path)
        return RequestContext(identity=identity, degradation_level=level, usage=self.usage, costs=self.costs)

    async def authenticate(self, token: Optional[str]) -> RequestIdentity:
        try:
            return await self.resolver.resolve(token)
        except InvalidTokenError as e:
            logger.warning(f"Governance reject [auth]: {e}")
            raise GovernanceRejection("auth", 401, {"error": "Invalid or expired token"})
        except AuthenticationUnavailableError as e:
            logger.warning(f"Governance reject [auth]: {e}")
            raise GovernanceRejection("auth", 401, {"error": "Authentication failed"})

    def enforce_rate_limit(self, identity: RequestIdentity) -> None:
        try:
            self.rate_limiter.consume(identity.user_id, identity.tier)
        except RateLimitExceededError as e:
            get_logger(__name__, identity.user_id, identity.tier.value).warning(
                f"Governance reject [rate_limit] 429: {e.current}/{e.limit} per window, retry in {e.retry_after}s"
            )
            raise GovernanceRejection(
                "rate_limit",
                429,
                {
                    "error": "Too many requests",
                    "message": "Please slow down. Try again in a moment.",
                    "retryAfter": e.retry_after,
                },
                headers={"Retry-After": str(e.retry_after)},
            )

    async def enforce_usage_caps(self, identity: RequestIdentity, path: str) -> None:
        try:
            await self.usage.check(identity.user_id, identity.tier, check_tts=is_tts_route(path))
        except UsageExceededError as e:
            get_logger(__name__, identity.user_id, identity.tier.value).warning(
                f"Governance reject [usage_cap] 403: {e.kind.value} {e.current}/{e.limit}"
            )
            usage = {"current": e.current, "limit": e.limit}
            if e.kind == UsageKind.TTS_CHARS:
                body = {
                    "error": "Daily voice limit reached",
                    "message": "Voice feature limit reached for today.",
                    "usage": usage,
                }
            else:
                body = {
                    "error": "Daily AI usage limit reached",
                    "message": "You've hit your daily limit. Upgrade your plan or try again tomorrow.",
                    "usage": usage,
                }
            raise GovernanceRejection("usage_cap", 403, body)

    async def enforce_cost_level(self, identity: RequestIdentity, path: str) -> DegradationLevel:
        level = await self.costs.get_degradation_level()

        if level == DegradationLevel.EMERGENCY and identity.tier == Tier.FREE:
            get_logger(__name__, identity.user_id, identity.tier.value).warning(
                "Governance reject [cost] 503: emergency budget level pauses the free tier"
            )
            raise GovernanceRejection(
                "cost",
                503,
                {
                    "error": "Service temporarily limited",
                    "message": "Free tier is temporarily paused. Please try again later or upgrade.",
                },
            )

        if level.at_least(DegradationLevel.DEGRADED) and is_voice_route(path):
            get_logger(__name__, identity.user_id, identity.tier.value).warning(
                f"Governance reject [cost] 503: voice disabled at {level.value} budget level"
            )
            raise GovernanceRejection(
                "cost",
                503,
                {
                    "error": "Voice temporarily unavailable",
                    "message": "Voice features are temporarily disabled. Text mode is still available.",
                },
            )

        return level
