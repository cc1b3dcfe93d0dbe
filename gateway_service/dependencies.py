"""
Service container and FastAPI dependencies.

All process-wide state (rate windows, usage and cost ledgers, provider
instances, repositories) lives in one GatewayServices object built at app
creation and stored on app.state. Tests build their own container with
fakes and pass it to create_app().
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from interview_gateway.common.cost_tracker import CostTracker
from interview_gateway.common.rate_limiter import TierRateLimiter
from interview_gateway.common.stores import (
    InMemoryCostStore,
    InMemoryUsageStore,
    RedisCostStore,
    RedisUsageStore,
    create_redis_client,
)
from interview_gateway.common.tiers import Tier
from interview_gateway.common.usage_tracker import UsageTracker
from interview_gateway.repositories import Repositories, RepositoryConfig, create_repositories
from interview_gateway.services.scraper import JobListingScraper
from interview_gateway.services.selector import ProviderSelector

from .auth import IdentityResolver, SupabaseTokenVerifier
from .config import GatewaySettings
from .middleware import GovernanceChain, RequestContext
from .responses import ApiError

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


@dataclass
class GatewayServices:
    """Everything a request handler may need."""

    settings: GatewaySettings
    governance: GovernanceChain
    usage: UsageTracker
    costs: CostTracker
    rate_limiter: TierRateLimiter
    selector: ProviderSelector
    scraper: JobListingScraper
    repositories: Repositories


def build_services(
    settings: GatewaySettings,
    repositories: Optional[Repositories] = None,
    selector: Optional[ProviderSelector] = None,
    scraper: Optional[JobListingScraper] = None,
    verifier: Optional[SupabaseTokenVerifier] = None,
) -> GatewayServices:
    """
    Build the service container from settings.

    Usage and cost ledgers use Redis when REDIS_URL is set, in-process
    dicts otherwise. Rate windows are always in-process.
    """
    if settings.redis_url:
        redis = create_redis_client(settings.redis_url)
        usage_store, cost_store = RedisUsageStore(redis), RedisCostStore(redis)
        logger.info("Usage and cost ledgers stored in Redis")
    else:
        usage_store, cost_store = InMemoryUsageStore(), InMemoryCostStore()
        logger.info("Usage and cost ledgers stored in memory")

    repositories = repositories or create_repositories(
        RepositoryConfig(mongodb_uri=settings.mongodb_uri, database=settings.mongo_db_name)
    )
    verifier = verifier or SupabaseTokenVerifier(
        settings.supabase_url,
        settings.supabase_service_key,
        timeout=settings.auth_timeout_seconds,
    )

    usage = UsageTracker(store=usage_store)
    costs = CostTracker(budget_usd=settings.monthly_budget_usd, rates=settings.cost_rates, store=cost_store)
    rate_limiter = TierRateLimiter()

    return GatewayServices(
        settings=settings,
        governance=GovernanceChain(
            resolver=IdentityResolver(verifier, repositories.profiles),
            rate_limiter=rate_limiter,
            usage=usage,
            costs=costs,
        ),
        usage=usage,
        costs=costs,
        rate_limiter=rate_limiter,
        selector=selector or ProviderSelector(),
        scraper=scraper or JobListingScraper(),
        repositories=repositories,
    )


def get_services(request: Request) -> GatewayServices:
    return request.app.state.services


async def govern_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer),
) -> RequestContext:
    """
    Run the governance chain for this request.

    Declared on every governed router; FastAPI caches the result per request,
    so handlers that also ask for it get the same context without a second pass.
    """
    services = get_services(request)
    token = credentials.credentials if credentials else None
    return await services.governance.run(request.url.path, token)


async def require_user(ctx: RequestContext = Depends(govern_request)) -> RequestContext:
    """Governed request from an authenticated caller."""
    if not ctx.identity.is_authenticated:
        raise ApiError(401, {"error": "Authentication required"})
    return ctx


async def require_premium(ctx: RequestContext = Depends(require_user)) -> RequestContext:
    """Governed request from an authenticated premium caller."""
    if ctx.tier != Tier.PREMIUM:
        raise ApiError(403, {"error": "Coaching is a Premium feature"})
    return ctx
