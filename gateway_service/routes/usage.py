"""
Usage and cost reporting routes.

- GET /api/usage       - Caller's usage today against their tier caps
- GET /api/admin/cost  - Monthly cost ledger (ADMIN_USER_IDS only)
"""

import logging

from fastapi import APIRouter, Depends

from ..dependencies import GatewayServices, get_services, govern_request, require_user
from ..middleware import RequestContext
from ..responses import ApiError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["usage"], dependencies=[Depends(govern_request)])


@router.get("/usage")
async def get_usage(
    ctx: RequestContext = Depends(govern_request),
    services: GatewayServices = Depends(get_services),
):
    """Today's usage for the caller plus the current budget level."""
    stats = await services.usage.get_usage_stats(ctx.user_id, ctx.tier)
    return {**stats, "degradationLevel": ctx.degradation_level.value}


@router.get("/admin/cost")
async def get_cost_status(
    ctx: RequestContext = Depends(require_user),
    services: GatewayServices = Depends(get_services),
):
    """Month-to-date spend against the budget."""
    if ctx.user_id not in services.settings.admin_user_id_set:
        logger.warning(f"Cost status refused for non-admin user {ctx.user_id}")
        raise ApiError(403, {"error": "Access denied"})
    return await services.costs.status()
