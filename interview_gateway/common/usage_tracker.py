"""
Usage Tracking Module.

Per-user, per-day consumption counters checked against the daily caps of the
user's tier. The tracker never estimates consumption itself; handlers report
what a vendor call actually consumed through record().

Usage:
    tracker = UsageTracker()

    await tracker.check(user_id, tier, check_tts=is_tts_route)   # may raise
    ...
    await tracker.record(user_id, ai_tokens=812)

Days are UTC calendar days. The first access on a new day starts from zero.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from .stores import InMemoryUsageStore, UsageRecord, UsageStore
from .tiers import TIER_PROFILES, Tier, TierProfile, parse_tier

logger = logging.getLogger(__name__)


class UsageKind(str, Enum):
    """Capped resources."""
    AI_TOKENS = "ai_tokens"
    TTS_CHARS = "tts_chars"


class UsageExceededError(Exception):
    """Raised when a user has reached a daily cap."""

    def __init__(self, user_id: str, kind: UsageKind, current: int, limit: int):
        self.user_id = user_id
        self.kind = kind
        self.current = current
        self.limit = limit
        super().__init__(f"Daily {kind.value} cap reached for {user_id}: {current}/{limit}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UsageTracker:
    """Daily usage ledger keyed by user."""

    def __init__(
        self,
        store: Optional[UsageStore] = None,
        profiles: Optional[Mapping[Tier, TierProfile]] = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            store: Record storage (in-memory if omitted)
            profiles: Tier profiles supplying the caps
            now: Wall clock (injectable for tests)
        """
        self._store = store or InMemoryUsageStore()
        self._profiles = profiles or TIER_PROFILES
        self._now = now

    def today(self) -> str:
        return self._now().strftime("%Y-%m-%d")

    def _profile(self, tier: Optional[str]) -> TierProfile:
        return self._profiles.get(parse_tier(tier)) or self._profiles[Tier.FREE]

    async def check(self, user_id: str, tier: Optional[str], check_tts: bool = False) -> UsageRecord:
        """
        Verify the user is below today's caps.

        The AI-token cap applies to every request; the TTS-character cap
        only when check_tts is set (speech synthesis routes).

        Raises:
            UsageExceededError: When a cap is met or exceeded
        """
        profile = self._profile(tier)
        record = await self._store.get(user_id, self.today())

        if record.ai_tokens >= profile.daily_ai_tokens:
            raise UsageExceededError(user_id, UsageKind.AI_TOKENS, record.ai_tokens, profile.daily_ai_tokens)

        if check_tts and record.tts_chars >= profile.daily_tts_chars:
            raise UsageExceededError(user_id, UsageKind.TTS_CHARS, record.tts_chars, profile.daily_tts_chars)

        return record

    async def record(self, user_id: str, ai_tokens: int = 0, tts_chars: int = 0) -> UsageRecord:
        """Add consumption to today's record."""
        if ai_tokens < 0 or tts_chars < 0:
            raise ValueError("Usage amounts cannot be negative")
        record = await self._store.add(user_id, self.today(), ai_tokens, tts_chars)
        logger.debug(
            f"Usage for {user_id} on {record.day}: ai_tokens={record.ai_tokens} tts_chars={record.tts_chars}"
        )
        return record

    async def get_usage(self, user_id: str) -> UsageRecord:
        """Today's record for a user."""
        return await self._store.get(user_id, self.today())

    async def get_usage_stats(self, user_id: str, tier: Optional[str]) -> Dict[str, Any]:
        """Today's usage next to the tier's caps."""
        profile = self._profile(tier)
        record = await self.get_usage(user_id)
        return {
            "tier": profile.tier.value,
            "date": record.day,
            "aiTokens": {"used": record.ai_tokens, "limit": profile.daily_ai_tokens},
            "ttsChars": {"used": record.tts_chars, "limit": profile.daily_tts_chars},
        }
