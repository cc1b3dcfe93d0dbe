"""
Ledger Stores

Storage backends for the per-user daily usage records and the monthly cost
ledger. The in-memory stores are the default; the Redis stores let several
gateway processes share one set of ledgers.

In-memory stores perform each read-modify-write without awaiting in the
middle, so a single event loop never interleaves two updates of the same
record. Redis stores rely on HINCRBY / HINCRBYFLOAT being atomic on the server.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

COST_CATEGORIES = ("ai", "tts", "stt")


@dataclass
class UsageRecord:
    """Usage for one user on one calendar day."""
    user_id: str
    day: str  # YYYY-MM-DD
    ai_tokens: int = 0
    tts_chars: int = 0


@dataclass
class CostLedger:
    """Spend for one calendar month, in USD, by category."""
    month: str  # YYYY-MM
    breakdown: Dict[str, float] = field(
        default_factory=lambda: {category: 0.0 for category in COST_CATEGORIES}
    )

    @property
    def total(self) -> float:
        return sum(self.breakdown.values())


class UsageStore(Protocol):
    """Storage for daily usage records."""

    async def get(self, user_id: str, day: str) -> UsageRecord:
        """Get the record for (user, day); a zeroed record if none exists."""
        ...

    async def add(self, user_id: str, day: str, ai_tokens: int, tts_chars: int) -> UsageRecord:
        """Add consumption to (user, day) and return the updated record."""
        ...


class CostStore(Protocol):
    """Storage for the monthly cost ledger."""

    async def get(self, month: str) -> CostLedger:
        """Get the ledger for a month; an empty ledger if none exists."""
        ...

    async def add(self, month: str, category: str, amount_usd: float) -> CostLedger:
        """Add spend to a month's category and return the updated ledger."""
        ...


class InMemoryUsageStore:
    """
    Process-local usage records, one per user.

    A user's record is replaced by a zeroed one the first time it is
    touched on a new day.
    """

    def __init__(self):
        self._records: Dict[str, UsageRecord] = {}

    def _current(self, user_id: str, day: str) -> UsageRecord:
        record = self._records.get(user_id)
        if record is None or record.day != day:
            record = UsageRecord(user_id=user_id, day=day)
            self._records[user_id] = record
        return record

    async def get(self, user_id: str, day: str) -> UsageRecord:
        record = self._current(user_id, day)
        return UsageRecord(record.user_id, record.day, record.ai_tokens, record.tts_chars)

    async def add(self, user_id: str, day: str, ai_tokens: int, tts_chars: int) -> UsageRecord:
        record = self._current(user_id, day)
        record.ai_tokens += ai_tokens
        record.tts_chars += tts_chars
        return UsageRecord(record.user_id, record.day, record.ai_tokens, record.tts_chars)


class InMemoryCostStore:
    """Process-local cost ledger; replaced when the month changes."""

    def __init__(self):
        self._ledger: Optional[CostLedger] = None

    def _current(self, month: str) -> CostLedger:
        if self._ledger is None or self._ledger.month != month:
            self._ledger = CostLedger(month=month)
        return self._ledger

    async def get(self, month: str) -> CostLedger:
        ledger = self._current(month)
        return CostLedger(month=ledger.month, breakdown=dict(ledger.breakdown))

    async def add(self, month: str, category: str, amount_usd: float) -> CostLedger:
        ledger = self._current(month)
        ledger.breakdown[category] = ledger.breakdown.get(category, 0.0) + amount_usd
        return CostLedger(month=ledger.month, breakdown=dict(ledger.breakdown))


class RedisUsageStore:
    """
    Usage records in Redis hashes keyed by user and day.

    Keys: usage:{user_id}:{day} with fields ai_tokens / tts_chars.
    Old days simply expire, so rollover needs no cleanup.
    """

    KEY_PREFIX = "usage:"
    TTL_SECONDS = 86400 * 2

    def __init__(self, redis: Redis):
        self._redis = redis

    def _key(self, user_id: str, day: str) -> str:
        return f"{self.KEY_PREFIX}{user_id}:{day}"

    @staticmethod
    def _to_record(user_id: str, day: str, data: Dict[str, str]) -> UsageRecord:
        return UsageRecord(
            user_id=user_id,
            day=day,
            ai_tokens=int(data.get("ai_tokens", 0) or 0),
            tts_chars=int(data.get("tts_chars", 0) or 0),
        )

    async def get(self, user_id: str, day: str) -> UsageRecord:
        data = await self._redis.hgetall(self._key(user_id, day))
        return self._to_record(user_id, day, data or {})

    async def add(self, user_id: str, day: str, ai_tokens: int, tts_chars: int) -> UsageRecord:
        key = self._key(user_id, day)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hincrby(key, "ai_tokens", ai_tokens)
            pipe.hincrby(key, "tts_chars", tts_chars)
            pipe.expire(key, self.TTL_SECONDS)
            ai_total, tts_total, _ = await pipe.execute()
        return UsageRecord(user_id=user_id, day=day, ai_tokens=int(ai_total), tts_chars=int(tts_total))


class RedisCostStore:
    """
    Monthly cost ledger in a Redis hash.

    Key: cost:{month} with one float field per category.
    """

    KEY_PREFIX = "cost:"
    TTL_SECONDS = 86400 * 40

    def __init__(self, redis: Redis):
        self._redis = redis

    def _key(self, month: str) -> str:
        return f"{self.KEY_PREFIX}{month}"

    async def get(self, month: str) -> CostLedger:
        data = await self._redis.hgetall(self._key(month)) or {}
        ledger = CostLedger(month=month)
        for category in COST_CATEGORIES:
            ledger.breakdown[category] = float(data.get(category, 0.0) or 0.0)
        return ledger

    async def add(self, month: str, category: str, amount_usd: float) -> CostLedger:
        key = self._key(month)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hincrbyfloat(key, category, amount_usd)
            pipe.expire(key, self.TTL_SECONDS)
            pipe.hgetall(key)
            _, _, data = await pipe.execute()
        ledger = CostLedger(month=month)
        for name in COST_CATEGORIES:
            ledger.breakdown[name] = float((data or {}).get(name, 0.0) or 0.0)
        return ledger


def create_redis_client(redis_url: str) -> Redis:
    """Create a Redis client for the ledger stores (connects lazily)."""
    logger.info("Ledger stores backed by Redis")
    return Redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
