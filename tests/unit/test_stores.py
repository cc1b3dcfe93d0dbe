"""
Unit tests for interview_gateway/common/stores.py

In-memory stores are exercised directly; Redis stores against a mocked
redis.asyncio client (no server needed).
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from interview_gateway.common.stores import (
    InMemoryCostStore,
    InMemoryUsageStore,
    RedisCostStore,
    RedisUsageStore,
)


def _mock_redis(execute_result, hgetall_result=None):
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=execute_result)
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=False)

    redis = MagicMock()
    redis.pipeline.return_value = pipe
    redis.hgetall = AsyncMock(return_value=hgetall_result or {})
    return redis, pipe


class TestInMemoryUsageStore:
    @pytest.mark.asyncio
    async def test_unknown_user_reads_zero(self):
        record = await InMemoryUsageStore().get("u1", "2026-03-14")
        assert (record.ai_tokens, record.tts_chars) == (0, 0)

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self):
        store = InMemoryUsageStore()
        record = await store.add("u1", "2026-03-14", 10, 0)
        record.ai_tokens = 999
        assert (await store.get("u1", "2026-03-14")).ai_tokens == 10

    @pytest.mark.asyncio
    async def test_new_day_replaces_record(self):
        store = InMemoryUsageStore()
        await store.add("u1", "2026-03-14", 10, 5)
        record = await store.add("u1", "2026-03-15", 1, 0)
        assert (record.day, record.ai_tokens, record.tts_chars) == ("2026-03-15", 1, 0)


class TestInMemoryCostStore:
    @pytest.mark.asyncio
    async def test_ledger_accumulates_and_rolls_over(self):
        store = InMemoryCostStore()
        await store.add("2026-03", "ai", 1.5)
        ledger = await store.add("2026-03", "stt", 0.5)
        assert ledger.total == pytest.approx(2.0)

        assert (await store.get("2026-04")).total == 0.0


class TestRedisUsageStore:
    @pytest.mark.asyncio
    async def test_get_parses_hash(self):
        redis, _ = _mock_redis([], {"ai_tokens": "120", "tts_chars": "7"})
        record = await RedisUsageStore(redis).get("u1", "2026-03-14")

        redis.hgetall.assert_awaited_once_with("usage:u1:2026-03-14")
        assert (record.ai_tokens, record.tts_chars) == (120, 7)

    @pytest.mark.asyncio
    async def test_add_increments_atomically_with_expiry(self):
        redis, pipe = _mock_redis([150, 20, True])
        record = await RedisUsageStore(redis).add("u1", "2026-03-14", 50, 20)

        redis.pipeline.assert_called_once_with(transaction=True)
        pipe.hincrby.assert_any_call("usage:u1:2026-03-14", "ai_tokens", 50)
        pipe.hincrby.assert_any_call("usage:u1:2026-03-14", "tts_chars", 20)
        pipe.expire.assert_called_once_with("usage:u1:2026-03-14", RedisUsageStore.TTL_SECONDS)
        assert (record.ai_tokens, record.tts_chars) == (150, 20)


class TestRedisCostStore:
    @pytest.mark.asyncio
    async def test_add_returns_updated_ledger(self):
        redis, pipe = _mock_redis([1.25, True, {"ai": "1.25", "tts": "0.5"}])
        ledger = await RedisCostStore(redis).add("2026-03", "ai", 0.25)

        pipe.hincrbyfloat.assert_called_once_with("cost:2026-03", "ai", 0.25)
        assert ledger.breakdown == {"ai": 1.25, "tts": 0.5, "stt": 0.0}
        assert ledger.total == pytest.approx(1.75)

    @pytest.mark.asyncio
    async def test_get_missing_month(self):
        redis, _ = _mock_redis([], {})
        ledger = await RedisCostStore(redis).get("2026-03")
        assert ledger.total == 0.0
