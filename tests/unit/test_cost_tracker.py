"""
Unit tests for interview_gateway/common/cost_tracker.py

Tests the monthly budget ledger and the derived degradation level:
- Threshold boundaries (80 / 95 / 100 percent)
- Unit pricing per category
- Month rollover
"""

import logging
from datetime import datetime, timezone

import pytest

from interview_gateway.common.cost_tracker import (
    CostCategory,
    CostRates,
    CostTracker,
    DegradationLevel,
    degradation_for_percent,
)

# 1 USD per unit keeps the arithmetic readable
UNIT_RATES = CostRates(ai_token=1.0, tts_char=1.0, stt_minute=1.0)


@pytest.fixture
def tracker(wall_clock):
    return CostTracker(budget_usd=100.0, rates=UNIT_RATES, now=wall_clock)


# ===== TESTS: Degradation levels =====

class TestDegradationForPercent:
    @pytest.mark.parametrize("percent,expected", [
        (0, DegradationLevel.NONE),
        (79.9, DegradationLevel.NONE),
        (80, DegradationLevel.WARNING),
        (94.9, DegradationLevel.WARNING),
        (95, DegradationLevel.DEGRADED),
        (99.9, DegradationLevel.DEGRADED),
        (100, DegradationLevel.EMERGENCY),
        (150, DegradationLevel.EMERGENCY),
    ])
    def test_thresholds(self, percent, expected):
        assert degradation_for_percent(percent) == expected

    def test_at_least_ordering(self):
        assert DegradationLevel.EMERGENCY.at_least(DegradationLevel.DEGRADED)
        assert DegradationLevel.DEGRADED.at_least(DegradationLevel.DEGRADED)
        assert not DegradationLevel.WARNING.at_least(DegradationLevel.DEGRADED)


class TestCostTracker:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("spend,expected", [
        (79, DegradationLevel.NONE),
        (81, DegradationLevel.WARNING),
        (96, DegradationLevel.DEGRADED),
        (101, DegradationLevel.EMERGENCY),
    ])
    async def test_level_follows_spend(self, tracker, spend, expected):
        await tracker.record_cost(CostCategory.AI, spend)
        assert await tracker.get_degradation_level() == expected

    @pytest.mark.asyncio
    async def test_categories_are_priced_separately(self, wall_clock):
        tracker = CostTracker(
            budget_usd=10.0,
            rates=CostRates(ai_token=0.001, tts_char=0.01, stt_minute=0.5),
            now=wall_clock,
        )
        assert await tracker.record_cost(CostCategory.AI, 1000) == pytest.approx(1.0)
        assert await tracker.record_cost(CostCategory.TTS, 100) == pytest.approx(1.0)
        assert await tracker.record_cost(CostCategory.STT, 2) == pytest.approx(1.0)

        status = await tracker.status()
        assert status["totalCost"] == pytest.approx(3.0)
        assert status["percentUsed"] == pytest.approx(30.0)
        assert status["breakdown"] == {"ai": 1.0, "tts": 1.0, "stt": 1.0}

    @pytest.mark.asyncio
    async def test_zero_units_are_ignored(self, tracker):
        assert await tracker.record_cost(CostCategory.AI, 0) == 0.0
        assert (await tracker.get_ledger()).total == 0.0

    @pytest.mark.asyncio
    async def test_status_shape(self, tracker):
        await tracker.record_cost(CostCategory.TTS, 85)
        status = await tracker.status()
        assert status["month"] == "2026-03"
        assert status["budget"] == 100.0
        assert status["degradationLevel"] == "warning"

    @pytest.mark.asyncio
    async def test_new_month_starts_from_zero(self, tracker, wall_clock):
        await tracker.record_cost(CostCategory.AI, 101)
        wall_clock.current = datetime(2026, 4, 1, 0, 0, 1, tzinfo=timezone.utc)
        assert await tracker.get_degradation_level() == DegradationLevel.NONE

    @pytest.mark.asyncio
    async def test_crossing_a_threshold_is_logged(self, tracker, caplog):
        with caplog.at_level(logging.WARNING, logger="interview_gateway.common.cost_tracker"):
            await tracker.record_cost(CostCategory.AI, 90)
            await tracker.record_cost(CostCategory.AI, 1)
        messages = [r.getMessage() for r in caplog.records]
        assert len(messages) == 1
        assert "warning" in messages[0]

    def test_budget_must_be_positive(self):
        with pytest.raises(ValueError):
            CostTracker(budget_usd=0)
