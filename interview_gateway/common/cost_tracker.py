"""
Cost Tracking Module.

Process-wide monthly spend across AI tokens, TTS characters and STT minutes,
compared against a monthly budget ceiling. The share of the budget consumed
determines a global degradation level:

    >= 100%  emergency   free tier paused
    >=  95%  degraded    voice routes disabled
    >=  80%  warning     no blocking
    else     none

The level is computed from the ledger on every call; there is no scheduled
job. The ledger starts from zero on the first access of a new UTC month.

Usage:
    tracker = CostTracker(budget_usd=500.0)

    await tracker.record_cost(CostCategory.AI, 1200)  # 1200 tokens
    level = await tracker.get_degradation_level()
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .stores import CostLedger, CostStore, InMemoryCostStore

logger = logging.getLogger(__name__)


class CostCategory(str, Enum):
    """Spend categories."""
    AI = "ai"
    TTS = "tts"
    STT = "stt"


class DegradationLevel(str, Enum):
    """Global service levels derived from monthly spend."""
    NONE = "none"
    WARNING = "warning"
    DEGRADED = "degraded"
    EMERGENCY = "emergency"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def at_least(self, other: "DegradationLevel") -> bool:
        return self.severity >= other.severity


_SEVERITY = {
    DegradationLevel.NONE: 0,
    DegradationLevel.WARNING: 1,
    DegradationLevel.DEGRADED: 2,
    DegradationLevel.EMERGENCY: 3,
}

# Thresholds as percent of the monthly budget, most severe first
DEGRADATION_THRESHOLDS = (
    (100.0, DegradationLevel.EMERGENCY),
    (95.0, DegradationLevel.DEGRADED),
    (80.0, DegradationLevel.WARNING),
)


@dataclass(frozen=True)
class CostRates:
    """Approximate vendor pricing in USD per unit."""
    ai_token: float = 0.000003
    tts_char: float = 0.000018
    stt_minute: float = 0.006

    def for_category(self, category: CostCategory) -> float:
        if category == CostCategory.AI:
            return self.ai_token
        if category == CostCategory.TTS:
            return self.tts_char
        return self.stt_minute


def degradation_for_percent(percent_used: float) -> DegradationLevel:
    """Map budget consumption (percent) to a degradation level."""
    for threshold, level in DEGRADATION_THRESHOLDS:
        if percent_used >= threshold:
            return level
    return DegradationLevel.NONE


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CostTracker:
    """Monthly cost ledger shared by every user of the process."""

    def __init__(
        self,
        budget_usd: float = 500.0,
        rates: Optional[CostRates] = None,
        store: Optional[CostStore] = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize cost tracker.

        Args:
            budget_usd: Monthly budget ceiling
            rates: Per-unit prices (defaults approximate current vendor pricing)
            store: Ledger storage (in-memory if omitted)
            now: Wall clock (injectable for tests)
        """
        if budget_usd <= 0:
            raise ValueError("budget_usd must be positive")
        self.budget_usd = budget_usd
        self.rates = rates or CostRates()
        self._store = store or InMemoryCostStore()
        self._now = now

    def current_month(self) -> str:
        return self._now().strftime("%Y-%m")

    def percent_of_budget(self, total_usd: float) -> float:
        return total_usd / self.budget_usd * 100

    async def record_cost(self, category: CostCategory, units: float) -> float:
        """
        Convert units to USD and add them to this month's ledger.

        Args:
            category: ai (tokens), tts (characters) or stt (minutes)
            units: Amount consumed in the category's unit

        Returns:
            The USD amount recorded
        """
        category = CostCategory(category)
        if units <= 0:
            return 0.0

        amount = units * self.rates.for_category(category)
        ledger = await self._store.add(self.current_month(), category.value, amount)

        before = degradation_for_percent(self.percent_of_budget(ledger.total - amount))
        after = degradation_for_percent(self.percent_of_budget(ledger.total))
        if after != before and after.at_least(DegradationLevel.WARNING):
            self._log_level_change(after, ledger)

        return amount

    def _log_level_change(self, level: DegradationLevel, ledger: CostLedger) -> None:
        percent = self.percent_of_budget(ledger.total)
        message = (
            f"Monthly spend at {percent:.1f}% of ${self.budget_usd:.2f} budget "
            f"(${ledger.total:.2f}) - degradation level {level.value}"
        )
        if level == DegradationLevel.EMERGENCY:
            logger.error(f"{message}: free tier paused")
        elif level == DegradationLevel.DEGRADED:
            logger.warning(f"{message}: voice features disabled")
        else:
            logger.warning(message)

    async def get_ledger(self) -> CostLedger:
        return await self._store.get(self.current_month())

    async def get_degradation_level(self) -> DegradationLevel:
        """Current degradation level from this month's spend."""
        ledger = await self.get_ledger()
        return degradation_for_percent(self.percent_of_budget(ledger.total))

    async def status(self) -> Dict[str, Any]:
        """Spend summary for operators."""
        ledger = await self.get_ledger()
        percent = self.percent_of_budget(ledger.total)
        return {
            "month": ledger.month,
            "totalCost": round(ledger.total, 4),
            "budget": self.budget_usd,
            "percentUsed": round(percent, 1),
            "degradationLevel": degradation_for_percent(percent).value,
            "breakdown": {name: round(value, 4) for name, value in ledger.breakdown.items()},
        }
