"""
Subscription Tier Profiles

Each subscription tier maps to its request rate, daily usage caps and the
vendor backends that serve it. Callers resolve tiers through get_tier_profile()
so that unknown tier names fall back to the free profile.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Tier(str, Enum):
    """Subscription tiers."""

    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"


class AIBackend(str, Enum):
    """Text-generation backends."""

    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    OLLAMA = "ollama"


class VoiceBackend(str, Enum):
    """Speech synthesis / recognition backends."""

    ELEVENLABS_WHISPER = "elevenlabs-whisper"
    GEMINI = "gemini"


@dataclass(frozen=True)
class TierProfile:
    """Immutable quota and routing configuration for one tier."""

    tier: Tier
    requests_per_minute: int
    daily_ai_tokens: int
    daily_tts_chars: int
    ai_backend: AIBackend
    voice_backend: VoiceBackend
    rate_window_seconds: float = 60.0


TIER_PROFILES: Dict[Tier, TierProfile] = {
    Tier.FREE: TierProfile(
        tier=Tier.FREE,
        requests_per_minute=15,
        daily_ai_tokens=2_000,
        daily_tts_chars=0,  # voice synthesis is a paid feature
        ai_backend=AIBackend.GEMINI,
        voice_backend=VoiceBackend.GEMINI,
    ),
    Tier.PRO: TierProfile(
        tier=Tier.PRO,
        requests_per_minute=30,
        daily_ai_tokens=50_000,
        daily_tts_chars=15_000,
        ai_backend=AIBackend.ANTHROPIC,
        voice_backend=VoiceBackend.ELEVENLABS_WHISPER,
    ),
    Tier.PREMIUM: TierProfile(
        tier=Tier.PREMIUM,
        requests_per_minute=60,
        daily_ai_tokens=120_000,
        daily_tts_chars=40_000,
        ai_backend=AIBackend.ANTHROPIC,
        voice_backend=VoiceBackend.ELEVENLABS_WHISPER,
    ),
}


def parse_tier(value: Optional[str]) -> Tier:
    """
    Convert a stored tier name into a Tier.

    Unknown, empty or missing values resolve to FREE.
    """
    if isinstance(value, Tier):
        return value
    if not value:
        return Tier.FREE
    try:
        return Tier(value.strip().lower())
    except ValueError:
        return Tier.FREE


def get_tier_profile(tier: Optional[str]) -> TierProfile:
    """Get the profile for a tier name (free profile for unknown names)."""
    return TIER_PROFILES[parse_tier(tier)]
