"""
Provider Selector

Maps a subscription tier to the AI and voice providers that serve it. The
tier-to-backend assignment lives in TIER_PROFILES; this module only turns a
backend name into a lazily-built, process-wide provider instance.

The AI_PROVIDER override (e.g. "ollama") forces every tier onto a single
text-generation backend for offline development. Voice routing is unaffected
by the override.
"""

import logging
from typing import Callable, Dict, Mapping, Optional, Union

from ..common.config import Config
from ..common.tiers import AIBackend, Tier, VoiceBackend, get_tier_profile
from .ai.anthropic_provider import AnthropicProvider
from .ai.base import AIProvider
from .ai.gemini_provider import GeminiProvider
from .ai.ollama_provider import OllamaProvider
from .voice.base import VoiceProvider
from .voice.elevenlabs_whisper import ElevenLabsWhisperProvider
from .voice.gemini_voice import GeminiVoiceProvider

logger = logging.getLogger(__name__)

AIFactory = Callable[[], AIProvider]
VoiceFactory = Callable[[], VoiceProvider]

DEFAULT_AI_FACTORIES: Dict[AIBackend, AIFactory] = {
    AIBackend.ANTHROPIC: AnthropicProvider,
    AIBackend.GEMINI: GeminiProvider,
    AIBackend.OLLAMA: OllamaProvider,
}

DEFAULT_VOICE_FACTORIES: Dict[VoiceBackend, VoiceFactory] = {
    VoiceBackend.ELEVENLABS_WHISPER: ElevenLabsWhisperProvider,
    VoiceBackend.GEMINI: GeminiVoiceProvider,
}


def parse_override(value: Optional[str]) -> Optional[AIBackend]:
    """Resolve an AI_PROVIDER value; empty or unknown values disable the override."""
    if not value:
        return None
    try:
        return AIBackend(value.strip().lower())
    except ValueError:
        logger.warning(f"Ignoring unknown AI_PROVIDER override '{value}'")
        return None


class ProviderSelector:
    """
    Tier-keyed provider lookup with one instance per backend.

    Instances are built on first use, so a backend whose credentials are
    missing only fails when a tier that needs it is actually served.
    """

    def __init__(
        self,
        ai_factories: Optional[Mapping[AIBackend, AIFactory]] = None,
        voice_factories: Optional[Mapping[VoiceBackend, VoiceFactory]] = None,
        override: Union[AIBackend, str, None] = None,
    ):
        """
        Args:
            ai_factories: Constructor per AI backend (defaults to the vendor providers)
            voice_factories: Constructor per voice backend
            override: Backend that serves every tier (defaults to Config.AI_PROVIDER)
        """
        self._ai_factories = dict(ai_factories or DEFAULT_AI_FACTORIES)
        self._voice_factories = dict(voice_factories or DEFAULT_VOICE_FACTORIES)
        if isinstance(override, AIBackend):
            self.override = override
        else:
            self.override = parse_override(override if override is not None else Config.AI_PROVIDER)
        self._ai_instances: Dict[AIBackend, AIProvider] = {}
        self._voice_instances: Dict[VoiceBackend, VoiceProvider] = {}

        if self.override:
            logger.info(f"AI provider override active: every tier uses {self.override.value}")

    def ai_backend_for(self, tier: Union[Tier, str, None]) -> AIBackend:
        if self.override:
            return self.override
        return get_tier_profile(tier).ai_backend

    def voice_backend_for(self, tier: Union[Tier, str, None]) -> VoiceBackend:
        return get_tier_profile(tier).voice_backend

    def ai_for(self, tier: Union[Tier, str, None]) -> AIProvider:
        """AI provider serving this tier."""
        backend = self.ai_backend_for(tier)
        provider = self._ai_instances.get(backend)
        if provider is None:
            provider = self._ai_factories[backend]()
            self._ai_instances[backend] = provider
            logger.info(f"Initialized AI provider: {backend.value}")
        return provider

    def voice_for(self, tier: Union[Tier, str, None]) -> VoiceProvider:
        """Voice provider serving this tier."""
        backend = self.voice_backend_for(tier)
        provider = self._voice_instances.get(backend)
        if provider is None:
            provider = self._voice_factories[backend]()
            self._voice_instances[backend] = provider
            logger.info(f"Initialized voice provider: {backend.value}")
        return provider

    def reset(self) -> None:
        """Drop cached instances (used when configuration changes)."""
        self._ai_instances.clear()
        self._voice_instances.clear()
