"""Voice provider interface and its vendor backends."""

from .base import VoiceProvider
from .elevenlabs_whisper import ElevenLabsWhisperProvider
from .gemini_voice import GeminiVoiceProvider

__all__ = ["VoiceProvider", "ElevenLabsWhisperProvider", "GeminiVoiceProvider"]
