"""
Configuration loader for the vendor backends.

Loads vendor credentials, model names and endpoints from environment
variables (.env file). Gateway-level settings (budget, port, CORS, stores)
live in gateway_service.config.
"""

import os
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    Centralized configuration for all vendor backends.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== Anthropic (pro / premium text generation) =====
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5-20250929")

    # ===== Gemini (free tier text generation and voice) =====
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    GEMINI_TTS_MODEL: str = os.getenv("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts")
    GEMINI_API_BASE: str = os.getenv(
        "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta/models"
    )

    # ===== Ollama (local development backend) =====
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://localhost:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "gemma3:4b")

    # Forces every tier onto one backend ("ollama" for offline development)
    AI_PROVIDER: str = os.getenv("AI_PROVIDER", "").strip().lower()

    # ===== Voice =====
    ELEVENLABS_API_KEY: str = os.getenv("ELEVENLABS_API_KEY", "")
    ELEVENLABS_VOICE_ID: str = os.getenv("ELEVENLABS_VOICE_ID", "21m00Tcm4TlvDq8ikWAM")
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")  # Whisper transcription

    # ===== Timeouts =====
    VENDOR_TIMEOUT_SECONDS: float = float(os.getenv("VENDOR_TIMEOUT_SECONDS", "30"))
    SCRAPE_TIMEOUT_SECONDS: float = float(os.getenv("SCRAPE_TIMEOUT_SECONDS", "10"))

    # ===== MongoDB =====
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "interview_coach")

    @classmethod
    def validate(cls) -> List[str]:
        """
        List missing credentials for the backends that will be used.

        Returns:
            Names of missing environment variables (empty when complete)
        """
        missing = []
        if cls.AI_PROVIDER == "ollama":
            required = ["OLLAMA_URL", "OLLAMA_MODEL"]
        else:
            required = ["ANTHROPIC_API_KEY", "GEMINI_API_KEY"]
        required += ["ELEVENLABS_API_KEY", "OPENAI_API_KEY"]

        for name in required:
            if not getattr(cls, name):
                missing.append(name)
        return missing

    @classmethod
    def summary(cls) -> str:
        """Return configuration summary (without secrets)."""
        return f"""
Configuration Summary:
- AI override: {cls.AI_PROVIDER or 'none (tier routing)'}
- Anthropic: {'✓' if cls.ANTHROPIC_API_KEY else '✗'} ({cls.ANTHROPIC_MODEL})
- Gemini: {'✓' if cls.GEMINI_API_KEY else '✗'} ({cls.GEMINI_MODEL})
- Ollama: {cls.OLLAMA_URL} ({cls.OLLAMA_MODEL})
- ElevenLabs: {'✓' if cls.ELEVENLABS_API_KEY else '✗'}
- Whisper (OpenAI): {'✓' if cls.OPENAI_API_KEY else '✗'}
- MongoDB: {'✓' if cls.MONGODB_URI else '✗'}
"""
