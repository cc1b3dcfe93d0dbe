"""
Premium voice backend: ElevenLabs synthesis, OpenAI Whisper transcription.
"""

import logging
from typing import AsyncIterator, Optional

import httpx
from openai import APIError, AsyncOpenAI, RateLimitError

from ...common.config import Config
from ...common.errors import ProviderError, RateLimitedError
from ...common.token_meter import record_stt_seconds, record_tts_chars
from ..http import transport_error

logger = logging.getLogger(__name__)

ELEVENLABS_API_BASE = "https://api.elevenlabs.io/v1"
ELEVENLABS_MODEL_ID = "eleven_turbo_v2"
MAX_TTS_CHARS = 5000
VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0.3,
}
WHISPER_MODEL = "whisper-1"


class ElevenLabsWhisperProvider:
    """VoiceProvider for paid tiers."""

    name = "elevenlabs-whisper"

    def __init__(
        self,
        elevenlabs_api_key: Optional[str] = None,
        default_voice_id: Optional[str] = None,
        openai_client: Optional[AsyncOpenAI] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.elevenlabs_api_key = (
            elevenlabs_api_key if elevenlabs_api_key is not None else Config.ELEVENLABS_API_KEY
        )
        self.default_voice_id = default_voice_id or Config.ELEVENLABS_VOICE_ID
        self.timeout = timeout or Config.VENDOR_TIMEOUT_SECONDS
        self._http_client = http_client
        self._openai_client = openai_client

    @property
    def openai_client(self) -> AsyncOpenAI:
        if self._openai_client is None:
            self._openai_client = AsyncOpenAI(api_key=Config.OPENAI_API_KEY, timeout=self.timeout)
        return self._openai_client

    async def text_to_speech(self, text: str, voice_id: Optional[str] = None) -> AsyncIterator[bytes]:
        voice = voice_id or self.default_voice_id
        spoken = text[:MAX_TTS_CHARS]

        client = self._http_client or httpx.AsyncClient(timeout=self.timeout)
        owns_client = self._http_client is None
        request = client.build_request(
            "POST",
            f"{ELEVENLABS_API_BASE}/text-to-speech/{voice}/stream",
            headers={
                "xi-api-key": self.elevenlabs_api_key,
                "Content-Type": "application/json",
                "Accept": "audio/mpeg",
            },
            json={"text": spoken, "model_id": ELEVENLABS_MODEL_ID, "voice_settings": VOICE_SETTINGS},
        )

        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            if owns_client:
                await client.aclose()
            raise transport_error("ElevenLabs", e) from e

        if response.status_code >= 400:
            detail = (await response.aread()).decode("utf-8", errors="replace")[:300]
            await response.aclose()
            if owns_client:
                await client.aclose()
            if response.status_code == 429:
                raise RateLimitedError(f"ElevenLabs rate limit: {detail}", provider=self.name)
            raise ProviderError(
                f"ElevenLabs API error {response.status_code}: {detail}",
                provider=self.name,
                status_code=response.status_code,
            )

        record_tts_chars(len(spoken))
        return self._stream_audio(response, client if owns_client else None)

    @staticmethod
    async def _stream_audio(
        response: httpx.Response,
        owned_client: Optional[httpx.AsyncClient],
    ) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        finally:
            await response.aclose()
            if owned_client is not None:
                await owned_client.aclose()

    async def speech_to_text(self, audio: bytes, filename: str) -> str:
        try:
            transcription = await self.openai_client.audio.transcriptions.create(
                file=(filename or "audio.m4a", audio),
                model=WHISPER_MODEL,
                response_format="verbose_json",
            )
        except RateLimitError as e:
            raise RateLimitedError("Whisper rate limit reached. Try again shortly.", provider=self.name) from e
        except APIError as e:
            logger.error(f"Whisper transcription failed: {e}")
            raise ProviderError(f"Whisper API error: {e.__class__.__name__}", provider=self.name) from e

        duration = getattr(transcription, "duration", None)
        if duration:
            record_stt_seconds(float(duration))
        return (getattr(transcription, "text", "") or "").strip()
