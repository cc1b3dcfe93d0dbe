"""
Free-tier voice backend using Gemini's multimodal model.

Lower quality than ElevenLabs/Whisper but close to zero cost:
- TTS asks the model for an AUDIO response and decodes the inline base64 payload
- STT sends the recording inline with an instruction to transcribe verbatim
Both share GeminiClient's 429 backoff.
"""

import base64
import binascii
import logging
import os
from typing import AsyncIterator, Optional

from ...common.config import Config
from ...common.errors import MalformedResponseError
from ...common.token_meter import record_stt_seconds, record_tts_chars
from ..gemini_client import GeminiClient, candidate_parts, candidate_text

logger = logging.getLogger(__name__)

MAX_TTS_CHARS = 2000
TTS_VOICE_NAME = "Kore"
TTS_PROMPT = "Read the following aloud as a professional interviewer:\n\n{text}"
STT_PROMPT = "Transcribe this audio exactly as spoken. Return only the transcription text, nothing else."
STT_MAX_TOKENS = 2048
STT_TEMPERATURE = 0.1
AUDIO_CHUNK_BYTES = 64 * 1024
# Roughly 128 kbps compressed speech
AUDIO_BYTES_PER_MINUTE = 960_000

AUDIO_MIME_TYPES = {
    ".m4a": "audio/m4a",
    ".mp3": "audio/mp3",
    ".wav": "audio/wav",
    ".webm": "audio/webm",
    ".ogg": "audio/ogg",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
}


def audio_mime_type(filename: str) -> str:
    extension = os.path.splitext(filename or "")[1].lower()
    return AUDIO_MIME_TYPES.get(extension, "audio/m4a")


class GeminiVoiceProvider:
    """VoiceProvider backed by Gemini."""

    name = "gemini"

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        tts_model: Optional[str] = None,
        stt_model: Optional[str] = None,
    ):
        self.client = client or GeminiClient()
        self.tts_model = tts_model or Config.GEMINI_TTS_MODEL
        self.stt_model = stt_model or Config.GEMINI_MODEL

    async def text_to_speech(self, text: str, voice_id: Optional[str] = None) -> AsyncIterator[bytes]:
        # voice_id names an ElevenLabs voice; Gemini always speaks with its own prebuilt voice
        spoken = text[:MAX_TTS_CHARS]
        body = {
            "contents": [{"role": "user", "parts": [{"text": TTS_PROMPT.format(text=spoken)}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": TTS_VOICE_NAME}},
                },
            },
        }
        data = await self.client.generate_content(self.tts_model, body)

        audio_part = next(
            (
                part for part in candidate_parts(data)
                if str((part.get("inlineData") or {}).get("mimeType", "")).startswith("audio/")
            ),
            None,
        )
        if audio_part is None:
            raise MalformedResponseError("No audio in Gemini response", provider=self.name)

        try:
            audio = base64.b64decode(audio_part["inlineData"].get("data", ""))
        except (binascii.Error, ValueError) as e:
            raise MalformedResponseError("Gemini returned undecodable audio", provider=self.name) from e

        record_tts_chars(len(spoken))
        return self._chunks(audio)

    @staticmethod
    async def _chunks(audio: bytes) -> AsyncIterator[bytes]:
        for start in range(0, len(audio), AUDIO_CHUNK_BYTES):
            yield audio[start:start + AUDIO_CHUNK_BYTES]

    async def speech_to_text(self, audio: bytes, filename: str) -> str:
        body = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {
                            "inlineData": {
                                "mimeType": audio_mime_type(filename),
                                "data": base64.b64encode(audio).decode("ascii"),
                            }
                        },
                        {"text": STT_PROMPT},
                    ],
                }
            ],
            "generationConfig": {"maxOutputTokens": STT_MAX_TOKENS, "temperature": STT_TEMPERATURE},
        }
        data = await self.client.generate_content(self.stt_model, body)
        record_stt_seconds(len(audio) / AUDIO_BYTES_PER_MINUTE * 60)
        return candidate_text(data).strip()
