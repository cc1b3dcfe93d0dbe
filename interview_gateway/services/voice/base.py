"""
Voice provider capability interface.
"""

from typing import AsyncIterator, Optional, Protocol, runtime_checkable


@runtime_checkable
class VoiceProvider(Protocol):
    """Speech synthesis and recognition backend."""

    name: str

    async def text_to_speech(self, text: str, voice_id: Optional[str] = None) -> AsyncIterator[bytes]:
        """
        Synthesize speech.

        Vendor errors are raised before the first chunk is produced, so the
        caller can still answer with a JSON error instead of a broken stream.
        """
        ...

    async def speech_to_text(self, audio: bytes, filename: str) -> str:
        """Transcribe an audio file to plain text."""
        ...
