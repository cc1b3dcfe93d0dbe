"""
Voice API Routes.

- POST /api/voice/tts - Text-to-speech, streamed as audio/mpeg
- POST /api/voice/stt - Speech-to-text from a multipart "audio" upload

Backend per tier: free uses Gemini, pro and premium use ElevenLabs + Whisper.
Both routes are disabled by the governance chain when the monthly budget
reaches the degraded level.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from ..dependencies import GatewayServices, get_services, govern_request
from ..middleware import RequestContext
from ..models import TranscriptionResponse, TTSRequest
from ..responses import error_body, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/voice", tags=["voice"], dependencies=[Depends(govern_request)])


@router.post("/tts")
async def text_to_speech(
    body: TTSRequest,
    ctx: RequestContext = Depends(govern_request),
    services: GatewayServices = Depends(get_services),
):
    """Synthesize speech for an interviewer line."""
    if not body.text:
        return JSONResponse(status_code=400, content=error_body("Missing text"))

    try:
        async with ctx.metering():
            audio = await services.selector.voice_for(ctx.tier).text_to_speech(body.text, body.voice_id)
    except Exception as e:
        return error_response(e, "TTS failed", logger)

    return StreamingResponse(audio, media_type="audio/mpeg")


@router.post("/stt", response_model=TranscriptionResponse)
async def speech_to_text(
    audio: Optional[UploadFile] = File(None),
    ctx: RequestContext = Depends(govern_request),
    services: GatewayServices = Depends(get_services),
):
    """Transcribe a recorded answer."""
    if audio is None:
        return JSONResponse(status_code=400, content=error_body("No audio file"))

    max_bytes = services.settings.max_audio_bytes
    data = await audio.read(max_bytes + 1)
    if not data:
        return JSONResponse(status_code=400, content=error_body("No audio file"))
    if len(data) > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        return JSONResponse(status_code=400, content=error_body(f"Audio file too large (max {limit_mb}MB)"))

    try:
        async with ctx.metering():
            text = await services.selector.voice_for(ctx.tier).speech_to_text(data, audio.filename or "audio.m4a")
    except Exception as e:
        return error_response(e, "Transcription failed", logger)

    return TranscriptionResponse(text=text)
