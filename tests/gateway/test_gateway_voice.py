"""
Tests for the voice routes (/api/voice/*).
"""

from interview_gateway.common.errors import ProviderError, RateLimitedError


class TestTextToSpeech:
    def test_streams_audio(self, client, pro_headers, fake_voice):
        response = client.post(
            "/api/voice/tts", json={"text": "Welcome to your interview.", "voiceId": "v-1"}, headers=pro_headers
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mpeg"
        assert response.content == b"ID3-fake-audio"
        assert fake_voice.calls == [{"operation": "tts", "text": "Welcome to your interview.", "voice_id": "v-1"}]

    def test_characters_recorded(self, client, pro_headers, admin_headers):
        """Should add synthesized characters to the user's day and the cost ledger."""
        client.post("/api/voice/tts", json={"text": "Hello there"}, headers=pro_headers)

        usage = client.get("/api/usage", headers=pro_headers).json()
        assert usage["ttsChars"] == {"used": 11, "limit": 15_000}
        assert usage["aiTokens"]["used"] == 0

        status = client.get("/api/admin/cost", headers=admin_headers).json()
        assert status["breakdown"]["tts"] > 0

    def test_missing_text(self, client, pro_headers, fake_voice):
        response = client.post("/api/voice/tts", json={}, headers=pro_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Missing text"}
        assert fake_voice.calls == []

    def test_vendor_rate_limited(self, client, pro_headers, fake_voice):
        fake_voice.error = RateLimitedError("Voice service is busy. Please try again in a moment.")
        response = client.post("/api/voice/tts", json={"text": "Hi"}, headers=pro_headers)
        assert response.status_code == 429
        assert response.json() == {"error": "Voice service is busy. Please try again in a moment."}

    def test_vendor_failure(self, client, pro_headers, fake_voice):
        fake_voice.error = ProviderError("ElevenLabs TTS error: 500", provider="elevenlabs", status_code=500)
        response = client.post("/api/voice/tts", json={"text": "Hi"}, headers=pro_headers)
        assert response.status_code == 500
        assert response.json() == {"error": "TTS failed"}


class TestSpeechToText:
    def test_transcribes_upload(self, client, pro_headers, fake_voice):
        response = client.post(
            "/api/voice/stt",
            files={"audio": ("answer.webm", b"x" * 100, "audio/webm")},
            headers=pro_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"text": "my answer"}
        assert fake_voice.calls == [{"operation": "stt", "size": 100, "filename": "answer.webm"}]

    def test_minutes_billed_not_counted_against_caps(self, client, pro_headers, admin_headers):
        """Should bill transcription minutes to the cost ledger only."""
        client.post("/api/voice/stt", files={"audio": ("a.m4a", b"x" * 10, "audio/m4a")}, headers=pro_headers)

        status = client.get("/api/admin/cost", headers=admin_headers).json()
        assert status["breakdown"] == {"ai": 0.0, "tts": 0.0, "stt": round(0.5 * 0.006, 4)}

        usage = client.get("/api/usage", headers=pro_headers).json()
        assert usage["aiTokens"]["used"] == 0
        assert usage["ttsChars"]["used"] == 0

    def test_no_file(self, client, pro_headers):
        response = client.post("/api/voice/stt", headers=pro_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "No audio file"}

    def test_empty_file(self, client, pro_headers):
        response = client.post("/api/voice/stt", files={"audio": ("a.m4a", b"", "audio/m4a")}, headers=pro_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "No audio file"}

    def test_file_too_large(self, client, pro_headers, fake_voice, settings):
        """Should refuse uploads over the configured size before calling the vendor."""
        data = b"x" * (settings.max_audio_bytes + 1)
        response = client.post("/api/voice/stt", files={"audio": ("a.m4a", data, "audio/m4a")}, headers=pro_headers)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Audio file too large")
        assert fake_voice.calls == []

    def test_free_tier_can_transcribe(self, client, free_headers):
        """Should only cap synthesis, not transcription, for the free tier."""
        response = client.post("/api/voice/stt", files={"audio": ("a.m4a", b"x", "audio/m4a")}, headers=free_headers)
        assert response.status_code == 200

    def test_vendor_failure(self, client, pro_headers, fake_voice):
        fake_voice.error = ProviderError("Whisper API error: boom", provider="whisper")
        response = client.post("/api/voice/stt", files={"audio": ("a.m4a", b"x", "audio/m4a")}, headers=pro_headers)
        assert response.status_code == 500
        assert response.json() == {"error": "Transcription failed"}
