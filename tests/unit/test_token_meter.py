"""
Unit tests for interview_gateway/common/token_meter.py
"""

import asyncio

import pytest

from interview_gateway.common.token_meter import (
    current_meter,
    estimate_tokens,
    metered,
    record_stt_seconds,
    record_tokens,
    record_tts_chars,
)


class TestTokenMeter:
    def test_reports_accumulate_inside_block(self):
        with metered() as meter:
            record_tokens(100, 40)
            record_tokens(10, 5)
            record_tts_chars(250)
            record_stt_seconds(90)

        assert meter.ai_tokens == 155
        assert meter.tts_chars == 250
        assert meter.stt_minutes == pytest.approx(1.5)
        assert meter.vendor_calls == 4
        assert current_meter() is None

    def test_reports_outside_block_are_ignored(self):
        record_tokens(100, 100)
        assert current_meter() is None

    def test_empty_meter(self):
        with metered() as meter:
            pass
        assert meter.is_empty

    def test_negative_and_missing_counts_clamp_to_zero(self):
        with metered() as meter:
            record_tokens(None, -5)
        assert meter.ai_tokens == 0

    @pytest.mark.asyncio
    async def test_concurrent_requests_get_separate_meters(self):
        async def handler(tokens):
            with metered() as meter:
                await asyncio.sleep(0)
                record_tokens(tokens, 0)
                await asyncio.sleep(0)
            return meter.ai_tokens

        assert await asyncio.gather(handler(10), handler(20)) == [10, 20]


def test_estimate_tokens():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2
