"""
Per-request consumption meter.

Providers report what each vendor round trip consumed; the request handler
collects it and hands it to the usage and cost ledgers.

Usage:
    with metered() as meter:
        result = await provider.parse_job_listing(text)
    await context.record_usage(meter)

Reporting outside a metered() block is a no-op.
"""

import math
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass
class TokenMeter:
    """Consumption accumulated during one request."""
    input_tokens: int = 0
    output_tokens: int = 0
    tts_chars: int = 0
    stt_seconds: float = 0.0
    vendor_calls: int = 0

    @property
    def ai_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def stt_minutes(self) -> float:
        return self.stt_seconds / 60.0

    @property
    def is_empty(self) -> bool:
        return not (self.ai_tokens or self.tts_chars or self.stt_seconds)


_current_meter: ContextVar[Optional[TokenMeter]] = ContextVar("token_meter", default=None)


@contextmanager
def metered() -> Iterator[TokenMeter]:
    """Bind a fresh meter to the current context."""
    meter = TokenMeter()
    token = _current_meter.set(meter)
    try:
        yield meter
    finally:
        _current_meter.reset(token)


def current_meter() -> Optional[TokenMeter]:
    return _current_meter.get()


def estimate_tokens(text: str) -> int:
    """Rough token estimate (4 characters per token) for vendors that omit usage."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def record_tokens(input_tokens: int, output_tokens: int) -> None:
    """Report one text-generation round trip."""
    meter = _current_meter.get()
    if meter is None:
        return
    meter.input_tokens += max(0, int(input_tokens or 0))
    meter.output_tokens += max(0, int(output_tokens or 0))
    meter.vendor_calls += 1


def record_tts_chars(chars: int) -> None:
    """Report characters sent for speech synthesis."""
    meter = _current_meter.get()
    if meter is not None:
        meter.tts_chars += max(0, chars)
        meter.vendor_calls += 1


def record_stt_seconds(seconds: float) -> None:
    """Report seconds of audio transcribed."""
    meter = _current_meter.get()
    if meter is not None:
        meter.stt_seconds += max(0.0, seconds)
        meter.vendor_calls += 1
