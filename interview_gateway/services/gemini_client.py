"""
Gemini generateContent client with 429 backoff.

Shared by the Gemini text and voice backends. The free Gemini quota is
easily exhausted, so HTTP 429 responses are retried up to
MAX_RATE_LIMIT_RETRIES times with exponential backoff (2s, 4s, 8s). If the
vendor still refuses, a RateLimitedError carrying the vendor's RetryInfo
delay (when present) is raised so the gateway can answer 429.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..common.config import Config
from ..common.errors import ProviderError, RateLimitedError
from .http import transport_error, vendor_client

logger = logging.getLogger(__name__)

PROVIDER_NAME = "gemini"

# Retries after the first 429 (4 attempts in total)
MAX_RATE_LIMIT_RETRIES = 3
# multiplier * 2^(n-1) seconds before retry n: 2s, 4s, 8s
RATE_LIMIT_BACKOFF = wait_exponential(multiplier=2, min=2, max=8)

QUOTA_EXHAUSTED_MESSAGE = "Gemini free tier quota exhausted. Resets at midnight PT. Retry delay: {delay}"
QUOTA_EXHAUSTED_FALLBACK = "Gemini free tier quota exhausted. Try again later or enable billing at ai.google.dev."


class _GeminiThrottled(Exception):
    """Internal: one 429 response, retried by tenacity."""

    def __init__(self, response: httpx.Response):
        self.response = response
        super().__init__("Gemini returned 429")


def parse_retry_delay(response: httpx.Response) -> Optional[str]:
    """Pull RetryInfo.retryDelay out of a Gemini error body, if present."""
    try:
        details = response.json().get("error", {}).get("details", [])
    except ValueError:
        return None
    for detail in details or []:
        if "RetryInfo" in str(detail.get("@type", "")):
            delay = detail.get("retryDelay")
            return str(delay) if delay else None
    return None


def _log_retry(retry_state: RetryCallState) -> None:
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"Gemini 429 rate limited, retrying in {delay:.0f}s "
        f"(attempt {retry_state.attempt_number}/{MAX_RATE_LIMIT_RETRIES})"
    )


class GeminiClient:
    """Thin async client for models/{model}:generateContent."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Args:
            api_key: Gemini API key (defaults to GEMINI_API_KEY)
            api_base: Models endpoint base URL
            timeout: Per-request timeout in seconds
            http_client: Optional shared AsyncClient
            sleep: Backoff sleep (injectable for tests)
        """
        self.api_key = api_key if api_key is not None else Config.GEMINI_API_KEY
        self.api_base = (api_base or Config.GEMINI_API_BASE).rstrip("/")
        self.timeout = timeout or Config.VENDOR_TIMEOUT_SECONDS
        self._http_client = http_client
        self._sleep = sleep

    async def generate_content(self, model: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a generateContent request, retrying on 429.

        Raises:
            RateLimitedError: Still 429 after all retries
            ProviderError: Any other non-2xx response or transport failure
        """
        url = f"{self.api_base}/{model}:generateContent"
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}

        retrying = AsyncRetrying(
            stop=stop_after_attempt(MAX_RATE_LIMIT_RETRIES + 1),
            wait=RATE_LIMIT_BACKOFF,
            retry=retry_if_exception_type(_GeminiThrottled),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async with vendor_client(self._http_client, self.timeout) as client:
                async for attempt in retrying:
                    with attempt:
                        response = await client.post(url, json=body, headers=headers)
                        if response.status_code == 429:
                            raise _GeminiThrottled(response)
        except _GeminiThrottled as e:
            delay = parse_retry_delay(e.response)
            detail = QUOTA_EXHAUSTED_MESSAGE.format(delay=delay) if delay else QUOTA_EXHAUSTED_FALLBACK
            logger.error(f"Gemini rate limit persisted after {MAX_RATE_LIMIT_RETRIES} retries")
            raise RateLimitedError(detail, provider=PROVIDER_NAME, retry_delay=delay) from e
        except httpx.HTTPError as e:
            raise transport_error(PROVIDER_NAME, e) from e

        if response.status_code >= 400:
            raise ProviderError(
                f"Gemini API error {response.status_code}: {response.text[:500]}",
                provider=PROVIDER_NAME,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError("Gemini returned a non-JSON body", provider=PROVIDER_NAME) from e


def candidate_parts(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Content parts of the first candidate (empty when absent)."""
    candidates = data.get("candidates") or []
    if not candidates:
        return []
    return (candidates[0].get("content") or {}).get("parts") or []


def candidate_text(data: Dict[str, Any]) -> str:
    """Concatenated text parts of the first candidate."""
    return "".join(part.get("text", "") for part in candidate_parts(data) if "text" in part)


def usage_counts(data: Dict[str, Any]) -> tuple:
    """(prompt tokens, output tokens) from usageMetadata, zeros when absent."""
    usage = data.get("usageMetadata") or {}
    output = usage.get("candidatesTokenCount", 0) + usage.get("thoughtsTokenCount", 0)
    return usage.get("promptTokenCount", 0), output
