"""
Gateway exception taxonomy.

Route handlers map these to HTTP statuses:

    InvalidInputError       -> 400
    NotFoundError           -> 404
    ScrapeBlockedError      -> 422
    RateLimitedError        -> 429
    ProviderError (other)   -> 500
    MalformedResponseError  -> 500

RateLimitedError and ScrapeBlockedError messages keep the RATE_LIMITED: /
SCRAPE_BLOCKED: prefixes so clients can recognise them in plain text.
"""

from typing import Optional

RATE_LIMITED_PREFIX = "RATE_LIMITED: "
SCRAPE_BLOCKED_PREFIX = "SCRAPE_BLOCKED: "


class GatewayError(Exception):
    """Base class for all gateway errors."""

    def user_message(self) -> str:
        """Message safe to show to the caller."""
        return str(self)


class InvalidInputError(GatewayError):
    """Request data that can never succeed (bad URL, empty text, oversized file)."""


class NotFoundError(GatewayError):
    """A referenced record does not exist."""


class ProviderError(GatewayError):
    """A vendor call failed (non-2xx response, timeout, transport error)."""

    def __init__(self, message: str, provider: Optional[str] = None, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)


class MalformedResponseError(ProviderError):
    """The vendor answered but the structured output could not be used."""


class RateLimitedError(ProviderError):
    """The vendor is rate-limiting us and retries did not help."""

    def __init__(self, detail: str, provider: Optional[str] = None, retry_delay: Optional[str] = None):
        self.detail = detail
        self.retry_delay = retry_delay
        super().__init__(f"{RATE_LIMITED_PREFIX}{detail}", provider=provider, status_code=429)

    def user_message(self) -> str:
        return self.detail


class ScrapeBlockedError(GatewayError):
    """The job-listing site refused automated access."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{SCRAPE_BLOCKED_PREFIX}{detail}")

    def user_message(self) -> str:
        return self.detail
