"""
Job Listing Scraper

Fetches the text of a job posting from a URL.

Strategy:
1. Direct fetch with a browser User-Agent, parsed with BeautifulSoup (fast)
2. Jina Reader fallback for bot-protected sites (slower, no API key needed)

Pages that are clearly an anti-bot interstitial raise ScrapeBlockedError so
the caller can ask the user to paste the listing text instead.
"""

import logging
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from ..common.config import Config
from ..common.errors import InvalidInputError, ProviderError, ScrapeBlockedError
from .http import transport_error, vendor_client

logger = logging.getLogger(__name__)

JINA_READER_URL = "https://r.jina.ai/{url}"
JINA_TIMEOUT_SECONDS = 30.0

MAX_LISTING_CHARS = 10_000
MIN_LISTING_CHARS = 200
# Block pages are short; a real listing that mentions "captcha" is not
BLOCK_PAGE_MAX_CHARS = 1000

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}

JINA_HEADERS = {
    "Accept": "text/plain",
    "X-Return-Format": "text",
}

NOISE_TAGS = ["script", "style", "nav", "header", "footer", "iframe", "noscript"]

# Checked in order; the first with enough text wins
DESCRIPTION_SELECTORS = [
    '[class*="job-description"]',
    '[class*="jobDescription"]',
    '[class*="job_description"]',
    '[id*="job-description"]',
    '[class*="posting-"]',
    "article",
    "main",
    '[role="main"]',
]

BLOCK_PATTERNS = [
    "access denied",
    "you don't have permission",
    "forbidden",
    "please enable javascript",
    "checking your browser",
    "ray id",
    "cloudflare",
    "captcha",
]

BLOCKED_MESSAGE = (
    "This site blocks automated access. "
    "Please copy and paste the job description text instead."
)


def validate_url(url: str) -> str:
    """Return the stripped URL, or raise InvalidInputError."""
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidInputError("Invalid URL")
    return candidate


def check_not_blocked(text: str) -> None:
    """Raise ScrapeBlockedError when the text looks like an anti-bot page."""
    lower = text.lower()
    if len(text) < BLOCK_PAGE_MAX_CHARS and any(pattern in lower for pattern in BLOCK_PATTERNS):
        raise ScrapeBlockedError(BLOCKED_MESSAGE)


def extract_listing_text(html: str) -> str:
    """Pull the job description text out of a page."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NOISE_TAGS):
        tag.decompose()

    for selector in DESCRIPTION_SELECTORS:
        matches = soup.select(selector)
        if not matches:
            continue
        text = " ".join(el.get_text(" ", strip=True) for el in matches).strip()
        if len(text) > MIN_LISTING_CHARS:
            return text[:MAX_LISTING_CHARS]

    body = soup.body or soup
    return body.get_text(" ", strip=True)[:MAX_LISTING_CHARS]


class JobListingScraper:
    """Turns a job posting URL into plain text for the listing parser."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        jina_timeout: float = JINA_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout or Config.SCRAPE_TIMEOUT_SECONDS
        self.jina_timeout = jina_timeout
        self._http_client = http_client

    async def scrape(self, url: str) -> str:
        """
        Fetch a job listing.

        Raises:
            InvalidInputError: Not an http(s) URL
            ScrapeBlockedError: The site served an anti-bot page
            ProviderError: Both strategies failed
        """
        url = validate_url(url)

        try:
            text = await self.fetch_direct(url)
            if len(text) > MIN_LISTING_CHARS:
                check_not_blocked(text)
                return text
            logger.info(f"Direct fetch returned only {len(text)} chars, trying Jina Reader")
        except ScrapeBlockedError:
            raise
        except ProviderError as e:
            logger.warning(f"Direct fetch failed, falling back to Jina Reader: {e}")

        text = await self.fetch_via_jina(url)
        check_not_blocked(text)
        if not text.strip():
            raise ProviderError("Job listing page was empty", provider="scraper")
        return text

    async def fetch_direct(self, url: str) -> str:
        try:
            async with vendor_client(self._http_client, self.timeout) as client:
                response = await client.get(url, headers=HEADERS, follow_redirects=True, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise transport_error("scraper", e) from e

        if response.status_code >= 400:
            raise ProviderError(
                f"Failed to fetch URL: {response.status_code}",
                provider="scraper",
                status_code=response.status_code,
            )
        return extract_listing_text(response.text)

    async def fetch_via_jina(self, url: str) -> str:
        try:
            async with vendor_client(self._http_client, self.jina_timeout) as client:
                response = await client.get(
                    JINA_READER_URL.format(url=url),
                    headers=JINA_HEADERS,
                    timeout=self.jina_timeout,
                )
        except httpx.HTTPError as e:
            raise transport_error("Jina Reader", e) from e

        if response.status_code >= 400:
            raise ProviderError(
                f"Jina Reader error: {response.status_code}",
                provider="jina",
                status_code=response.status_code,
            )
        return response.text[:MAX_LISTING_CHARS]
