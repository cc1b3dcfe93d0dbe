"""
Anthropic text-generation backend (pro / premium tiers).

Calls Claude through LangChain's ChatAnthropic. No retry policy beyond a
single attempt: any vendor failure surfaces as a ProviderError.
"""

import logging
from typing import Any, List, Optional, Sequence

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage

from ...common.config import Config
from ...common.errors import MalformedResponseError, ProviderError
from ...common.json_utils import parse_json_response
from ...common.token_meter import estimate_tokens, record_tokens
from ..prompts import (
    EVALUATE_ANSWER_SYSTEM_PROMPT,
    GENERATE_REPORT_SYSTEM_PROMPT,
    PARSE_JOB_LISTING_SYSTEM_PROMPT,
    questions_system_prompt,
)
from ..types import (
    AnswerEvaluation,
    InterviewData,
    InterviewQuestion,
    InterviewReport,
    ParsedJobListing,
)
from .context import (
    MAX_LISTING_CHARS,
    build_evaluation_context,
    build_questions_context,
    build_report_context,
    truncate,
)
from .normalization import normalize_questions, reconcile_report, validate_model

logger = logging.getLogger(__name__)

MAX_TOKENS = 1024
EVALUATE_MAX_TOKENS = 512


def _content_text(content: Any) -> str:
    """Text of a chat response whose content may be a string or content blocks."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
        elif isinstance(block, str):
            parts.append(block)
    return "".join(parts)


class AnthropicProvider:
    """AIProvider backed by Claude."""

    name = "anthropic"

    def __init__(self, llm: Optional[Any] = None, model: Optional[str] = None):
        """
        Args:
            llm: Chat model to use (a ChatAnthropic is built from Config if omitted)
            model: Model name override
        """
        self.model = model or Config.ANTHROPIC_MODEL
        self.llm = llm or ChatAnthropic(
            model=self.model,
            api_key=Config.ANTHROPIC_API_KEY,
            max_tokens=MAX_TOKENS,
            timeout=Config.VENDOR_TIMEOUT_SECONDS,
            max_retries=0,
        )

    async def _generate_json(self, system_prompt: str, user_message: str, max_tokens: int) -> Any:
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_message)]
        try:
            response = await self.llm.ainvoke(messages, max_tokens=max_tokens)
        except Exception as e:
            logger.error(f"Anthropic call failed: {e}")
            raise ProviderError(f"Anthropic API error: {e.__class__.__name__}", provider=self.name) from e

        text = _content_text(getattr(response, "content", ""))

        usage = getattr(response, "usage_metadata", None) or {}
        input_tokens = usage.get("input_tokens") or estimate_tokens(system_prompt + user_message)
        output_tokens = usage.get("output_tokens") or estimate_tokens(text)
        record_tokens(input_tokens, output_tokens)

        try:
            return parse_json_response(text)
        except ValueError as e:
            raise MalformedResponseError(str(e), provider=self.name) from e

    async def parse_job_listing(self, raw_text: str) -> ParsedJobListing:
        payload = await self._generate_json(
            PARSE_JOB_LISTING_SYSTEM_PROMPT, truncate(raw_text, MAX_LISTING_CHARS), MAX_TOKENS
        )
        return validate_model(ParsedJobListing, payload, provider=self.name)

    async def generate_questions(
        self,
        job_listing: ParsedJobListing,
        style: str,
        count: int,
        exclude: Sequence[str] = (),
    ) -> List[InterviewQuestion]:
        payload = await self._generate_json(
            questions_system_prompt(style),
            build_questions_context(job_listing, style, count, exclude),
            MAX_TOKENS,
        )
        return normalize_questions(payload, count)

    async def evaluate_answer(
        self,
        job_listing: ParsedJobListing,
        question: InterviewQuestion,
        answer: str,
    ) -> AnswerEvaluation:
        payload = await self._generate_json(
            EVALUATE_ANSWER_SYSTEM_PROMPT,
            build_evaluation_context(job_listing, question, answer),
            EVALUATE_MAX_TOKENS,
        )
        return validate_model(AnswerEvaluation, payload, provider=self.name)

    async def generate_report(self, job_listing: ParsedJobListing, interview: InterviewData) -> InterviewReport:
        payload = await self._generate_json(
            GENERATE_REPORT_SYSTEM_PROMPT,
            build_report_context(job_listing, interview),
            MAX_TOKENS,
        )
        report = validate_model(InterviewReport, payload, provider=self.name)
        return reconcile_report(report, interview)
