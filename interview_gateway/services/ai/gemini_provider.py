"""
Gemini text-generation backend (free tier).

Uses JSON response mode on generateContent. Thinking models (2.5 family)
get an explicit thinking budget so they leave room for the answer.
Rate limiting (429) is retried with backoff by GeminiClient.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ...common.config import Config
from ...common.errors import MalformedResponseError
from ...common.json_utils import parse_json_response
from ...common.token_meter import estimate_tokens, record_tokens
from ..gemini_client import GeminiClient, candidate_text, usage_counts
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

TEMPERATURE = 0.7
THINKING_BUDGET = 1024
MAX_TOKENS = 4096
EVALUATE_MAX_TOKENS = 2048


class GeminiProvider:
    """AIProvider backed by the Gemini API."""

    name = "gemini"

    def __init__(self, model: Optional[str] = None, client: Optional[GeminiClient] = None):
        self.model = model or Config.GEMINI_MODEL
        self.client = client or GeminiClient()

    @property
    def is_thinking_model(self) -> bool:
        return "2.5" in self.model

    def _request_body(self, system_prompt: str, user_message: str, max_tokens: int) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {
            "maxOutputTokens": max_tokens,
            "temperature": TEMPERATURE,
            "responseMimeType": "application/json",
        }
        if self.is_thinking_model:
            generation_config["thinkingConfig"] = {"thinkingBudget": THINKING_BUDGET}

        return {
            "system_instruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_message}]}],
            "generationConfig": generation_config,
        }

    async def _generate_json(self, system_prompt: str, user_message: str, max_tokens: int) -> Any:
        data = await self.client.generate_content(
            self.model, self._request_body(system_prompt, user_message, max_tokens)
        )
        text = candidate_text(data)

        prompt_tokens, output_tokens = usage_counts(data)
        if not prompt_tokens and not output_tokens:
            prompt_tokens = estimate_tokens(system_prompt + user_message)
            output_tokens = estimate_tokens(text)
        record_tokens(prompt_tokens, output_tokens)

        if not text:
            raise MalformedResponseError("Empty response from Gemini", provider=self.name)
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
