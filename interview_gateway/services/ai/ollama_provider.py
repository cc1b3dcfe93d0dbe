"""
Ollama text-generation backend (local development).

Small local models produce malformed JSON often enough that every response
goes through the tolerant parser (extraction, syntactic repair, json-repair).
Answer evaluation additionally retries the whole round trip and, when every
attempt fails, returns a neutral fallback evaluation so an in-progress
interview never breaks on a bad model response.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from ...common.config import Config
from ...common.errors import MalformedResponseError, ProviderError
from ...common.json_utils import parse_llm_json
from ...common.token_meter import estimate_tokens, record_tokens
from ..http import transport_error, vendor_client
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
NUM_PREDICT = 4096
EVALUATE_MAX_ATTEMPTS = 3


def fallback_evaluation() -> AnswerEvaluation:
    """Neutral evaluation used when the local model cannot produce one."""
    return AnswerEvaluation(
        score=5,
        strengths=["Answer was provided"],
        improvements=["Unable to fully evaluate, please try again"],
        ideal_answer="Evaluation was not available for this question.",
        tip="Try providing more specific examples in your answer.",
    )


class OllamaProvider:
    """AIProvider backed by a local Ollama server."""

    name = "ollama"

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or Config.OLLAMA_URL).rstrip("/")
        self.model = model or Config.OLLAMA_MODEL
        # local models are slow on CPU; allow at least the vendor timeout
        self.timeout = timeout or max(Config.VENDOR_TIMEOUT_SECONDS, 60.0)
        self._http_client = http_client

    async def _chat(self, system_prompt: str, user_message: str) -> str:
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "stream": False,
            "format": "json",
            "options": {"temperature": TEMPERATURE, "num_predict": NUM_PREDICT},
        }

        try:
            async with vendor_client(self._http_client, self.timeout) as client:
                response = await client.post(f"{self.base_url}/api/chat", json=body)
        except httpx.HTTPError as e:
            raise transport_error(self.name, e) from e

        if response.status_code >= 400:
            raise ProviderError(
                f"Ollama error {response.status_code}: {response.text[:500]}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError("Ollama returned a non-JSON body", provider=self.name) from e

        content = (data.get("message") or {}).get("content") or ""
        record_tokens(
            data.get("prompt_eval_count") or estimate_tokens(system_prompt + user_message),
            data.get("eval_count") or estimate_tokens(content),
        )
        return content

    async def _generate_json(self, system_prompt: str, user_message: str) -> Any:
        content = await self._chat(system_prompt, user_message)
        try:
            return parse_llm_json(content)
        except ValueError as e:
            raise MalformedResponseError(f"Failed to parse JSON from Ollama: {content[:200]}", provider=self.name) from e

    async def parse_job_listing(self, raw_text: str) -> ParsedJobListing:
        payload = await self._generate_json(PARSE_JOB_LISTING_SYSTEM_PROMPT, truncate(raw_text, MAX_LISTING_CHARS))
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
        )
        return normalize_questions(payload, count)

    async def evaluate_answer(
        self,
        job_listing: ParsedJobListing,
        question: InterviewQuestion,
        answer: str,
    ) -> AnswerEvaluation:
        context = build_evaluation_context(job_listing, question, answer)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(EVALUATE_MAX_ATTEMPTS),
            retry=retry_if_exception_type(ProviderError),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(
                            f"Evaluate attempt {attempt.retry_state.attempt_number}/{EVALUATE_MAX_ATTEMPTS}"
                        )
                    payload = await self._generate_json(EVALUATE_ANSWER_SYSTEM_PROMPT, context)
                    return validate_model(AnswerEvaluation, payload, provider=self.name)
        except ProviderError as e:
            logger.error(f"All {EVALUATE_MAX_ATTEMPTS} evaluate attempts failed, returning fallback: {str(e)[:150]}")
        return fallback_evaluation()

    async def generate_report(self, job_listing: ParsedJobListing, interview: InterviewData) -> InterviewReport:
        payload = await self._generate_json(
            GENERATE_REPORT_SYSTEM_PROMPT,
            build_report_context(job_listing, interview),
        )
        report = validate_model(InterviewReport, payload, provider=self.name)
        return reconcile_report(report, interview)
