"""
AI provider capability interface.

Each backend is one flat class implementing these four operations. A call
is a single round trip to the vendor: fixed system prompt, composed user
context, JSON response validated into a typed record.
"""

from typing import List, Protocol, Sequence, runtime_checkable

from ..types import (
    AnswerEvaluation,
    InterviewData,
    InterviewQuestion,
    InterviewReport,
    ParsedJobListing,
)


@runtime_checkable
class AIProvider(Protocol):
    """Text-generation backend for the interview operations."""

    name: str

    async def parse_job_listing(self, raw_text: str) -> ParsedJobListing:
        """Extract a structured listing from raw posting text."""
        ...

    async def generate_questions(
        self,
        job_listing: ParsedJobListing,
        style: str,
        count: int,
        exclude: Sequence[str] = (),
    ) -> List[InterviewQuestion]:
        """Generate `count` questions, icebreaker first, rising difficulty."""
        ...

    async def evaluate_answer(
        self,
        job_listing: ParsedJobListing,
        question: InterviewQuestion,
        answer: str,
    ) -> AnswerEvaluation:
        """Score one answer 1-10 against the strict rubric."""
        ...

    async def generate_report(
        self,
        job_listing: ParsedJobListing,
        interview: InterviewData,
    ) -> InterviewReport:
        """Aggregate all answers into a 1-100 report."""
        ...
