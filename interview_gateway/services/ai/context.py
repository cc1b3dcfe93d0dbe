"""
User-context builders shared by the AI backends.

Each operation sends a fixed system prompt plus one composed user message.
Inputs are truncated here so every backend bounds its cost the same way.
"""

from typing import Sequence

from ..types import InterviewData, InterviewQuestion, ParsedJobListing

MAX_LISTING_CHARS = 8000
MAX_ANSWER_CHARS = 3000


def truncate(text: str, limit: int) -> str:
    return text[:limit] if text else ""


def build_job_context(job: ParsedJobListing) -> str:
    return (
        f"Role: {job.title} at {job.company}\n"
        f"Seniority: {job.seniority}\n"
        f"Key Skills: {', '.join(job.skills) or 'Not specified'}\n"
        f"Summary: {job.summary or 'No summary available'}"
    )


def build_questions_context(
    job: ParsedJobListing,
    style: str,
    count: int,
    exclude: Sequence[str] = (),
) -> str:
    context = f"{build_job_context(job)}\nInterview Style: {style}\nNumber of Questions: {count}"
    if exclude:
        asked = "\n".join(f"- {question}" for question in exclude)
        context += (
            "\n\nIMPORTANT: The following questions have already been asked in prior sessions. "
            f"Generate COMPLETELY DIFFERENT questions:\n{asked}"
        )
    return context


def build_evaluation_context(job: ParsedJobListing, question: InterviewQuestion, answer: str) -> str:
    return (
        f"Job: {job.title} at {job.company}\n"
        f"Question: {question.question}\n"
        f"Question Type: {question.type}\n"
        f"Target Skill: {question.target_skill}\n\n"
        f"Candidate's Answer:\n{truncate(answer, MAX_ANSWER_CHARS)}"
    )


def build_report_context(job: ParsedJobListing, interview: InterviewData) -> str:
    blocks = []
    for i, question in enumerate(interview.questions):
        answer = interview.answers[i] if i < len(interview.answers) else None
        answer_text = answer.answer if answer and answer.answer else "(no answer)"
        score = _format_score(answer.score) if answer and answer.score is not None else "N/A"
        blocks.append(
            f"Q{i + 1} ({question.type}): {question.question}\n"
            f"Answer: {truncate(answer_text, MAX_ANSWER_CHARS)}\n"
            f"Score: {score}/10"
        )
    return f"{build_job_context(job)}\n\nInterview Results:\n" + "\n\n".join(blocks)


def _format_score(score: float) -> str:
    return str(int(score)) if float(score).is_integer() else f"{score:.1f}"
