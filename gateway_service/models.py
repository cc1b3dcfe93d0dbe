"""
Request and response models for the gateway routes.

Request bodies are camelCase on the wire (same convention as the provider
records in interview_gateway.services.types).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from interview_gateway.services.types import (
    CamelModel,
    InterviewData,
    InterviewQuestion,
    ParsedJobListing,
)

DEFAULT_QUESTION_COUNT = 5
MAX_QUESTION_COUNT = 10


# === Interview ===

class ParseRequest(CamelModel):
    """Job listing to parse: a URL to scrape or pasted text."""

    input: Optional[str] = Field(None, description="URL or pasted listing text")
    mode: Optional[str] = Field(None, description="'url' or 'paste'")


class QuestionsRequest(CamelModel):
    """Question generation for a parsed listing."""

    job_listing: Optional[ParsedJobListing] = None
    style: str = Field("general", description="Interview style (general, behavioral, technical, ...)")
    count: int = Field(DEFAULT_QUESTION_COUNT, ge=1, le=MAX_QUESTION_COUNT)


class EvaluateRequest(CamelModel):
    """One answer to score."""

    job_listing: ParsedJobListing
    question: InterviewQuestion
    answer: str = Field(..., min_length=1)
    interview_id: Optional[str] = None
    question_index: int = Field(0, ge=0)


class ReportRequest(CamelModel):
    """Final report over a finished interview."""

    job_listing: ParsedJobListing
    interview: InterviewData
    interview_id: Optional[str] = None


# === Voice ===

class TTSRequest(CamelModel):
    """Text to synthesize."""

    text: Optional[str] = None
    voice_id: Optional[str] = None


class TranscriptionResponse(BaseModel):
    text: str


# === Coaching ===

class StartCoachingRequest(CamelModel):
    interview_id: Optional[str] = None


class CoachingAttemptRequest(CamelModel):
    """One attempt at a coaching question."""

    question_index: int = Field(..., ge=0)
    attempt_number: int = Field(1, ge=1)
    answer: str = Field(..., min_length=1)
    question: InterviewQuestion
    job_listing: ParsedJobListing


class CompleteDayRequest(CamelModel):
    program_id: str = Field(..., min_length=1)


# === Health ===

class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime

