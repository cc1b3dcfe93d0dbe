"""
Structured records exchanged with the AI providers.

Attribute names are snake_case; the wire format (request bodies, responses,
model output) is camelCase via aliases. Validators coerce the loosely typed
values models tend to return (numbers as strings, unknown enum labels, null
lists) into the closed shapes the client relies on.
"""

import math
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Seniority(str, Enum):
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    EXECUTIVE = "executive"


class QuestionType(str, Enum):
    BEHAVIORAL = "behavioral"
    TECHNICAL = "technical"
    SITUATIONAL = "situational"
    ICEBREAKER = "icebreaker"


class Readiness(str, Enum):
    NOT_READY = "not_ready"
    NEEDS_WORK = "needs_work"
    ALMOST_THERE = "almost_there"
    READY = "ready"
    EXCEPTIONAL = "exceptional"


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, enum values when dumped."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
        extra="ignore",
    )


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [str(item) for item in value if item is not None and str(item).strip()]


def _clamped_int(value: Any, low: int, high: int, default: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    number = int(round(number))
    return max(low, min(high, number))


def _coerce_enum(enum_cls, value: Any, default):
    if isinstance(value, enum_cls):
        return value
    normalized = str(value or "").strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return enum_cls(normalized)
    except ValueError:
        return default


class ParsedJobListing(CamelModel):
    """A job posting reduced to the fields interviews are built from."""
    title: str = Field(default="Unknown", description="Job title")
    company: str = Field(default="Unknown", description="Company name")
    seniority: Seniority = Field(default=Seniority.MID, description="junior | mid | senior | lead | executive")
    skills: List[str] = Field(default_factory=list, description="Required skills")
    responsibilities: List[str] = Field(default_factory=list, description="Key responsibilities")
    qualifications: List[str] = Field(default_factory=list, description="Required qualifications")
    industry: str = Field(default="", description="Industry")
    summary: str = Field(default="", description="2-3 sentence role summary")
    raw: Optional[str] = Field(default=None, description="Text the listing was parsed from")

    @field_validator("title", "company", mode="before")
    @classmethod
    def default_unknown(cls, v: Any) -> str:
        text = str(v).strip() if v is not None else ""
        return text or "Unknown"

    @field_validator("industry", "summary", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("seniority", mode="before")
    @classmethod
    def coerce_seniority(cls, v: Any) -> Seniority:
        return _coerce_enum(Seniority, v, Seniority.MID)

    @field_validator("skills", "responsibilities", "qualifications", mode="before")
    @classmethod
    def coerce_lists(cls, v: Any) -> List[str]:
        return _string_list(v)


class InterviewQuestion(CamelModel):
    """One interview question."""
    question: str = Field(..., min_length=1, description="The interview question")
    type: QuestionType = Field(default=QuestionType.BEHAVIORAL, description="Question category")
    target_skill: str = Field(default="", description="Skill or competency tested")
    difficulty: int = Field(default=3, ge=1, le=5, description="Difficulty 1-5")

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> QuestionType:
        return _coerce_enum(QuestionType, v, QuestionType.BEHAVIORAL)

    @field_validator("target_skill", mode="before")
    @classmethod
    def coerce_skill(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("difficulty", mode="before")
    @classmethod
    def clamp_difficulty(cls, v: Any) -> int:
        return _clamped_int(v, 1, 5, 3)


class AnswerEvaluation(CamelModel):
    """Scored feedback on a single answer."""
    score: int = Field(..., ge=1, le=10, description="Score 1-10")
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    ideal_answer: str = Field(default="", description="Example of a strong answer")
    tip: str = Field(default="", description="One actionable coaching tip")

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> int:
        if v is None:
            raise ValueError("score is required")
        return _clamped_int(v, 1, 10, 1)

    @field_validator("strengths", "improvements", mode="before")
    @classmethod
    def coerce_lists(cls, v: Any) -> List[str]:
        return _string_list(v)

    @field_validator("ideal_answer", "tip", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)


class InterviewReport(CamelModel):
    """Post-interview report."""
    overall_score: int = Field(..., ge=1, le=100, description="Overall score 1-100")
    summary: str = Field(default="")
    strengths: List[str] = Field(default_factory=list)
    areas_to_improve: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list)
    success_profile: str = Field(default="")
    interview_readiness: Readiness = Field(default=Readiness.NEEDS_WORK)

    @field_validator("overall_score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> int:
        if v is None:
            raise ValueError("overallScore is required")
        return _clamped_int(v, 1, 100, 1)

    @field_validator("strengths", "areas_to_improve", "action_items", mode="before")
    @classmethod
    def coerce_lists(cls, v: Any) -> List[str]:
        return _string_list(v)

    @field_validator("summary", "success_profile", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("interview_readiness", mode="before")
    @classmethod
    def coerce_readiness(cls, v: Any) -> Readiness:
        return _coerce_enum(Readiness, v, Readiness.NEEDS_WORK)


class InterviewAnswer(CamelModel):
    """A candidate answer with its score, when evaluated."""
    answer: str = ""
    score: Optional[float] = None


class InterviewData(CamelModel):
    """Everything the report is generated from."""
    questions: List[InterviewQuestion] = Field(default_factory=list)
    answers: List[InterviewAnswer] = Field(default_factory=list)
    style: str = "general"
