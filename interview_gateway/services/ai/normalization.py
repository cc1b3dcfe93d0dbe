"""
Normalization of model output into the typed records.

Question generation is the least predictable operation: depending on the
model the payload arrives as an array, as an array wrapped in an object
({"questions": [...]}), as an object of objects ({"q1": {...}, "q2": {...}})
or as a single question object. classify_question_payload() names the shape
explicitly and normalize_questions() handles each one.

Reports are reconciled against the per-question scores so the overall score
and readiness label always agree with the published bands.
"""

import logging
from enum import Enum
from statistics import mean
from typing import Any, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ...common.errors import MalformedResponseError
from ..types import InterviewData, InterviewQuestion, InterviewReport, Readiness

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Mean question score (out of 10) below which the overall score is capped
LOW_PERFORMANCE_MEAN = 5.0
LOW_PERFORMANCE_CAP = 50

# Upper bound of each readiness band, in ascending order
READINESS_BANDS = (
    (30, Readiness.NOT_READY),
    (55, Readiness.NEEDS_WORK),
    (74, Readiness.ALMOST_THERE),
    (89, Readiness.READY),
    (100, Readiness.EXCEPTIONAL),
)


class QuestionPayloadShape(str, Enum):
    """Shapes seen in question-generation output."""
    ARRAY = "array"
    WRAPPED_ARRAY = "wrapped_array"
    OBJECT_OF_OBJECTS = "object_of_objects"
    SINGLE_QUESTION = "single_question"
    UNRECOGNISED = "unrecognised"


def classify_question_payload(payload: Any) -> Tuple[QuestionPayloadShape, List[Any]]:
    """
    Identify the payload shape and pull out the candidate question items.

    Returns:
        (shape, items); items is empty for UNRECOGNISED
    """
    if isinstance(payload, list):
        return QuestionPayloadShape.ARRAY, payload

    if isinstance(payload, dict):
        if "question" in payload:
            return QuestionPayloadShape.SINGLE_QUESTION, [payload]

        for value in payload.values():
            if isinstance(value, list):
                return QuestionPayloadShape.WRAPPED_ARRAY, value

        values = list(payload.values())
        if values and all(isinstance(v, dict) and "question" in v for v in values):
            return QuestionPayloadShape.OBJECT_OF_OBJECTS, values

    return QuestionPayloadShape.UNRECOGNISED, []


def normalize_questions(payload: Any, count: int) -> List[InterviewQuestion]:
    """
    Convert generated output into exactly `count` questions where possible.

    Items that fail validation are dropped. Extra questions are cut off;
    a short list is returned as-is and logged.

    Raises:
        MalformedResponseError: If no usable question remains
    """
    shape, items = classify_question_payload(payload)
    if shape == QuestionPayloadShape.UNRECOGNISED:
        logger.warning(f"Unrecognised question payload: {str(payload)[:200]}")
    elif shape != QuestionPayloadShape.ARRAY:
        logger.debug(f"Normalizing question payload shaped as {shape.value}")

    questions: List[InterviewQuestion] = []
    for item in items:
        if isinstance(item, str):
            item = {"question": item}
        if not isinstance(item, dict):
            continue
        try:
            questions.append(InterviewQuestion.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping invalid question item: {e.errors()[0]['msg']}")
        except (TypeError, ValueError, ArithmeticError) as e:
            logger.warning(f"Dropping invalid question item: {e}")

    if not questions:
        raise MalformedResponseError("Model returned no usable interview questions")

    if len(questions) < count:
        logger.warning(f"Model returned {len(questions)} questions, {count} requested")
    return questions[:count]


def validate_model(model_cls: Type[M], payload: Any, provider: Optional[str] = None) -> M:
    """
    Validate a parsed payload against a record type.

    Raises:
        MalformedResponseError: If the payload does not fit the record
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Expected a JSON object for {model_cls.__name__}, got {type(payload).__name__}",
            provider=provider,
        )
    try:
        return model_cls.model_validate(payload)
    except ValidationError as e:
        error_msgs = [f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise MalformedResponseError(
            f"{model_cls.__name__} validation failed: " + "; ".join(error_msgs),
            provider=provider,
        ) from e
    except (TypeError, ValueError, ArithmeticError) as e:
        raise MalformedResponseError(
            f"{model_cls.__name__} could not be built from model output: {e}",
            provider=provider,
        ) from e


def readiness_for_score(score: int) -> Readiness:
    """Readiness label for an overall score (0-100)."""
    for upper, readiness in READINESS_BANDS:
        if score <= upper:
            return readiness
    return Readiness.EXCEPTIONAL


def reconcile_report(report: InterviewReport, interview: InterviewData) -> InterviewReport:
    """
    Make the report consistent with the individual answer scores.

    - When the mean known question score is below 5/10, overallScore is
      capped at 50.
    - interviewReadiness is always derived from the final overallScore.
    """
    score = report.overall_score
    known = [a.score for a in interview.answers if a.score is not None]
    if known and mean(known) < LOW_PERFORMANCE_MEAN and score > LOW_PERFORMANCE_CAP:
        logger.info(f"Capping overall score {score} -> {LOW_PERFORMANCE_CAP} (mean answer score {mean(known):.1f})")
        score = LOW_PERFORMANCE_CAP

    readiness = readiness_for_score(score)
    if score != report.overall_score or readiness.value != report.interview_readiness:
        return report.model_copy(update={"overall_score": score, "interview_readiness": readiness.value})
    return report
