"""
Coaching API Routes (Premium).

A coaching program turns a completed interview into five days of targeted
practice. Each day has five fresh questions; every answer attempt is
evaluated and the candidate is nudged to retry until the score reaches
RETRY_SCORE_THRESHOLD or MAX_ATTEMPTS is used up.

- POST /api/coaching/start                 - Create a program from an interview
- GET  /api/coaching/active                - Active program with its days
- GET  /api/coaching/programs              - Every program of the caller
- GET  /api/coaching/program/{id}          - Full program
- POST /api/coaching/day/{day_id}/start    - Mark a day in progress
- POST /api/coaching/day/{day_id}/attempt  - Evaluate an attempt
- POST /api/coaching/day/{day_id}/complete - Finish a day, generate the next
- GET  /api/coaching/day/{day_id}          - Day with its attempts
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from interview_gateway.services.types import ParsedJobListing

from ..dependencies import GatewayServices, get_services, govern_request, require_premium
from ..middleware import RequestContext
from ..models import CoachingAttemptRequest, CompleteDayRequest, StartCoachingRequest
from ..responses import ApiError, error_body, error_response

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/coaching",
    tags=["coaching"],
    dependencies=[Depends(govern_request), Depends(require_premium)],
)

COACHING_STYLE = "coaching"
QUESTIONS_PER_DAY = 5
RETRY_SCORE_THRESHOLD = 8
MAX_ATTEMPTS = 3


def _access_denied() -> ApiError:
    return ApiError(403, {"error": "Access denied"})


def _listing_from_interview(interview: Dict[str, Any]) -> ParsedJobListing:
    return ParsedJobListing.model_validate(interview.get("job_listing_parsed") or {})


async def _generate_day_questions(
    ctx: RequestContext,
    services: GatewayServices,
    listing: ParsedJobListing,
    exclude: List[str],
) -> List[Dict[str, Any]]:
    async with ctx.metering():
        questions = await services.selector.ai_for(ctx.tier).generate_questions(
            listing, COACHING_STYLE, QUESTIONS_PER_DAY, exclude=exclude
        )
    return [q.model_dump(by_alias=True) for q in questions]


async def _owned_day(services: GatewayServices, day_id: str, user_id: str) -> Dict[str, Any]:
    """Day with attempts, after checking the day's program belongs to the caller."""
    coaching = services.repositories.coaching
    result = await run_in_threadpool(coaching.get_day, day_id)
    program = await run_in_threadpool(coaching.get_program, result["day"]["program_id"])
    if program["program"].get("user_id") != user_id:
        raise _access_denied()
    return result


@router.post("/start")
async def start_program(
    body: StartCoachingRequest,
    ctx: RequestContext = Depends(require_premium),
    services: GatewayServices = Depends(get_services),
):
    """Create a program from one of the caller's interviews, with day 1 questions."""
    if not body.interview_id:
        return JSONResponse(status_code=400, content=error_body("Missing interviewId"))

    try:
        found = await run_in_threadpool(services.repositories.interviews.get_by_id, body.interview_id)
        interview = found["interview"]
        if interview.get("user_id") != ctx.user_id:
            raise _access_denied()

        coaching = services.repositories.coaching
        program_id = await run_in_threadpool(coaching.create_program, ctx.user_id, body.interview_id)
        questions = await _generate_day_questions(ctx, services, _listing_from_interview(interview), [])
        day_id = await run_in_threadpool(coaching.create_day, program_id, 1, questions)
    except Exception as e:
        return error_response(e, "Failed to start coaching program", logger)

    logger.info(f"Coaching program {program_id} started for interview {body.interview_id}")
    return {"programId": program_id, "dayId": day_id, "questions": questions}


@router.get("/active")
async def active_program(
    ctx: RequestContext = Depends(require_premium),
    services: GatewayServices = Depends(get_services),
):
    try:
        coaching = services.repositories.coaching
        program = await run_in_threadpool(coaching.get_active_program, ctx.user_id)
        if not program:
            return {"program": None}
        full = await run_in_threadpool(coaching.get_program, program["id"])
    except Exception as e:
        return error_response(e, "Failed to load coaching program", logger)

    return {"program": program, "days": full["days"]}


@router.get("/programs")
async def list_programs(
    ctx: RequestContext = Depends(require_premium),
    services: GatewayServices = Depends(get_services),
):
    try:
        programs = await run_in_threadpool(services.repositories.coaching.list_programs, ctx.user_id)
    except Exception as e:
        return error_response(e, "Failed to load coaching programs", logger)
    return {"programs": programs}


@router.get("/program/{program_id}")
async def get_program(
    program_id: str,
    ctx: RequestContext = Depends(require_premium),
    services: GatewayServices = Depends(get_services),
):
    try:
        result = await run_in_threadpool(services.repositories.coaching.get_program, program_id)
        if result["program"].get("user_id") != ctx.user_id:
            raise _access_denied()
    except Exception as e:
        return error_response(e, "Failed to load program", logger)
    return result


@router.post("/day/{day_id}/start")
async def start_day(
    day_id: str,
    ctx: RequestContext = Depends(require_premium),
    services: GatewayServices = Depends(get_services),
):
    try:
        result = await _owned_day(services, day_id, ctx.user_id)
        await run_in_threadpool(services.repositories.coaching.start_day, day_id)
    except Exception as e:
        return error_response(e, "Failed to start day", logger)
    return {"day": result["day"]}


@router.post("/day/{day_id}/attempt")
async def submit_attempt(
    day_id: str,
    body: CoachingAttemptRequest,
    ctx: RequestContext = Depends(require_premium),
    services: GatewayServices = Depends(get_services),
):
    """Evaluate one attempt; shouldRetry tells the client to offer another go."""
    try:
        await _owned_day(services, day_id, ctx.user_id)

        async with ctx.metering():
            evaluation = await services.selector.ai_for(ctx.tier).evaluate_answer(
                body.job_listing, body.question, body.answer
            )

        result = {
            **evaluation.model_dump(by_alias=True),
            "shouldRetry": evaluation.score < RETRY_SCORE_THRESHOLD and body.attempt_number < MAX_ATTEMPTS,
        }
        await run_in_threadpool(
            services.repositories.coaching.save_attempt,
            day_id,
            body.question_index,
            body.attempt_number,
            body.answer,
            result,
        )
    except Exception as e:
        return error_response(e, "Failed to evaluate attempt", logger)
    return result


@router.post("/day/{day_id}/complete")
async def complete_day(
    day_id: str,
    body: CompleteDayRequest,
    ctx: RequestContext = Depends(require_premium),
    services: GatewayServices = Depends(get_services),
):
    """Finish a day; unless the program is over, create the next day's questions."""
    coaching = services.repositories.coaching
    try:
        day = await _owned_day(services, day_id, ctx.user_id)
        if day["day"].get("program_id") != body.program_id:
            return JSONResponse(status_code=400, content=error_body("Day does not belong to program"))

        await run_in_threadpool(coaching.complete_day, day_id, body.program_id)

        program = (await run_in_threadpool(coaching.get_program, body.program_id))["program"]
        if program.get("status") == "completed":
            logger.info(f"Coaching program {body.program_id} completed")
            return {"programComplete": True, "nextDay": None}

        prior = await run_in_threadpool(coaching.get_prior_questions, body.program_id)
        exclude = [q.get("question", "") for q in prior if q.get("question")]
        found = await run_in_threadpool(services.repositories.interviews.get_by_id, program["interview_id"])

        questions = await _generate_day_questions(ctx, services, _listing_from_interview(found["interview"]), exclude)
        next_day_id = await run_in_threadpool(coaching.create_day, body.program_id, program["current_day"], questions)
    except Exception as e:
        return error_response(e, "Failed to complete day", logger)

    return {"programComplete": False, "nextDay": {"id": next_day_id, "questions": questions}}


@router.get("/day/{day_id}")
async def get_day(
    day_id: str,
    ctx: RequestContext = Depends(require_premium),
    services: GatewayServices = Depends(get_services),
):
    try:
        return await _owned_day(services, day_id, ctx.user_id)
    except Exception as e:
        return error_response(e, "Failed to load day", logger)
