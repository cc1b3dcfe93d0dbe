"""
Mock Interview API Routes.

- POST /api/interview/parse      - Parse a job listing (URL or pasted text)
- POST /api/interview/questions  - Generate interview questions
- POST /api/interview/evaluate   - Score one answer
- POST /api/interview/report     - Final report for a finished interview
- GET  /api/interview/history    - Caller's completed interviews
- GET  /api/interview/{id}       - One interview with its answers

Generation routes work anonymously; authenticated callers also get their
interview persisted (best effort, a database failure never fails the call).
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from interview_gateway.common.error_handling import best_effort

from ..dependencies import GatewayServices, get_services, govern_request, require_user
from ..middleware import RequestContext
from ..models import EvaluateRequest, ParseRequest, QuestionsRequest, ReportRequest
from ..responses import error_body, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview", tags=["interview"], dependencies=[Depends(govern_request)])

PARSE_MODES = ("url", "paste")
HISTORY_LIMIT = 30


@router.post("/parse")
async def parse_job_listing(
    body: ParseRequest,
    ctx: RequestContext = Depends(govern_request),
    services: GatewayServices = Depends(get_services),
):
    """Parse a job listing; URL mode scrapes the page first."""
    if not body.input or not body.mode:
        return JSONResponse(status_code=400, content=error_body("Missing input or mode"))
    if body.mode not in PARSE_MODES:
        return JSONResponse(status_code=400, content=error_body("Mode must be 'url' or 'paste'"))

    try:
        raw_text = body.input
        if body.mode == "url":
            scraped = await services.scraper.scrape(body.input)
            raw_text = f"Source URL: {body.input}\n\n{scraped}"

        async with ctx.metering():
            parsed = await services.selector.ai_for(ctx.tier).parse_job_listing(raw_text)
    except Exception as e:
        return error_response(e, "Failed to parse job listing", logger)

    return {**parsed.model_dump(by_alias=True), "raw": raw_text}


@router.post("/questions")
async def generate_questions(
    body: QuestionsRequest,
    ctx: RequestContext = Depends(govern_request),
    services: GatewayServices = Depends(get_services),
):
    """Generate questions and open an interview record for signed-in users."""
    if body.job_listing is None:
        return JSONResponse(status_code=400, content=error_body("Missing job listing"))

    try:
        async with ctx.metering():
            questions = await services.selector.ai_for(ctx.tier).generate_questions(
                body.job_listing, body.style, body.count
            )
    except Exception as e:
        return error_response(e, "Failed to generate questions", logger)

    question_dicts = [q.model_dump(by_alias=True) for q in questions]

    interview_id = None
    if ctx.identity.is_authenticated:
        listing = body.job_listing
        interview_id = await best_effort(
            run_in_threadpool,
            services.repositories.interviews.create,
            user_id=ctx.user_id,
            job_title=listing.title,
            company=listing.company,
            seniority=listing.seniority,
            job_listing_raw=listing.raw,
            job_listing_parsed=listing.model_dump(by_alias=True),
            interview_style=body.style or "general",
            questions=question_dicts,
            operation_name="Persist interview",
            logger=logger,
        )

    return {"questions": question_dicts, "interviewId": interview_id}


@router.post("/evaluate")
async def evaluate_answer(
    body: EvaluateRequest,
    ctx: RequestContext = Depends(govern_request),
    services: GatewayServices = Depends(get_services),
):
    """Score one answer."""
    try:
        async with ctx.metering():
            evaluation = await services.selector.ai_for(ctx.tier).evaluate_answer(
                body.job_listing, body.question, body.answer
            )
    except Exception as e:
        return error_response(e, "Failed to evaluate answer", logger)

    result = evaluation.model_dump(by_alias=True)

    if body.interview_id and ctx.identity.is_authenticated:
        await best_effort(
            run_in_threadpool,
            services.repositories.interviews.save_answer,
            interview_id=body.interview_id,
            question_index=body.question_index,
            question_text=body.question.question,
            question_type=body.question.type,
            answer_text=body.answer,
            score=evaluation.score,
            evaluation=result,
            operation_name="Persist answer",
            logger=logger,
        )

    return result


@router.post("/report")
async def generate_report(
    body: ReportRequest,
    ctx: RequestContext = Depends(govern_request),
    services: GatewayServices = Depends(get_services),
):
    """Generate the final report and complete the stored interview."""
    try:
        async with ctx.metering():
            report = await services.selector.ai_for(ctx.tier).generate_report(body.job_listing, body.interview)
    except Exception as e:
        return error_response(e, "Failed to generate report", logger)

    result = report.model_dump(by_alias=True)

    if body.interview_id and ctx.identity.is_authenticated:
        await best_effort(
            run_in_threadpool,
            services.repositories.interviews.complete,
            body.interview_id,
            report.overall_score,
            result,
            operation_name="Complete interview",
            logger=logger,
        )

    return result


@router.get("/history")
async def interview_history(
    ctx: RequestContext = Depends(require_user),
    services: GatewayServices = Depends(get_services),
):
    """Caller's completed interviews, newest first."""
    try:
        return await run_in_threadpool(
            services.repositories.interviews.list_by_user, ctx.user_id, HISTORY_LIMIT
        )
    except Exception as e:
        return error_response(e, "Failed to load history", logger)


@router.get("/{interview_id}")
async def get_interview(
    interview_id: str,
    ctx: RequestContext = Depends(require_user),
    services: GatewayServices = Depends(get_services),
):
    """One interview with its answers (owner only)."""
    try:
        result = await run_in_threadpool(services.repositories.interviews.get_by_id, interview_id)
    except Exception as e:
        return error_response(e, "Failed to load interview", logger)

    if result["interview"].get("user_id") != ctx.user_id:
        return JSONResponse(status_code=403, content=error_body("Access denied"))
    return result
