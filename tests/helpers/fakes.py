"""
In-memory stand-ins for the gateway's collaborators.

- Repositories that keep records in dicts (same record shapes as MongoDB)
- AI / voice providers that report consumption through the token meter
- A token verifier with a fixed token -> user table
"""

import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from gateway_service.auth import InvalidTokenError
from interview_gateway.common.errors import NotFoundError
from interview_gateway.common.token_meter import record_stt_seconds, record_tokens, record_tts_chars
from interview_gateway.repositories import (
    CoachingRepository,
    InterviewRepository,
    ProfileRepository,
    Repositories,
)
from interview_gateway.repositories.base import COACHING_PROGRAM_DAYS, Record
from interview_gateway.services.types import (
    AnswerEvaluation,
    InterviewData,
    InterviewQuestion,
    InterviewReport,
    ParsedJobListing,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


# ===== Repositories =====

class InMemoryProfileRepository(ProfileRepository):
    def __init__(self, tiers: Optional[Dict[str, str]] = None):
        self.tiers = dict(tiers or {})
        self.error: Optional[Exception] = None

    def get_tier(self, user_id: str) -> Optional[str]:
        if self.error:
            raise self.error
        return self.tiers.get(user_id)


class InMemoryInterviewRepository(InterviewRepository):
    def __init__(self):
        self.interviews: Dict[str, Record] = {}
        self.answers: List[Record] = []
        self.error: Optional[Exception] = None

    def create(self, user_id, job_title, company, seniority, job_listing_raw,
               job_listing_parsed, interview_style, questions) -> str:
        if self.error:
            raise self.error
        interview_id = _new_id()
        self.interviews[interview_id] = {
            "id": interview_id,
            "user_id": user_id,
            "job_title": job_title,
            "company": company,
            "seniority": seniority,
            "job_listing_raw": job_listing_raw,
            "job_listing_parsed": {**job_listing_parsed, "questions": questions},
            "interview_style": interview_style,
            "overall_score": None,
            "report": None,
            "status": "in_progress",
            "created_at": _now(),
            "completed_at": None,
        }
        return interview_id

    def save_answer(self, interview_id, question_index, question_text, question_type,
                    answer_text, score, evaluation) -> str:
        if self.error:
            raise self.error
        answer_id = _new_id()
        self.answers.append({
            "id": answer_id,
            "interview_id": interview_id,
            "question_index": question_index,
            "question_text": question_text,
            "question_type": question_type,
            "answer_text": answer_text,
            "score": score,
            "evaluation": evaluation,
        })
        return answer_id

    def complete(self, interview_id, overall_score, report) -> None:
        if self.error:
            raise self.error
        if interview_id not in self.interviews:
            raise NotFoundError("Interview not found")
        self.interviews[interview_id].update(
            overall_score=overall_score, report=report, status="completed", completed_at=_now()
        )

    def list_by_user(self, user_id, limit=30) -> List[Record]:
        done = [i for i in self.interviews.values() if i["user_id"] == user_id and i["status"] == "completed"]
        done.sort(key=lambda i: i["completed_at"], reverse=True)
        return done[:limit]

    def get_by_id(self, interview_id) -> Record:
        if interview_id not in self.interviews:
            raise NotFoundError("Interview not found")
        answers = sorted(
            (a for a in self.answers if a["interview_id"] == interview_id),
            key=lambda a: a["question_index"],
        )
        return {"interview": dict(self.interviews[interview_id]), "answers": answers}


class InMemoryCoachingRepository(CoachingRepository):
    def __init__(self):
        self.programs: Dict[str, Record] = {}
        self.days: Dict[str, Record] = {}
        self.attempts: List[Record] = []

    def create_program(self, user_id, interview_id) -> str:
        program_id = _new_id()
        self.programs[program_id] = {
            "id": program_id,
            "user_id": user_id,
            "interview_id": interview_id,
            "current_day": 1,
            "status": "active",
            "started_at": _now(),
            "completed_at": None,
        }
        return program_id

    def create_day(self, program_id, day_number, questions) -> str:
        day_id = _new_id()
        self.days[day_id] = {
            "id": day_id,
            "program_id": program_id,
            "day_number": day_number,
            "questions": questions,
            "status": "pending",
        }
        return day_id

    def start_day(self, day_id) -> None:
        if day_id not in self.days:
            raise NotFoundError("Coaching day not found")
        self.days[day_id]["status"] = "in_progress"

    def save_attempt(self, coaching_day_id, question_index, attempt_number, answer_text, evaluation) -> str:
        attempt_id = _new_id()
        self.attempts.append({
            "id": attempt_id,
            "coaching_day_id": coaching_day_id,
            "question_index": question_index,
            "attempt_number": attempt_number,
            "answer_text": answer_text,
            "evaluation": evaluation,
        })
        return attempt_id

    def complete_day(self, day_id, program_id) -> None:
        self.days[day_id]["status"] = "completed"
        program = self.programs.get(program_id)
        if program is None:
            raise NotFoundError("Coaching program not found")
        if program["current_day"] >= COACHING_PROGRAM_DAYS:
            program.update(status="completed", completed_at=_now())
        else:
            program["current_day"] += 1

    def _attempts_for(self, day_id) -> List[Record]:
        return sorted(
            (a for a in self.attempts if a["coaching_day_id"] == day_id),
            key=lambda a: (a["question_index"], a["attempt_number"]),
        )

    def get_program(self, program_id) -> Record:
        if program_id not in self.programs:
            raise NotFoundError("Coaching program not found")
        days = sorted(
            (dict(d) for d in self.days.values() if d["program_id"] == program_id),
            key=lambda d: d["day_number"],
        )
        for day in days:
            day["attempts"] = self._attempts_for(day["id"])
        return {"program": dict(self.programs[program_id]), "days": days}

    def get_active_program(self, user_id) -> Optional[Record]:
        active = [p for p in self.programs.values() if p["user_id"] == user_id and p["status"] == "active"]
        if not active:
            return None
        return dict(max(active, key=lambda p: p["started_at"]))

    def list_programs(self, user_id) -> List[Record]:
        mine = [dict(p) for p in self.programs.values() if p["user_id"] == user_id]
        return sorted(mine, key=lambda p: p["started_at"], reverse=True)

    def get_prior_questions(self, program_id) -> List[Record]:
        questions: List[Record] = []
        for day in self.days.values():
            if day["program_id"] == program_id and day["status"] == "completed":
                questions.extend(day["questions"])
        return questions

    def get_day(self, day_id) -> Record:
        if day_id not in self.days:
            raise NotFoundError("Coaching day not found")
        return {"day": dict(self.days[day_id]), "attempts": self._attempts_for(day_id)}


def in_memory_repositories(tiers: Optional[Dict[str, str]] = None) -> Repositories:
    return Repositories(
        profiles=InMemoryProfileRepository(tiers),
        interviews=InMemoryInterviewRepository(),
        coaching=InMemoryCoachingRepository(),
    )


# ===== Providers =====

class FakeAIProvider:
    """Deterministic AIProvider; every call reports tokens_per_call tokens."""

    name = "fake"

    def __init__(self, tokens_per_call: int = 100, score: int = 7):
        self.tokens_per_call = tokens_per_call
        self.score = score
        self.error: Optional[Exception] = None
        self.calls: List[Dict[str, Any]] = []

    def _call(self, operation: str, **details) -> None:
        self.calls.append({"operation": operation, **details})
        record_tokens(self.tokens_per_call // 2, self.tokens_per_call - self.tokens_per_call // 2)
        if self.error:
            raise self.error

    async def parse_job_listing(self, raw_text: str) -> ParsedJobListing:
        self._call("parse", raw_text=raw_text)
        return ParsedJobListing(
            title="Backend Engineer",
            company="Acme",
            seniority="senior",
            skills=["Python", "PostgreSQL"],
            summary="Build APIs.",
        )

    async def generate_questions(
        self,
        job_listing: ParsedJobListing,
        style: str,
        count: int,
        exclude: Sequence[str] = (),
    ) -> List[InterviewQuestion]:
        self._call("questions", style=style, count=count, exclude=list(exclude))
        offset = len(exclude)
        return [
            InterviewQuestion(
                question=f"Question {offset + i + 1}?",
                type="icebreaker" if i == 0 else "technical",
                target_skill="Python",
                difficulty=min(5, i + 1),
            )
            for i in range(count)
        ]

    async def evaluate_answer(self, job_listing, question, answer) -> AnswerEvaluation:
        self._call("evaluate", question=question.question, answer=answer)
        return AnswerEvaluation(
            score=self.score,
            strengths=["Clear structure"],
            improvements=["Quantify impact"],
            ideal_answer="A STAR answer.",
            tip="Lead with the result.",
        )

    async def generate_report(self, job_listing, interview: InterviewData) -> InterviewReport:
        self._call("report", answers=len(interview.answers))
        return InterviewReport(
            overall_score=72,
            summary="Solid.",
            strengths=["Communication"],
            areas_to_improve=["Depth"],
            action_items=["Practice system design"],
            success_profile="Senior engineer",
            interview_readiness="almost_there",
        )


class FakeVoiceProvider:
    """VoiceProvider returning canned audio and transcripts."""

    name = "fake-voice"

    def __init__(self, audio: bytes = b"ID3-fake-audio", transcript: str = "my answer", stt_seconds: float = 30.0):
        self.audio = audio
        self.transcript = transcript
        self.stt_seconds = stt_seconds
        self.error: Optional[Exception] = None
        self.calls: List[Dict[str, Any]] = []

    async def text_to_speech(self, text: str, voice_id: Optional[str] = None) -> AsyncIterator[bytes]:
        self.calls.append({"operation": "tts", "text": text, "voice_id": voice_id})
        if self.error:
            raise self.error
        record_tts_chars(len(text))
        return self._stream()

    async def _stream(self) -> AsyncIterator[bytes]:
        yield self.audio

    async def speech_to_text(self, audio: bytes, filename: str) -> str:
        self.calls.append({"operation": "stt", "size": len(audio), "filename": filename})
        if self.error:
            raise self.error
        record_stt_seconds(self.stt_seconds)
        return self.transcript


# ===== Auth =====

class FakeTokenVerifier:
    """Accepts only the tokens it was given."""

    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self.tokens = dict(tokens or {})
        self.error: Optional[Exception] = None

    async def verify(self, token: str) -> str:
        if self.error:
            raise self.error
        if token not in self.tokens:
            raise InvalidTokenError("Token rejected (401)")
        return self.tokens[token]


# ===== Scraper =====

class FakeScraper:
    """Returns canned page text, or raises the configured error."""

    def __init__(self, text: str = "Senior Backend Engineer at Acme. Python, PostgreSQL."):
        self.text = text
        self.error: Optional[Exception] = None
        self.urls: List[str] = []

    async def scrape(self, url: str) -> str:
        self.urls.append(url)
        if self.error:
            raise self.error
        return self.text
