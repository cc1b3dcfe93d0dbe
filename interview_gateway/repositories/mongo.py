"""
MongoDB Repositories

pymongo implementations of the repository interfaces. Documents use uuid4
hex strings as _id; records handed back to callers expose it as "id".

Connection Management:
- One MongoClient per (uri), shared by every repository instance
- PyMongo pools connections internally and connects lazily

Error Handling:
- Fail-fast: driver errors propagate to the caller
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection

from ..common.errors import NotFoundError
from .base import (
    COACHING_PROGRAM_DAYS,
    CoachingRepository,
    InterviewRepository,
    ProfileRepository,
    Record,
)

logger = logging.getLogger(__name__)

PROFILES = "profiles"
INTERVIEWS = "interviews"
ANSWERS = "answers"
COACHING_PROGRAMS = "coaching_programs"
COACHING_DAYS = "coaching_days"
COACHING_ATTEMPTS = "coaching_attempts"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _to_record(document: Optional[Dict[str, Any]]) -> Optional[Record]:
    """Rename _id to id."""
    if document is None:
        return None
    record = dict(document)
    record["id"] = str(record.pop("_id"))
    return record


class MongoRepository:
    """Shared client handling for the MongoDB repositories."""

    _clients: Dict[str, MongoClient] = {}
    _lock = threading.Lock()

    def __init__(self, mongodb_uri: str, database: str = "interview_coach"):
        """
        Args:
            mongodb_uri: MongoDB connection string
            database: Database name
        """
        self._mongodb_uri = mongodb_uri
        self._database_name = database

    def _collection(self, name: str) -> Collection:
        with MongoRepository._lock:
            client = MongoRepository._clients.get(self._mongodb_uri)
            if client is None:
                client = MongoClient(self._mongodb_uri)
                MongoRepository._clients[self._mongodb_uri] = client
                logger.info(f"MongoDB repository connected: {self._database_name}")
        return client[self._database_name][name]

    @classmethod
    def reset_connection(cls) -> None:
        """
        Close every pooled client.

        Used for testing or connection recovery.
        """
        with cls._lock:
            for client in cls._clients.values():
                client.close()
            cls._clients = {}
        logger.info("MongoDB repository connections reset")


class MongoProfileRepository(MongoRepository, ProfileRepository):
    """Profiles collection (written by the auth provider, read here)."""

    def get_tier(self, user_id: str) -> Optional[str]:
        profile = self._collection(PROFILES).find_one({"_id": user_id}, {"tier": 1})
        if not profile:
            return None
        return profile.get("tier")


class MongoInterviewRepository(MongoRepository, InterviewRepository):
    """Interviews and answers collections."""

    def create(
        self,
        user_id: str,
        job_title: str,
        company: Optional[str],
        seniority: Optional[str],
        job_listing_raw: Optional[str],
        job_listing_parsed: Record,
        interview_style: str,
        questions: List[Record],
    ) -> str:
        interview_id = _new_id()
        self._collection(INTERVIEWS).insert_one({
            "_id": interview_id,
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
            "created_at": _utcnow(),
            "completed_at": None,
        })
        return interview_id

    def save_answer(
        self,
        interview_id: str,
        question_index: int,
        question_text: str,
        question_type: str,
        answer_text: str,
        score: Optional[float],
        evaluation: Optional[Record],
    ) -> str:
        answer_id = _new_id()
        self._collection(ANSWERS).insert_one({
            "_id": answer_id,
            "interview_id": interview_id,
            "question_index": question_index,
            "question_text": question_text,
            "question_type": question_type,
            "answer_text": answer_text,
            "score": score,
            "evaluation": evaluation,
            "created_at": _utcnow(),
        })
        return answer_id

    def complete(self, interview_id: str, overall_score: float, report: Record) -> None:
        result = self._collection(INTERVIEWS).update_one(
            {"_id": interview_id},
            {"$set": {
                "overall_score": overall_score,
                "report": report,
                "status": "completed",
                "completed_at": _utcnow(),
            }},
        )
        if result.matched_count == 0:
            raise NotFoundError("Interview not found")

    def list_by_user(self, user_id: str, limit: int = 30) -> List[Record]:
        cursor = (
            self._collection(INTERVIEWS)
            .find({"user_id": user_id, "status": "completed"})
            .sort("completed_at", DESCENDING)
            .limit(limit)
        )
        return [_to_record(doc) for doc in cursor]

    def get_by_id(self, interview_id: str) -> Record:
        interview = _to_record(self._collection(INTERVIEWS).find_one({"_id": interview_id}))
        if interview is None:
            raise NotFoundError("Interview not found")
        answers = self._collection(ANSWERS).find({"interview_id": interview_id}).sort("question_index", ASCENDING)
        return {"interview": interview, "answers": [_to_record(doc) for doc in answers]}


class MongoCoachingRepository(MongoRepository, CoachingRepository):
    """Coaching programs, days and attempts collections."""

    def _interview_summary(self, interview_id: Optional[str]) -> Optional[Record]:
        if not interview_id:
            return None
        return self._collection(INTERVIEWS).find_one(
            {"_id": interview_id}, {"_id": 0, "job_title": 1, "company": 1}
        )

    def _with_interview(self, program: Optional[Record]) -> Optional[Record]:
        if program is not None:
            program["interview"] = self._interview_summary(program.get("interview_id"))
        return program

    def create_program(self, user_id: str, interview_id: str) -> str:
        program_id = _new_id()
        self._collection(COACHING_PROGRAMS).insert_one({
            "_id": program_id,
            "user_id": user_id,
            "interview_id": interview_id,
            "current_day": 1,
            "status": "active",
            "started_at": _utcnow(),
            "completed_at": None,
        })
        return program_id

    def create_day(self, program_id: str, day_number: int, questions: List[Record]) -> str:
        day_id = _new_id()
        self._collection(COACHING_DAYS).insert_one({
            "_id": day_id,
            "program_id": program_id,
            "day_number": day_number,
            "questions": questions,
            "status": "pending",
            "started_at": None,
            "completed_at": None,
        })
        return day_id

    def start_day(self, day_id: str) -> None:
        result = self._collection(COACHING_DAYS).update_one(
            {"_id": day_id},
            {"$set": {"status": "in_progress", "started_at": _utcnow()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Coaching day not found")

    def save_attempt(
        self,
        coaching_day_id: str,
        question_index: int,
        attempt_number: int,
        answer_text: str,
        evaluation: Record,
    ) -> str:
        attempt_id = _new_id()
        self._collection(COACHING_ATTEMPTS).insert_one({
            "_id": attempt_id,
            "coaching_day_id": coaching_day_id,
            "question_index": question_index,
            "attempt_number": attempt_number,
            "answer_text": answer_text,
            "evaluation": evaluation,
            "created_at": _utcnow(),
        })
        return attempt_id

    def complete_day(self, day_id: str, program_id: str) -> None:
        now = _utcnow()
        self._collection(COACHING_DAYS).update_one(
            {"_id": day_id},
            {"$set": {"status": "completed", "completed_at": now}},
        )

        programs = self._collection(COACHING_PROGRAMS)
        program = programs.find_one({"_id": program_id}, {"current_day": 1})
        if not program:
            raise NotFoundError("Coaching program not found")

        if program.get("current_day", 1) >= COACHING_PROGRAM_DAYS:
            programs.update_one(
                {"_id": program_id},
                {"$set": {"status": "completed", "completed_at": now}},
            )
        else:
            programs.update_one({"_id": program_id}, {"$inc": {"current_day": 1}})

    def get_program(self, program_id: str) -> Record:
        program = _to_record(self._collection(COACHING_PROGRAMS).find_one({"_id": program_id}))
        if program is None:
            raise NotFoundError("Coaching program not found")
        program["interview"] = self._interview_summary(program.get("interview_id"))

        days = [
            _to_record(doc)
            for doc in self._collection(COACHING_DAYS).find({"program_id": program_id}).sort("day_number", ASCENDING)
        ]
        if days:
            attempts = self._collection(COACHING_ATTEMPTS).find(
                {"coaching_day_id": {"$in": [day["id"] for day in days]}}
            ).sort([("question_index", ASCENDING), ("attempt_number", ASCENDING)])
            by_day: Dict[str, List[Record]] = {}
            for doc in attempts:
                attempt = _to_record(doc)
                by_day.setdefault(attempt["coaching_day_id"], []).append(attempt)
            for day in days:
                day["attempts"] = by_day.get(day["id"], [])

        return {"program": program, "days": days}

    def get_active_program(self, user_id: str) -> Optional[Record]:
        document = self._collection(COACHING_PROGRAMS).find_one(
            {"user_id": user_id, "status": "active"},
            sort=[("started_at", DESCENDING)],
        )
        return self._with_interview(_to_record(document))

    def list_programs(self, user_id: str) -> List[Record]:
        cursor = self._collection(COACHING_PROGRAMS).find({"user_id": user_id}).sort("started_at", DESCENDING)
        return [self._with_interview(_to_record(doc)) for doc in cursor]

    def get_prior_questions(self, program_id: str) -> List[Record]:
        cursor = self._collection(COACHING_DAYS).find(
            {"program_id": program_id, "status": "completed"},
            {"questions": 1},
        )
        questions: List[Record] = []
        for doc in cursor:
            questions.extend(doc.get("questions") or [])
        return questions

    def get_day(self, day_id: str) -> Record:
        day = _to_record(self._collection(COACHING_DAYS).find_one({"_id": day_id}))
        if day is None:
            raise NotFoundError("Coaching day not found")
        attempts = self._collection(COACHING_ATTEMPTS).find(
            {"coaching_day_id": day_id}
        ).sort([("question_index", ASCENDING), ("attempt_number", ASCENDING)])
        return {"day": day, "attempts": [_to_record(doc) for doc in attempts]}
