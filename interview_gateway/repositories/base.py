"""
Repository Interface Definitions

Abstract interfaces for the records the gateway persists: user profiles
(tier lookup), interviews with their answers, and premium coaching programs.
Route handlers depend on these interfaces only, so tests can swap in
in-memory implementations.

All methods are blocking; the gateway calls them through a threadpool.
Records are plain dicts with an "id" key and snake_case fields.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

Record = Dict[str, Any]

COACHING_PROGRAM_DAYS = 5


class ProfileRepository(ABC):
    """User profiles (tier lookup only)."""

    @abstractmethod
    def get_tier(self, user_id: str) -> Optional[str]:
        """
        Look up a user's subscription tier.

        Returns:
            Stored tier name, or None when the profile does not exist
        """
        pass


class InterviewRepository(ABC):
    """Mock interview sessions and their answers."""

    @abstractmethod
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
        """
        Create an in-progress interview.

        The generated questions are stored inside job_listing_parsed.

        Returns:
            New interview id
        """
        pass

    @abstractmethod
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
        """Store one answer with its evaluation. Returns the answer id."""
        pass

    @abstractmethod
    def complete(self, interview_id: str, overall_score: float, report: Record) -> None:
        """Mark an interview completed with its final report."""
        pass

    @abstractmethod
    def list_by_user(self, user_id: str, limit: int = 30) -> List[Record]:
        """Completed interviews for a user, most recently completed first."""
        pass

    @abstractmethod
    def get_by_id(self, interview_id: str) -> Record:
        """
        Get an interview with its answers.

        Returns:
            {"interview": {...}, "answers": [...]} with answers ordered by question_index

        Raises:
            NotFoundError: Unknown interview id
        """
        pass


class CoachingRepository(ABC):
    """
    Premium coaching programs.

    A program spans COACHING_PROGRAM_DAYS days, each with its own question
    set; every answer attempt on a day is stored with its evaluation.
    """

    @abstractmethod
    def create_program(self, user_id: str, interview_id: str) -> str:
        """Create an active program starting at day 1. Returns the program id."""
        pass

    @abstractmethod
    def create_day(self, program_id: str, day_number: int, questions: List[Record]) -> str:
        """Create a pending day. Returns the day id."""
        pass

    @abstractmethod
    def start_day(self, day_id: str) -> None:
        """Mark a day in progress."""
        pass

    @abstractmethod
    def save_attempt(
        self,
        coaching_day_id: str,
        question_index: int,
        attempt_number: int,
        answer_text: str,
        evaluation: Record,
    ) -> str:
        """Store one answer attempt. Returns the attempt id."""
        pass

    @abstractmethod
    def complete_day(self, day_id: str, program_id: str) -> None:
        """
        Mark a day completed and advance the program.

        The program is completed when its current day is the last one,
        otherwise current_day moves forward by one.
        """
        pass

    @abstractmethod
    def get_program(self, program_id: str) -> Record:
        """
        Get a program with its days (each carrying its attempts), ordered by day.

        Raises:
            NotFoundError: Unknown program id
        """
        pass

    @abstractmethod
    def get_active_program(self, user_id: str) -> Optional[Record]:
        """Most recently started active program, or None."""
        pass

    @abstractmethod
    def list_programs(self, user_id: str) -> List[Record]:
        """All programs for a user, newest first."""
        pass

    @abstractmethod
    def get_prior_questions(self, program_id: str) -> List[Record]:
        """Questions from every completed day of a program."""
        pass

    @abstractmethod
    def get_day(self, day_id: str) -> Record:
        """
        Get a day with its attempts.

        Returns:
            {"day": {...}, "attempts": [...]} ordered by question, then attempt

        Raises:
            NotFoundError: Unknown day id
        """
        pass
