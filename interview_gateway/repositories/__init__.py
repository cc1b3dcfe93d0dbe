"""
Repository Pattern for MongoDB Operations

Public API:
- get_repositories(): Factory for the process-wide repository set
- ProfileRepository / InterviewRepository / CoachingRepository: interfaces

Usage:
    from interview_gateway.repositories import get_repositories

    repos = get_repositories()
    tier = repos.profiles.get_tier(user_id)
"""

from .base import (
    COACHING_PROGRAM_DAYS,
    CoachingRepository,
    InterviewRepository,
    ProfileRepository,
    Record,
)
from .config import (
    Repositories,
    RepositoryConfig,
    create_repositories,
    get_repositories,
    reset_repositories,
)

__all__ = [
    "COACHING_PROGRAM_DAYS",
    "CoachingRepository",
    "InterviewRepository",
    "ProfileRepository",
    "Record",
    "Repositories",
    "RepositoryConfig",
    "create_repositories",
    "get_repositories",
    "reset_repositories",
]
