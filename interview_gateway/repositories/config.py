"""
Repository Configuration and Factory

Builds the repository set from configuration. The MongoDB repositories share
one pooled client, so the factory keeps a single instance per process.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..common.config import Config
from .base import CoachingRepository, InterviewRepository, ProfileRepository

logger = logging.getLogger(__name__)


@dataclass
class RepositoryConfig:
    """Connection settings for the persistence layer."""

    mongodb_uri: str
    database: str = "interview_coach"

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - MONGODB_URI (required): MongoDB connection string
        - MONGO_DB_NAME: Database name (default: interview_coach)

        Raises:
            ValueError: If MONGODB_URI is not set
        """
        if not Config.MONGODB_URI:
            raise ValueError("MONGODB_URI environment variable is required")
        return cls(mongodb_uri=Config.MONGODB_URI, database=Config.MONGO_DB_NAME)


@dataclass
class Repositories:
    """The repositories a gateway instance works with."""

    profiles: ProfileRepository
    interviews: InterviewRepository
    coaching: CoachingRepository


_repositories_instance: Optional[Repositories] = None


def create_repositories(config: RepositoryConfig) -> Repositories:
    """Build MongoDB-backed repositories for a connection config."""
    from .mongo import MongoCoachingRepository, MongoInterviewRepository, MongoProfileRepository

    return Repositories(
        profiles=MongoProfileRepository(config.mongodb_uri, config.database),
        interviews=MongoInterviewRepository(config.mongodb_uri, config.database),
        coaching=MongoCoachingRepository(config.mongodb_uri, config.database),
    )


def get_repositories(config: Optional[RepositoryConfig] = None) -> Repositories:
    """
    Get the process-wide repository set.

    Args:
        config: Connection settings (loaded from the environment if omitted)

    Raises:
        ValueError: If MongoDB URI is not configured
    """
    global _repositories_instance

    if _repositories_instance is None:
        config = config or RepositoryConfig.from_env()
        _repositories_instance = create_repositories(config)
        logger.info(f"Initialized MongoDB repositories ({config.database})")

    return _repositories_instance


def reset_repositories() -> None:
    """
    Reset the repository singleton.

    Used for testing or when configuration changes.
    """
    global _repositories_instance

    if _repositories_instance is not None:
        from .mongo import MongoRepository
        MongoRepository.reset_connection()

    _repositories_instance = None
    logger.info("Repository singleton reset")
