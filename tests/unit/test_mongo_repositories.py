"""
Unit tests for interview_gateway/repositories/mongo.py

The MongoClient is mocked (see conftest.mock_mongodb); each test wires the
collection methods it needs.
"""

from unittest.mock import MagicMock

import pytest

from interview_gateway.common.errors import NotFoundError
from interview_gateway.repositories import (
    RepositoryConfig,
    create_repositories,
    get_repositories,
    reset_repositories,
)
from interview_gateway.repositories.mongo import (
    MongoCoachingRepository,
    MongoInterviewRepository,
    MongoProfileRepository,
    MongoRepository,
)

URI = "mongodb://mongo.test:27017"


@pytest.fixture(autouse=True)
def fresh_clients():
    MongoRepository.reset_connection()
    reset_repositories()
    yield
    MongoRepository.reset_connection()
    reset_repositories()


@pytest.fixture
def collections(mock_mongodb):
    """Separate mock collection per name."""
    by_name = {}

    def collection(name):
        if name not in by_name:
            by_name[name] = MagicMock(name=name)
        return by_name[name]

    db = MagicMock()
    db.__getitem__ = MagicMock(side_effect=collection)
    mock_mongodb.return_value.__getitem__ = MagicMock(return_value=db)
    return collection


class TestMongoProfileRepository:
    def test_get_tier(self, collections):
        collections("profiles").find_one.return_value = {"_id": "u1", "tier": "pro"}
        assert MongoProfileRepository(URI).get_tier("u1") == "pro"
        collections("profiles").find_one.assert_called_once_with({"_id": "u1"}, {"tier": 1})

    def test_missing_profile(self, collections):
        collections("profiles").find_one.return_value = None
        assert MongoProfileRepository(URI).get_tier("u1") is None

    def test_client_is_shared(self, mock_mongodb, collections):
        MongoProfileRepository(URI).get_tier("u1")
        MongoInterviewRepository(URI).list_by_user("u1")
        assert mock_mongodb.call_count == 1


class TestMongoInterviewRepository:
    def test_create_stores_questions_with_listing(self, collections):
        repo = MongoInterviewRepository(URI, "coach_test")
        interview_id = repo.create(
            user_id="u1",
            job_title="Dev",
            company="Acme",
            seniority="mid",
            job_listing_raw="raw",
            job_listing_parsed={"title": "Dev"},
            interview_style="technical",
            questions=[{"question": "Q?"}],
        )

        document = collections("interviews").insert_one.call_args.args[0]
        assert document["_id"] == interview_id
        assert document["status"] == "in_progress"
        assert document["job_listing_parsed"] == {"title": "Dev", "questions": [{"question": "Q?"}]}

    def test_get_by_id_renames_ids(self, collections):
        collections("interviews").find_one.return_value = {"_id": "i1", "user_id": "u1"}
        collections("answers").find.return_value.sort.return_value = [{"_id": "a1", "question_index": 0}]

        result = MongoInterviewRepository(URI).get_by_id("i1")

        assert result["interview"] == {"id": "i1", "user_id": "u1"}
        assert result["answers"] == [{"id": "a1", "question_index": 0}]

    def test_get_by_id_not_found(self, collections):
        collections("interviews").find_one.return_value = None
        with pytest.raises(NotFoundError, match="Interview not found"):
            MongoInterviewRepository(URI).get_by_id("missing")

    def test_complete_unknown_interview(self, collections):
        collections("interviews").update_one.return_value.matched_count = 0
        with pytest.raises(NotFoundError):
            MongoInterviewRepository(URI).complete("missing", 70, {})


class TestMongoCoachingRepository:
    def test_complete_day_advances_program(self, collections):
        collections("coaching_programs").find_one.return_value = {"_id": "p1", "current_day": 2}
        MongoCoachingRepository(URI).complete_day("d1", "p1")

        collections("coaching_programs").update_one.assert_called_once_with({"_id": "p1"}, {"$inc": {"current_day": 1}})

    def test_complete_last_day_completes_program(self, collections):
        collections("coaching_programs").find_one.return_value = {"_id": "p1", "current_day": 5}
        MongoCoachingRepository(URI).complete_day("d5", "p1")

        update = collections("coaching_programs").update_one.call_args.args[1]
        assert update["$set"]["status"] == "completed"

    def test_get_program_groups_attempts_by_day(self, collections):
        collections("coaching_programs").find_one.return_value = {"_id": "p1", "interview_id": "i1"}
        collections("interviews").find_one.return_value = {"job_title": "Dev", "company": "Acme"}
        collections("coaching_days").find.return_value.sort.return_value = [
            {"_id": "d1", "day_number": 1},
            {"_id": "d2", "day_number": 2},
        ]
        collections("coaching_attempts").find.return_value.sort.return_value = [
            {"_id": "a1", "coaching_day_id": "d1", "question_index": 0, "attempt_number": 1},
        ]

        result = MongoCoachingRepository(URI).get_program("p1")

        assert result["program"]["interview"] == {"job_title": "Dev", "company": "Acme"}
        assert [d["id"] for d in result["days"]] == ["d1", "d2"]
        assert [a["id"] for a in result["days"][0]["attempts"]] == ["a1"]
        assert result["days"][1]["attempts"] == []

    def test_prior_questions_from_completed_days(self, collections):
        collections("coaching_days").find.return_value = [
            {"questions": [{"question": "A?"}]},
            {"questions": [{"question": "B?"}]},
        ]
        questions = MongoCoachingRepository(URI).get_prior_questions("p1")
        assert [q["question"] for q in questions] == ["A?", "B?"]

    def test_get_day_not_found(self, collections):
        collections("coaching_days").find_one.return_value = None
        with pytest.raises(NotFoundError, match="Coaching day not found"):
            MongoCoachingRepository(URI).get_day("missing")


class TestRepositoryFactory:
    def test_from_env_requires_uri(self, mocker):
        mocker.patch("interview_gateway.repositories.config.Config.MONGODB_URI", "")
        with pytest.raises(ValueError, match="MONGODB_URI"):
            RepositoryConfig.from_env()

    def test_get_repositories_is_a_singleton(self):
        config = RepositoryConfig(mongodb_uri=URI)
        first = get_repositories(config)
        assert get_repositories() is first
        assert isinstance(first.coaching, MongoCoachingRepository)

    def test_create_repositories_uses_database(self):
        repos = create_repositories(RepositoryConfig(mongodb_uri=URI, database="other"))
        assert repos.profiles._database_name == "other"
