# tests/test_catalog_service.py
import pytest

from dbkompare.core.errors import NotFoundError, ValidationError
from dbkompare.services.catalog_service import (
    DEFAULT_PLANS,
    CatalogService,
    validate_plan,
    validate_question,
)
from tests.conftest import QUIZ_ID, USER_ID


@pytest.fixture
def catalog(store, clock):
    return CatalogService(store, clock)


def new_question(**overrides):
    item = {
        "question": "Which index type suits range queries?",
        "options": [{"text": "B-tree", "isCorrect": True}, {"text": "Hash", "isCorrect": False}],
    }
    item.update(overrides)
    return item


class TestQuestionValidation:

    def test_valid_question_gets_ids_and_defaults(self):
        question = validate_question(1, new_question(explanation="B-trees keep keys ordered"))
        assert question["points"] == 1
        assert question["isMultipleAnswer"] is False
        assert question["status"] == "ACTIVE"
        assert question["explanation"] == "B-trees keep keys ordered"
        assert len({o["id"] for o in question["options"]}) == 2

    def test_multiple_correct_options_flag_multi_answer(self):
        options = [{"text": "a", "isCorrect": True}, {"text": "b", "isCorrect": True}]
        assert validate_question(1, new_question(options=options))["isMultipleAnswer"] is True

    @pytest.mark.parametrize("overrides, message", [
        ({"question": "  "}, "question text"),
        ({"options": [{"text": "only", "isCorrect": True}]}, "two options"),
        ({"options": [{"text": "a", "isCorrect": False}, {"text": "b", "isCorrect": False}]}, "correct"),
        ({"options": [{"text": "a", "isCorrect": "yes"}, {"text": "b", "isCorrect": False}]}, "isCorrect"),
        ({"options": [{"text": "", "isCorrect": True}, {"text": "b", "isCorrect": False}]}, "text"),
        ({"points": 0}, "points"),
        ({"points": True}, "points"),
    ])
    def test_invalid_questions_report_item_index(self, overrides, message):
        with pytest.raises(ValidationError, match=f"Item 3: .*{message}"):
            validate_question(3, new_question(**overrides))


class TestQuizzes:

    def test_list_marks_taken_quizzes(self, catalog, store, seeded_quiz):
        store.seed(store.tables.quizzes, {"id": "quiz-2", "name": "Aurora", "status": "ACTIVE", "questionIds": []})
        store.seed(store.tables.submissions, {"id": "s1", "quizId": QUIZ_ID, "userId": USER_ID, "createdAt": 0,
                                              "correctCount": 0, "totalQuestions": 4, "totalScore": 0,
                                              "percentageScore": 0, "passingPercentage": 75, "status": "FAILED"})

        quizzes = catalog.list_quizzes(user_id=USER_ID)

        assert [q["id"] for q in quizzes] == ["quiz-2", QUIZ_ID]
        assert [q["taken"] for q in quizzes] == [False, True]
        assert quizzes[1]["totalQuestions"] == 4

    def test_list_filters_by_difficulty(self, catalog, store, seeded_quiz):
        store.seed(store.tables.quizzes, {"id": "quiz-2", "name": "Aurora", "status": "ACTIVE",
                                          "difficulty": "Advanced"})
        assert [q["id"] for q in catalog.list_quizzes(difficulty="beginner")] == [QUIZ_ID]

    def test_get_quiz_hides_correct_answers(self, catalog, seeded_quiz):
        quiz = catalog.get_quiz(QUIZ_ID)
        assert [q["id"] for q in quiz["questions"]] == ["q1", "q2", "q3", "q4"]
        assert all("isCorrect" not in o for q in quiz["questions"] for o in q["options"])
        assert quiz["questions"][2]["isMultipleAnswer"] is True

    def test_get_unknown_quiz(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.get_quiz("missing")

    def test_create_questions_appends_to_quiz(self, catalog, store, seeded_quiz):
        result = catalog.create_questions([new_question(), new_question(points=2)], quiz_id=QUIZ_ID)

        assert result["created"] == 2
        quiz = store.get_item(store.tables.quizzes, {"id": QUIZ_ID})
        assert quiz["questionIds"][-2:] == result["questionIds"]
        numbers = [store.get_item(store.tables.questions, {"id": qid})["questionNo"] for qid in result["questionIds"]]
        assert numbers == [5, 6]

    def test_one_invalid_question_rejects_the_batch(self, catalog, store):
        with pytest.raises(ValidationError, match="Item 2"):
            catalog.create_questions([new_question(), new_question(options=[])])
        assert store.items(store.tables.questions) == []

    def test_create_questions_for_unknown_quiz(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.create_questions([new_question()], quiz_id="missing")


class TestGroups:

    def test_create_and_list(self, catalog):
        catalog.create_group("SQL Mastery", "All SQL quizzes", ["q-a", "q-b", "q-a"])
        catalog.create_group("Analytics", None, ["q-c"])

        groups = catalog.list_groups()
        assert [g["name"] for g in groups] == ["Analytics", "SQL Mastery"]
        assert groups[1]["quizIds"] == ["q-a", "q-b"]
        assert groups[1]["certificateTakenBy"] == []

    def test_update_only_allows_known_fields(self, catalog):
        group = catalog.create_group("SQL", None, [])
        with pytest.raises(ValidationError, match="certificateTakenBy"):
            catalog.update_group(group["id"], {"certificateTakenBy": ["x"]})

        updated = catalog.update_group(group["id"], {"name": "SQL Mastery", "quizIds": ["a", "a", "b"]})
        assert updated["name"] == "SQL Mastery"
        assert updated["quizIds"] == ["a", "b"]

    def test_delete(self, catalog, store):
        group = catalog.create_group("SQL", None, [])
        catalog.delete_group(group["id"])
        assert store.items(store.tables.groups) == []
        with pytest.raises(NotFoundError):
            catalog.delete_group(group["id"])


class TestCertificates:

    @pytest.fixture
    def certificate(self, store, seeded_quiz, seeded_user):
        store.seed(store.tables.certificates, {
            "id": "CERT00000001", "subjectId": QUIZ_ID, "userId": USER_ID, "issueDate": 0, "status": "ACTIVE",
        })
        return "CERT00000001"

    def test_get_includes_quiz_and_user(self, catalog, certificate):
        result = catalog.get_certificate(certificate)
        assert result["quiz"]["name"] == "PostgreSQL Fundamentals"
        assert result["user"] == {"id": USER_ID, "name": "Jane Doe", "email": "jane@example.com"}

    def test_revoke(self, catalog, certificate):
        result = catalog.update_certificate(certificate, {"status": "REVOKED"})
        assert result["status"] == "REVOKED"

    @pytest.mark.parametrize("patch", [
        {"userId": "someone"},
        {"status": "EXPIRED"},
        {"metaData": "text"},
        {"eligibleForCredits": "yes"},
        {},
    ])
    def test_rejects_invalid_patches(self, catalog, certificate, patch):
        with pytest.raises(ValidationError):
            catalog.update_certificate(certificate, patch)

    def test_unknown_certificate(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.update_certificate("missing", {"status": "REVOKED"})


class TestPlans:

    def test_defaults_are_created_when_none_given(self, catalog, store):
        created = catalog.create_plans()
        assert len(created) == len(DEFAULT_PLANS)
        assert [p["price"] for p in catalog.list_plans()] == sorted(p["price"] for p in DEFAULT_PLANS)

    def test_status_change_filters_listing(self, catalog):
        [plan] = catalog.create_plans([{"name": "Team", "price": 199, "certificationsUnlocked": 20}])
        catalog.update_plan_status(plan["id"], "INACTIVE")

        assert catalog.list_plans("ACTIVE") == []
        assert [p["id"] for p in catalog.list_plans("INACTIVE")] == [plan["id"]]

    @pytest.mark.parametrize("plan, message", [
        ({"price": 10, "certificationsUnlocked": 1}, "name"),
        ({"name": "X", "price": -1, "certificationsUnlocked": 1}, "price"),
        ({"name": "X", "price": 1, "certificationsUnlocked": 1.5}, "certificationsUnlocked"),
        ({"name": "X", "price": 1, "certificationsUnlocked": 1, "features": [1]}, "features"),
    ])
    def test_plan_validation(self, plan, message):
        with pytest.raises(ValidationError, match=f"Plan 2: .*{message}"):
            validate_plan(2, plan)

    def test_invalid_status(self, catalog):
        with pytest.raises(ValidationError):
            catalog.update_plan_status("any", "DELETED")
