# tests/test_submission_service.py
import io
import re

import pytest
from pypdf import PdfReader

from dbkompare.core.errors import ConflictError, NotFoundError, ValidationError
from dbkompare.db.dynamodb import Put, Update
from dbkompare.services.certificate_service import CertificateIssuer
from dbkompare.services.submission_service import SubmissionService
from tests.conftest import QUIZ_ID, USER_ID

PASSING_ANSWERS = [
    {"questionId": "q1", "selectedOptionIds": ["a"]},
    {"questionId": "q2", "selectedOptionIds": ["a"]},
    {"questionId": "q3", "selectedOptionIds": ["a", "b"]},
    {"questionId": "q4", "selectedOptionIds": ["a"]},
]
FAILING_ANSWERS = [
    {"questionId": "q1", "selectedOptionIds": ["a"]},
    {"questionId": "q2", "selectedOptionIds": ["b"]},
]


@pytest.fixture
def service(store, storage, settings, clock):
    return SubmissionService(store, CertificateIssuer(settings, storage, clock), settings, clock)


class TestValidation:

    @pytest.mark.parametrize("quiz_id, user_id, answers", [
        (None, USER_ID, PASSING_ANSWERS),
        (QUIZ_ID, None, PASSING_ANSWERS),
        (QUIZ_ID, USER_ID, None),
    ])
    def test_missing_fields(self, service, quiz_id, user_id, answers):
        with pytest.raises(ValidationError, match="Missing required fields"):
            service.submit(quiz_id, user_id, answers)

    @pytest.mark.parametrize("answers", [[], "q1:a", {"questionId": "q1"}])
    def test_answers_must_be_non_empty_array(self, service, answers):
        with pytest.raises(ValidationError, match="non-empty array"):
            service.submit(QUIZ_ID, USER_ID, answers)

    def test_unknown_quiz(self, service, seeded_user):
        with pytest.raises(NotFoundError, match="Quiz not found"):
            service.submit("missing", USER_ID, PASSING_ANSWERS)

    def test_unknown_user(self, service, seeded_quiz):
        with pytest.raises(NotFoundError, match="User not found"):
            service.submit(QUIZ_ID, "ghost", PASSING_ANSWERS)


class TestFailedSubmission:

    def test_records_submission_without_certificate(self, service, store, storage, seeded_quiz, seeded_user):
        result = service.submit(QUIZ_ID, USER_ID, FAILING_ANSWERS)

        assert result["passed"] is False
        assert result["certificateId"] is None
        assert result["certificateUrl"] is None
        assert result["percentageScore"] == 25

        [transaction] = store.transactions
        assert len(transaction) == 1
        submission = store.get_item(store.tables.submissions, {"id": result["submissionId"]})
        assert submission["status"] == "FAILED"
        assert "certificateId" not in submission
        assert store.items(store.tables.certificates) == []
        assert storage.uploads == []
        assert store.get_item(store.tables.users, {"id": USER_ID})["certificateCredits"] == 3

    def test_quiz_without_pass_mark_never_passes(self, service, store, storage, seeded_quiz, seeded_user):
        quiz = store.get_item(store.tables.quizzes, {"id": QUIZ_ID})
        del quiz["passingPerc"]
        store.seed(store.tables.quizzes, quiz)

        result = service.submit(QUIZ_ID, USER_ID, [{"questionId": "q1", "selectedOptionIds": ["b"]}])

        assert result["percentageScore"] == 0
        assert result["passed"] is False
        assert result["certificateId"] is None
        assert result["passingPercentage"] is None
        assert store.items(store.tables.certificates) == []
        assert storage.uploads == []
        submission = store.get_item(store.tables.submissions, {"id": result["submissionId"]})
        assert submission["status"] == "FAILED"
        assert "passingPercentage" not in submission


class TestPassedSubmission:

    def test_writes_submission_certificate_and_credit_atomically(self, service, store, seeded_quiz, seeded_user):
        result = service.submit(QUIZ_ID, USER_ID, PASSING_ANSWERS)

        assert result["passed"] is True
        assert result["correctCount"] == 3
        assert result["totalQuestions"] == 4
        assert result["percentageScore"] == 75
        assert result["passingPercentage"] == 75
        assert re.fullmatch(r"[A-Z0-9]{12}", result["certificateId"])

        [transaction] = store.transactions
        assert [type(op) for op in transaction] == [Put, Put, Update]
        assert all(op.unique_on == "id" for op in transaction[:2])
        assert transaction[2].require_exists == "id"
        assert transaction[2].increment == {"certificateCredits": 1}

        submission = store.get_item(store.tables.submissions, {"id": result["submissionId"]})
        assert submission["status"] == "PASSED"
        assert submission["certificateId"] == result["certificateId"]
        assert submission["quizDetails"] == {
            "name": "PostgreSQL Fundamentals", "category": "Relational", "difficulty": "Beginner",
        }
        assert submission["totalScore"] == 4

        certificate = store.get_item(store.tables.certificates, {"id": result["certificateId"]})
        assert certificate["subjectId"] == QUIZ_ID
        assert certificate["submissionId"] == result["submissionId"]
        assert certificate["status"] == "ACTIVE"
        assert certificate["metaData"] == {"score": 75.0, "quizName": "PostgreSQL Fundamentals"}
        assert certificate["eligibleForCredits"] is False

        assert store.get_item(store.tables.users, {"id": USER_ID})["certificateCredits"] == 4

    def test_uploads_certificate_pdf_under_deterministic_key(self, service, storage, settings,
                                                              seeded_quiz, seeded_user):
        result = service.submit(QUIZ_ID, USER_ID, PASSING_ANSWERS)

        [upload] = storage.uploads
        expected_key = f"CERTIFICATES/{result['certificateId']}-{USER_ID}-{result['submissionId']}.pdf"
        assert upload["key"] == expected_key
        assert upload["acl"] == "private"
        assert upload["content_type"] == "application/pdf"
        assert result["certificateUrl"] == f"s3://{settings.BUCKET_NAME}/{expected_key}"

        text = PdfReader(io.BytesIO(upload["body"])).pages[0].extract_text()
        assert "Jane Doe" in text
        assert result["certificateId"] in text
        assert f"https://dbkompare.com/verify/{result['certificateId']}" in text
        assert "14:05:03" in text

    def test_eligibility_uses_credit_threshold(self, service, store, seeded_quiz):
        store.seed(store.tables.users, {"id": "veteran", "name": "Vet", "certificateCredits": 26})
        result = service.submit(QUIZ_ID, "veteran", PASSING_ANSWERS)
        assert result["eligibleForCredits"] is True

    def test_first_credit_initialises_counter(self, service, store, seeded_quiz):
        store.seed(store.tables.users, {"id": "newbie", "name": "New"})
        service.submit(QUIZ_ID, "newbie", PASSING_ANSWERS)
        assert store.get_item(store.tables.users, {"id": "newbie"})["certificateCredits"] == 1

    def test_resubmission_creates_new_records(self, service, store, seeded_quiz, seeded_user):
        first = service.submit(QUIZ_ID, USER_ID, PASSING_ANSWERS)
        second = service.submit(QUIZ_ID, USER_ID, PASSING_ANSWERS)
        assert first["submissionId"] != second["submissionId"]
        assert len(store.items(store.tables.submissions)) == 2
        assert store.get_item(store.tables.users, {"id": USER_ID})["certificateCredits"] == 5

    def test_failed_transaction_leaves_no_partial_writes(self, service, store, seeded_quiz, seeded_user, monkeypatch):
        monkeypatch.setattr(
            "dbkompare.services.submission_service.generate_certificate_id", lambda: "DUPLICATE001"
        )
        store.seed(store.tables.certificates, {"id": "DUPLICATE001", "userId": "other", "subjectId": "x",
                                               "issueDate": 0})

        with pytest.raises(ConflictError):
            service.submit(QUIZ_ID, USER_ID, PASSING_ANSWERS)

        assert store.items(store.tables.submissions) == []
        assert store.get_item(store.tables.users, {"id": USER_ID})["certificateCredits"] == 3
        assert store.get_item(store.tables.certificates, {"id": "DUPLICATE001"})["userId"] == "other"


class TestSubmissionDetails:

    def test_merges_quiz_details_and_eligibility(self, service, seeded_quiz, seeded_user):
        result = service.submit(QUIZ_ID, USER_ID, PASSING_ANSWERS)
        details = service.get_submission_details(result["submissionId"])

        assert details["quizDetails"]["name"] == "PostgreSQL Fundamentals"
        assert len(details["quizDetails"]["questions"]) == 4
        assert details["eligibleForCredits"] is False

    def test_unknown_submission(self, service):
        with pytest.raises(NotFoundError):
            service.get_submission_details("missing")
