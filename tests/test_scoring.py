# tests/test_scoring.py
import pytest

from dbkompare.models.quiz import Answer, Question, Quiz
from dbkompare.services.scoring import is_answer_correct, score_submission
from tests.conftest import make_question


def quiz_with(questions, passing=50, desired=None):
    return Quiz.model_validate({
        "id": "quiz",
        "name": "Quiz",
        "questionIds": [q["id"] for q in questions],
        "passingPerc": passing,
        "desiredQuestions": desired,
    }).model_copy(update={"questions": [Question.model_validate(q) for q in questions]})


def answer(question_id, *selected):
    return Answer(question_id=question_id, selected_option_ids=list(selected))


class TestIsAnswerCorrect:

    def test_single_answer_requires_exactly_the_correct_option(self):
        question = Question.model_validate(make_question("q", ["a"], ["b"]))
        assert is_answer_correct(question, ["a"])
        assert not is_answer_correct(question, ["b"])
        assert not is_answer_correct(question, ["a", "b"])
        assert not is_answer_correct(question, [])

    def test_multi_answer_requires_set_equality(self):
        question = Question.model_validate(make_question("q", ["a", "b"], ["c"]))
        assert question.is_multiple_answer
        assert is_answer_correct(question, ["b", "a"])
        assert not is_answer_correct(question, ["a"])
        assert not is_answer_correct(question, ["a", "b", "c"])

    def test_multiple_answer_is_derived_from_options_not_stored_flag(self):
        data = make_question("q", ["a"], ["b"])
        data["isMultipleAnswer"] = True
        question = Question.model_validate(data)
        assert not question.is_multiple_answer
        assert is_answer_correct(question, ["a"])


class TestScoreSubmission:

    def test_counts_correct_answers_and_points(self):
        quiz = quiz_with([
            make_question("q1", ["a"]),
            make_question("q2", ["a"], points=3),
            make_question("q3", ["a"]),
        ])
        result = score_submission(quiz, [answer("q1", "a"), answer("q2", "a"), answer("q3", "x")])

        assert result.correct_count == 2
        assert result.total_score == 4
        assert result.total_questions == 3
        assert result.percentage_score == pytest.approx(200 / 3)

    def test_unanswered_questions_are_skipped(self):
        quiz = quiz_with([make_question("q1", ["a"]), make_question("q2", ["a"])])
        result = score_submission(quiz, [answer("q1", "a"), answer("unknown", "a")])
        assert result.correct_count == 1
        assert result.percentage_score == 50

    def test_desired_questions_overrides_denominator(self):
        quiz = quiz_with([make_question(f"q{i}", ["a"]) for i in range(5)], passing=40, desired=10)
        result = score_submission(quiz, [answer(f"q{i}", "a") for i in range(5)])
        assert result.percentage_score == 50
        assert result.passed

    def test_pass_threshold_is_inclusive(self):
        quiz = quiz_with([make_question("q1", ["a"]), make_question("q2", ["a"])], passing=50)
        assert score_submission(quiz, [answer("q1", "a")]).passed
        assert not score_submission(quiz, [answer("q1", "x")]).passed

    def test_first_answer_for_a_question_wins(self):
        quiz = quiz_with([make_question("q1", ["a"])])
        result = score_submission(quiz, [answer("q1", "x"), answer("q1", "a")])
        assert result.correct_count == 0

    def test_quiz_without_questions_scores_zero(self):
        result = score_submission(quiz_with([]), [answer("q1", "a")])
        assert result.percentage_score == 0
        assert result.total_questions == 0

    def test_non_numeric_desired_questions_is_ignored(self):
        quiz = Quiz.model_validate({"id": "q", "desiredQuestions": "", "passingPerc": "60"})
        assert quiz.desired_questions is None
        assert quiz.passing_perc == 60

    def test_missing_pass_mark_fails_even_a_perfect_score(self):
        quiz = quiz_with([make_question("q1", ["a"])], passing=None)
        assert quiz.passing_perc is None

        result = score_submission(quiz, [answer("q1", "a")])

        assert result.percentage_score == 100
        assert result.passed is False

    def test_zero_pass_mark_passes_everyone(self):
        quiz = quiz_with([make_question("q1", ["a"])], passing=0)
        assert score_submission(quiz, [answer("q1", "b")]).passed is True
