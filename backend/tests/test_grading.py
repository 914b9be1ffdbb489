"""Tests for quiz taking, assignment submission, manual grading and AI grading."""

import json
import random
from unittest.mock import patch

import pytest

from eduassess.ai.providers import GenerationResult
from eduassess.errors import AiProviderError, ValidationFailed
from eduassess.models.enums import AiProvider, SubmissionStatus
from eduassess.schemas import (
    AssignmentSubmissionCreate, AssignmentSubmitRequest, GradeRequest, QuizCreate,
    RubricScore, SubmittedAnswer,
)
from eduassess.services import grading


def ai_reply(payload) -> GenerationResult:
    return GenerationResult(text=json.dumps(payload), provider=AiProvider.gemini, model="gemini-2.5-flash")


@pytest.fixture
def submission(storage, assignment, enrolled_student):
    return grading.submit_assignment(storage, enrolled_student.id, AssignmentSubmitRequest(
        assignment_id=assignment.id, content="Cells divide by mitosis.",
    ))


class TestTakeQuiz:
    def test_answers_are_hidden(self, storage, quiz, quiz_questions):
        taken = grading.take_quiz(storage, quiz.id, rng=random.Random(7))

        assert {q.id for q in taken.questions} == {q.id for q in quiz_questions}
        dumped = taken.model_dump(by_alias=True)
        assert all("correctAnswer" not in q for q in dumped["questions"])

    def test_fixed_order_without_randomizing(self, storage, quiz, quiz_questions):
        storage.update_quiz(quiz.id, {"randomize_questions": False, "randomize_options": False})

        taken = grading.take_quiz(storage, quiz.id)

        assert [q.id for q in taken.questions] == [q.id for q in quiz_questions]
        assert taken.questions[0].options == ["3", "4", "5"]

    def test_public_token_never_exposed(self, storage, quiz, quiz_questions):
        storage.generate_quiz_public_link(quiz.id, "attempt", ["name"])

        assert grading.take_quiz(storage, quiz.id).public_access_token is None

    def test_unknown_quiz(self, storage):
        assert grading.take_quiz(storage, "missing") is None


class TestSubmitQuiz:
    def test_scores_and_grades_in_one_update(self, storage, quiz, quiz_questions, enrolled_student):
        started = grading.start_quiz(storage, quiz.id, enrolled_student.id)
        answers = [
            SubmittedAnswer(question_id=quiz_questions[0].id, answer="4"),
            SubmittedAnswer(question_id=quiz_questions[1].id, answer="TRUE"),
        ]

        result = grading.submit_quiz(storage, quiz.id, started.id, answers)

        # The unanswered short answer still counts toward the total
        assert (result.score, result.total_points, result.percentage) == (3, 4, 75)
        stored = storage.get_quiz_submission(started.id)
        assert stored.status == SubmissionStatus.graded
        assert stored.submitted_at is not None
        assert stored.graded_at is not None
        assert [a.is_correct for a in stored.answers] == [True, True]

    def test_repeated_answers_cannot_exceed_total(self, storage, quiz, quiz_questions, enrolled_student):
        started = grading.start_quiz(storage, quiz.id, enrolled_student.id)
        answers = [SubmittedAnswer(question_id=quiz_questions[0].id, answer="4")] * 3

        result = grading.submit_quiz(storage, quiz.id, started.id, answers)

        assert (result.score, result.total_points, result.percentage) == (2, 4, 50)
        assert len(storage.get_quiz_submission(started.id).answers) == 1

    def test_submission_from_another_quiz_rejected(self, storage, course, quiz, quiz_questions, enrolled_student):
        other = storage.create_quiz(QuizCreate(course_id=course.id, title="Other"))
        started = grading.start_quiz(storage, other.id, enrolled_student.id)

        with pytest.raises(ValidationFailed):
            grading.submit_quiz(storage, quiz.id, started.id, [])

    def test_regrading_a_graded_attempt_is_allowed(self, storage, quiz, quiz_questions, enrolled_student):
        started = grading.start_quiz(storage, quiz.id, enrolled_student.id)
        grading.submit_quiz(storage, quiz.id, started.id, [])

        result = grading.submit_quiz(storage, quiz.id, started.id, [
            SubmittedAnswer(question_id=quiz_questions[2].id, answer="mitochondria"),
        ])

        assert result.score == 1

    def test_unknown_submission(self, storage, quiz):
        assert grading.submit_quiz(storage, quiz.id, "missing", []) is None
        assert grading.start_quiz(storage, "missing", "student") is None


class TestAssignmentSubmission:
    def test_submit(self, submission):
        assert submission.status == SubmissionStatus.submitted
        assert submission.submitted_at is not None

    def test_empty_submission_rejected(self, storage, assignment, enrolled_student):
        with pytest.raises(ValidationFailed):
            grading.submit_assignment(storage, enrolled_student.id, AssignmentSubmitRequest(assignment_id=assignment.id))

        assert storage.get_assignment_submissions(assignment_id=assignment.id) == []


class TestManualGrading:
    def test_score_defaults_to_rubric_total(self, storage, submission):
        graded = grading.grade_assignment_submission(storage, submission.id, GradeRequest(
            instructor_feedback="Solid work",
            rubric_scores=[RubricScore(criterion="Method", score=18), RubricScore(criterion="Analysis", score=25)],
        ))

        assert graded.score == 43
        assert graded.status == SubmissionStatus.graded
        assert graded.graded_at is not None
        assert graded.instructor_feedback == "Solid work"

    @pytest.mark.parametrize("grade", [
        GradeRequest(rubric_scores=[RubricScore(criterion="Style", score=5)]),
        GradeRequest(rubric_scores=[RubricScore(criterion="Method", score=21)]),
        GradeRequest(score=51),
        GradeRequest(score=-1),
        GradeRequest(instructor_feedback="No score given"),
    ])
    def test_invalid_grades_rejected(self, storage, submission, grade):
        with pytest.raises(ValidationFailed):
            grading.grade_assignment_submission(storage, submission.id, grade)

        assert storage.get_assignment_submission(submission.id).status == SubmissionStatus.submitted

    def test_unknown_submission(self, storage):
        assert grading.grade_assignment_submission(storage, "missing", GradeRequest(score=1)) is None


class TestAiGrading:
    @patch("eduassess.ai.features.generate_with_provider")
    def test_grade_is_clamped_and_stored(self, mock_generate, storage, submission, instructor):
        mock_generate.return_value = ai_reply({
            "score": 60,
            "feedback": "Clear method, thin analysis.",
            "rubricScores": [
                {"criterion": "Method", "score": 25, "feedback": "Clear"},
                {"criterion": "Style", "score": 3, "feedback": "Not on the rubric"},
            ],
        })

        updated, grade = grading.ai_grade_submission(storage, submission.id, instructor)

        assert grade.score == 50
        assert updated.score == 50
        assert updated.ai_feedback == "Clear method, thin analysis."
        assert [(rs.criterion, rs.score) for rs in updated.rubric_scores] == [("Method", 20)]
        assert updated.status == SubmissionStatus.graded

    @patch("eduassess.ai.features.generate_with_provider")
    def test_failed_call_leaves_submission_untouched(self, mock_generate, storage, submission, instructor):
        mock_generate.side_effect = AiProviderError("gemini API error 503", provider="gemini", status_code=503)

        with pytest.raises(AiProviderError):
            grading.ai_grade_submission(storage, submission.id, instructor)

        stored = storage.get_assignment_submission(submission.id)
        assert stored.status == SubmissionStatus.submitted
        assert stored.score is None
        assert stored.ai_feedback is None

    @patch("eduassess.ai.features.generate_with_provider")
    def test_unparseable_reply_leaves_submission_untouched(self, mock_generate, storage, submission, instructor):
        mock_generate.return_value = GenerationResult(text="I cannot grade this.", provider=AiProvider.gemini, model="m")

        with pytest.raises(AiProviderError):
            grading.ai_grade_submission(storage, submission.id, instructor)

        assert storage.get_assignment_submission(submission.id).score is None

    @patch("eduassess.ai.features.generate_with_provider")
    def test_grade_all_skips_graded_and_counts_failures(self, mock_generate, storage, assignment, enrolled_student, instructor):
        for _ in range(2):
            grading.submit_assignment(storage, enrolled_student.id, AssignmentSubmitRequest(
                assignment_id=assignment.id, content="Draft",
            ))
        storage.create_assignment_submission(AssignmentSubmissionCreate(
            assignment_id=assignment.id, student_id=enrolled_student.id, content="Done",
            score=40, status=SubmissionStatus.graded,
        ))
        mock_generate.side_effect = [
            ai_reply({"score": 35, "feedback": "Good"}),
            AiProviderError("rate limited"),
        ]

        result = grading.ai_grade_all(storage, assignment.id, instructor)

        assert result.graded_count == 1
        assert result.failed_count == 1
        assert len(result.failed) == 1
        assert mock_generate.call_count == 2

    @patch("eduassess.ai.features.generate_with_provider")
    def test_detect_ai_stores_probability(self, mock_generate, storage, submission, instructor):
        mock_generate.return_value = ai_reply({"aiProbability": 87.6, "reasoning": "Uniform sentence rhythm"})

        updated, detection = grading.detect_ai(storage, submission.id, instructor)

        assert detection.ai_probability == 88
        assert detection.reasoning == "Uniform sentence rhythm"
        assert updated.ai_content_score == 88
