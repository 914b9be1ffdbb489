"""Tests for scoring helpers, dashboard counters, analytics and student performance."""

from datetime import timedelta

import pytest

from eduassess.models.enums import SubmissionStatus, ViolationType
from eduassess.schemas import (
    AssignmentSubmissionCreate, CourseCreate, EnrollmentCreate,
    ProctoringViolationCreate, QuestionRecord, QuizSubmissionCreate,
    SubmittedAnswer, utcnow,
)
from eduassess.services import get_course_analytics, get_dashboard_stats, get_student_performance
from eduassess.services.scoring import mean_rounded, round_half_up, score_answers, to_percentage
from conftest import make_user


class TestScoring:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(66.666) == 67
        assert round_half_up(0.4) == 0

    def test_to_percentage(self):
        assert to_percentage(45, 50) == 90
        assert to_percentage(1, 3) == 33
        assert to_percentage(5, 0) is None

    def test_mean_rounded(self):
        assert mean_rounded([80, 60]) == 70
        assert mean_rounded([70, 75]) == 73
        assert mean_rounded([]) is None

    def test_score_answers_counts_unanswered_questions(self):
        questions = [
            QuestionRecord(type="mcq", text="2 + 2?", options=["3", "4"], correct_answer="4", points=2),
            QuestionRecord(type="true_false", text="Sky is green.", correct_answer="false", points=1),
            QuestionRecord(type="short_answer", text="Capital of France?", correct_answer="Paris", points=1),
        ]
        answers = [
            SubmittedAnswer(question_id=questions[0].id, answer="4"),
            SubmittedAnswer(question_id=questions[2].id, answer="  paris "),
            SubmittedAnswer(question_id="not-in-quiz", answer="x"),
        ]

        scored, score, total, percentage = score_answers(questions, answers)

        assert (score, total, percentage) == (3, 4, 75)
        assert [a.is_correct for a in scored] == [True, True]
        assert [a.points for a in scored] == [2, 1]

    def test_repeated_answers_score_once(self):
        questions = [
            QuestionRecord(type="mcq", text="2 + 2?", options=["3", "4"], correct_answer="4", points=2),
            QuestionRecord(type="true_false", text="Sky is green.", correct_answer="false", points=2),
        ]
        answers = [SubmittedAnswer(question_id=questions[0].id, answer="4")] * 5

        scored, score, total, percentage = score_answers(questions, answers)

        assert (score, total, percentage) == (2, 4, 50)
        assert len(scored) == 1

    def test_last_answer_to_a_question_wins(self):
        question = QuestionRecord(type="mcq", text="2 + 2?", options=["3", "4"], correct_answer="4", points=2)
        answers = [
            SubmittedAnswer(question_id=question.id, answer="4"),
            SubmittedAnswer(question_id=question.id, answer="3"),
        ]

        scored, score, total, percentage = score_answers([question], answers)

        assert (score, total, percentage) == (0, 2, 0)
        assert [a.answer for a in scored] == ["3"]

    def test_score_answers_empty_quiz(self):
        scored, score, total, percentage = score_answers([], [])

        assert (scored, score, total, percentage) == ([], 0, 0, 0)


class TestDashboardStats:
    def test_instructor_without_courses(self, storage, instructor):
        stats = get_dashboard_stats(storage, instructor.id)

        assert stats.model_dump() == {
            "total_courses": 0,
            "total_quizzes": 0,
            "total_assignments": 0,
            "total_students": 0,
            "pending_grading": 0,
            "recent_submissions": 0,
        }

    def test_total_students_sums_enrollments_per_course(self, storage, instructor, course, student):
        second = storage.create_course(CourseCreate(
            name="Genetics", code="BIO102", semester="Fall 2026", instructor_id=instructor.id,
        ))
        storage.create_enrollment(EnrollmentCreate(course_id=course.id, student_id=student.id))
        storage.create_enrollment(EnrollmentCreate(course_id=second.id, student_id=student.id))

        stats = get_dashboard_stats(storage, instructor.id)

        # One student in two courses counts twice
        assert stats.total_courses == 2
        assert stats.total_students == 2

    def test_pending_and_recent_submissions(self, storage, instructor, quiz, assignment, student):
        now = utcnow()
        storage.create_quiz_submission(QuizSubmissionCreate(
            quiz_id=quiz.id, student_id=student.id,
            status=SubmissionStatus.submitted, submitted_at=now - timedelta(days=1),
        ))
        storage.create_quiz_submission(QuizSubmissionCreate(
            quiz_id=quiz.id, student_id=student.id,
            status=SubmissionStatus.graded, submitted_at=now - timedelta(days=8),
        ))
        storage.create_assignment_submission(AssignmentSubmissionCreate(
            assignment_id=assignment.id, student_id=student.id, content="Report",
            status=SubmissionStatus.submitted, submitted_at=now - timedelta(days=6, hours=23),
        ))
        storage.create_quiz_submission(QuizSubmissionCreate(quiz_id=quiz.id, student_id=student.id))

        stats = get_dashboard_stats(storage, instructor.id, now=now)

        assert stats.total_quizzes == 1
        assert stats.total_assignments == 1
        assert stats.pending_grading == 2
        assert stats.recent_submissions == 2

    def test_other_instructors_work_is_excluded(self, storage, course, quiz, student):
        other = make_user(storage, "prof_other", role="instructor")
        storage.create_quiz_submission(QuizSubmissionCreate(
            quiz_id=quiz.id, student_id=student.id, status=SubmissionStatus.submitted, submitted_at=utcnow(),
        ))

        stats = get_dashboard_stats(storage, other.id)

        assert stats.total_quizzes == 0
        assert stats.pending_grading == 0


class TestCourseAnalytics:
    @pytest.fixture
    def graded_quiz(self, storage, quiz, enrolled_student):
        second = make_user(storage, "student_kim")
        storage.create_enrollment(EnrollmentCreate(course_id=quiz.course_id, student_id=second.id))
        submitted_at = utcnow()
        for student_id, percentage in [(enrolled_student.id, 80), (second.id, 40)]:
            storage.create_quiz_submission(QuizSubmissionCreate(
                quiz_id=quiz.id, student_id=student_id, score=percentage, total_points=100,
                percentage=percentage, status=SubmissionStatus.graded, submitted_at=submitted_at,
            ))
        # In-progress attempts never count
        storage.create_quiz_submission(QuizSubmissionCreate(quiz_id=quiz.id, student_id=second.id))
        return quiz

    def test_overview(self, storage, course, graded_quiz):
        analytics = get_course_analytics(storage, course_id=course.id)

        assert analytics.overview.total_students == 2
        assert analytics.overview.total_submissions == 2
        assert analytics.overview.average_score == 60
        assert analytics.overview.pass_rate == 50

    def test_distribution_and_performers(self, storage, course, graded_quiz):
        analytics = get_course_analytics(storage, course_id=course.id)

        counts = {bucket.range: bucket.count for bucket in analytics.score_distribution}
        assert counts == {"0-20": 0, "21-40": 1, "41-60": 0, "61-80": 1, "81-100": 0}
        assert [p.score for p in analytics.top_performers] == [80, 40]
        assert [p.score for p in analytics.low_performers] == [40, 80]
        assert analytics.quiz_stats[0].pass_rate == 50
        assert len(analytics.performance_trend) == 1

    def test_violations_counted_by_type(self, storage, course, graded_quiz):
        submission = storage.get_quiz_submissions(quiz_id=graded_quiz.id)[0]
        for _ in range(2):
            storage.create_proctoring_violation(ProctoringViolationCreate(
                submission_id=submission.id, type=ViolationType.tab_switch,
            ))

        analytics = get_course_analytics(storage, course_id=course.id)

        assert [(v.type, v.count) for v in analytics.violation_stats] == [("tab_switch", 2)]

    def test_unknown_course_is_empty(self, storage):
        analytics = get_course_analytics(storage, course_id="missing")

        assert analytics.overview.total_submissions == 0
        assert analytics.overview.pass_rate == 0
        assert analytics.quiz_stats == []


class TestStudentPerformance:
    def test_unknown_student(self, storage):
        assert get_student_performance(storage, "missing") is None

    def test_performance_summary(self, storage, course, quiz, assignment, enrolled_student):
        storage.create_quiz_submission(QuizSubmissionCreate(
            quiz_id=quiz.id, student_id=enrolled_student.id, score=3, total_points=4,
            percentage=75, status=SubmissionStatus.graded, submitted_at=utcnow(),
        ))
        storage.create_assignment_submission(AssignmentSubmissionCreate(
            assignment_id=assignment.id, student_id=enrolled_student.id, content="Report",
            score=45, status=SubmissionStatus.graded, submitted_at=utcnow(),
        ))

        performance = get_student_performance(storage, enrolled_student.id)

        assert [c.id for c in performance.enrolled_courses] == [course.id]
        assert performance.quiz_submissions[0].quiz_title == "Cells Quiz"
        assert performance.assignment_submissions[0].course_name == "Intro to Biology"
        assert performance.stats.total_quizzes_taken == 1
        assert performance.stats.average_quiz_score == 75
        assert performance.stats.average_assignment_score == 90
        assert "password" not in performance.student.model_dump()
