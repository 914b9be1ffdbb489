"""Dashboard counters, course analytics and per-student performance."""
import logging
from collections import Counter, OrderedDict
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import Field

from ..models.enums import SubmissionStatus
from ..schemas import (
    CamelModel, utcnow,
    CourseRecord, UserPublic, QuizSubmissionRecord, AssignmentSubmissionRecord,
    ProctoringViolationRecord,
)
from ..storage import Storage
from .scoring import mean_rounded, round_half_up, to_percentage

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=7)
DEFAULT_PASSING_SCORE = 60
SCORE_BUCKETS = [("0-20", 20), ("21-40", 40), ("41-60", 60), ("61-80", 80), ("81-100", None)]
PERFORMER_LIMIT = 5


class DashboardStats(CamelModel):
    total_courses: int = 0
    total_quizzes: int = 0
    total_assignments: int = 0
    total_students: int = 0
    pending_grading: int = 0
    recent_submissions: int = 0


def get_dashboard_stats(storage: Storage, instructor_id: str, now: Optional[datetime] = None) -> DashboardStats:
    """Counters for an instructor's dashboard.

    total_students is the sum of per-course enrollment counts, so a student
    enrolled in two of the instructor's courses counts twice.
    """
    now = now or utcnow()
    courses = storage.get_courses(instructor_id=instructor_id)
    course_ids = {c.id for c in courses}

    quizzes = [q for q in storage.get_quizzes() if q.course_id in course_ids]
    assignments = [a for a in storage.get_assignments() if a.course_id in course_ids]
    quiz_ids = {q.id for q in quizzes}
    assignment_ids = {a.id for a in assignments}

    total_students = sum(len(storage.get_enrollments(course_id=course.id)) for course in courses)

    submissions = [s for s in storage.get_quiz_submissions() if s.quiz_id in quiz_ids]
    submissions += [s for s in storage.get_assignment_submissions() if s.assignment_id in assignment_ids]

    cutoff = now - RECENT_WINDOW
    return DashboardStats(
        total_courses=len(courses),
        total_quizzes=len(quizzes),
        total_assignments=len(assignments),
        total_students=total_students,
        pending_grading=sum(1 for s in submissions if s.status == SubmissionStatus.submitted),
        recent_submissions=sum(1 for s in submissions if s.submitted_at and s.submitted_at > cutoff),
    )


class AnalyticsOverview(CamelModel):
    total_students: int
    average_score: int
    pass_rate: int
    total_submissions: int


class ScoreBucket(CamelModel):
    range: str
    count: int = 0


class TrendPoint(CamelModel):
    date: str
    average: int


class Performer(CamelModel):
    student_id: str
    name: str
    score: int
    quiz_count: int


class QuizStat(CamelModel):
    quiz_id: str
    name: str
    avg_score: int
    submissions: int
    pass_rate: int


class ViolationStat(CamelModel):
    type: str
    count: int


class CourseAnalytics(CamelModel):
    overview: AnalyticsOverview
    score_distribution: List[ScoreBucket]
    performance_trend: List[TrendPoint]
    top_performers: List[Performer]
    low_performers: List[Performer]
    quiz_stats: List[QuizStat]
    violation_stats: List[ViolationStat]


def _week_start(moment: datetime) -> str:
    """Sunday that starts the week containing moment."""
    start = moment - timedelta(days=(moment.weekday() + 1) % 7)
    return start.strftime("%Y-%m-%d")


def _pass_rate(passed: int, total: int) -> int:
    return round_half_up(passed / total * 100) if total else 0


def get_course_analytics(
    storage: Storage, course_id: Optional[str] = None, instructor_id: Optional[str] = None
) -> CourseAnalytics:
    """Analytics for one course, every course of an instructor, or everything."""
    if course_id:
        course = storage.get_course(course_id)
        courses = [course] if course else []
    else:
        courses = storage.get_courses(instructor_id=instructor_id)
    course_ids = {c.id for c in courses}

    quizzes = [q for q in storage.get_quizzes() if q.course_id in course_ids]
    quizzes_by_id = {q.id: q for q in quizzes}
    submissions = [
        s for s in storage.get_quiz_submissions()
        if s.quiz_id in quizzes_by_id
        and s.status in (SubmissionStatus.submitted, SubmissionStatus.graded)
        and s.percentage is not None
    ]

    def passed(sub: QuizSubmissionRecord) -> bool:
        quiz = quizzes_by_id.get(sub.quiz_id)
        passing = quiz.passing_score if quiz and quiz.passing_score is not None else DEFAULT_PASSING_SCORE
        return sub.percentage >= passing

    student_ids = set()
    for course in courses:
        student_ids.update(e.student_id for e in storage.get_enrollments(course_id=course.id))

    overview = AnalyticsOverview(
        total_students=len(student_ids),
        average_score=mean_rounded(s.percentage for s in submissions) or 0,
        pass_rate=_pass_rate(sum(1 for s in submissions if passed(s)), len(submissions)),
        total_submissions=len(submissions),
    )

    buckets = [ScoreBucket(range=label) for label, _ in SCORE_BUCKETS]
    for sub in submissions:
        for bucket, (_, upper) in zip(buckets, SCORE_BUCKETS):
            if upper is None or sub.percentage <= upper:
                bucket.count += 1
                break

    weeks = OrderedDict()
    for sub in sorted((s for s in submissions if s.submitted_at), key=lambda s: s.submitted_at):
        weeks.setdefault(_week_start(sub.submitted_at), []).append(sub.percentage)
    trend = [TrendPoint(date=week, average=mean_rounded(scores)) for week, scores in weeks.items()]

    per_student = OrderedDict()
    for sub in submissions:
        per_student.setdefault(sub.student_id, []).append(sub.percentage)
    performers = []
    for student_id, scores in per_student.items():
        user = storage.get_user(student_id)
        performers.append(Performer(
            student_id=student_id,
            name=user.name if user else "Unknown",
            score=mean_rounded(scores),
            quiz_count=len(scores),
        ))
    performers.sort(key=lambda p: p.score, reverse=True)

    quiz_stats = []
    for quiz in quizzes:
        subs = [s for s in submissions if s.quiz_id == quiz.id]
        quiz_stats.append(QuizStat(
            quiz_id=quiz.id,
            name=quiz.title,
            avg_score=mean_rounded(s.percentage for s in subs) or 0,
            submissions=len(subs),
            pass_rate=_pass_rate(sum(1 for s in subs if passed(s)), len(subs)),
        ))

    submission_quiz = {s.id: s.quiz_id for s in storage.get_quiz_submissions()}
    violation_counts = Counter(
        v.type.value for v in storage.get_proctoring_violations()
        if submission_quiz.get(v.submission_id) in quizzes_by_id
    )

    return CourseAnalytics(
        overview=overview,
        score_distribution=buckets,
        performance_trend=trend,
        top_performers=performers[:PERFORMER_LIMIT],
        low_performers=list(reversed(performers))[:PERFORMER_LIMIT],
        quiz_stats=quiz_stats,
        violation_stats=[ViolationStat(type=t, count=c) for t, c in violation_counts.items()],
    )


class QuizSubmissionDetail(QuizSubmissionRecord):
    quiz_title: str
    course_id: str
    course_name: str


class AssignmentSubmissionDetail(AssignmentSubmissionRecord):
    assignment_title: str
    course_id: str
    course_name: str


class StudentStats(CamelModel):
    total_quizzes_taken: int = 0
    average_quiz_score: int = 0
    best_quiz_score: int = 0
    worst_quiz_score: int = 0
    total_assignments_submitted: int = 0
    average_assignment_score: int = 0
    total_violations: int = 0


class StudentPerformance(CamelModel):
    student: UserPublic
    enrolled_courses: List[CourseRecord]
    quiz_submissions: List[QuizSubmissionDetail] = Field(default_factory=list)
    assignment_submissions: List[AssignmentSubmissionDetail] = Field(default_factory=list)
    proctoring_violations: List[ProctoringViolationRecord] = Field(default_factory=list)
    stats: StudentStats


def _newest_first(items):
    oldest = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(items, key=lambda s: s.submitted_at or oldest, reverse=True)


def get_student_performance(storage: Storage, student_id: str) -> Optional[StudentPerformance]:
    """Everything the student profile page shows. None for an unknown student."""
    student = storage.get_user(student_id)
    if student is None:
        return None

    enrolled = []
    for enrollment in storage.get_enrollments(student_id=student_id):
        course = storage.get_course(enrollment.course_id)
        if course:
            enrolled.append(course)

    def course_of(course_id):
        course = storage.get_course(course_id) if course_id else None
        return (course.id, course.name) if course else ("", "Unknown Course")

    quiz_subs = [
        s for s in storage.get_quiz_submissions(student_id=student_id)
        if s.status != SubmissionStatus.in_progress
    ]
    quiz_details = []
    for sub in quiz_subs:
        quiz = storage.get_quiz(sub.quiz_id)
        course_id, course_name = course_of(quiz.course_id if quiz else None)
        quiz_details.append(QuizSubmissionDetail(
            **sub.model_dump(),
            quiz_title=quiz.title if quiz else "Unknown Quiz",
            course_id=course_id,
            course_name=course_name,
        ))

    assignment_subs = storage.get_assignment_submissions(student_id=student_id)
    assignment_details = []
    assignment_percentages = []
    for sub in assignment_subs:
        assignment = storage.get_assignment(sub.assignment_id)
        course_id, course_name = course_of(assignment.course_id if assignment else None)
        assignment_details.append(AssignmentSubmissionDetail(
            **sub.model_dump(),
            assignment_title=assignment.title if assignment else "Unknown Assignment",
            course_id=course_id,
            course_name=course_name,
        ))
        if sub.score is not None:
            max_score = assignment.max_score if assignment else 100
            assignment_percentages.append(to_percentage(sub.score, max_score) or 0)

    submission_ids = {s.id for s in quiz_subs}
    violations = [v for v in storage.get_proctoring_violations() if v.submission_id in submission_ids]

    quiz_percentages = [s.percentage for s in quiz_subs if s.percentage is not None]
    stats = StudentStats(
        total_quizzes_taken=len(quiz_subs),
        average_quiz_score=mean_rounded(quiz_percentages) or 0,
        best_quiz_score=max(quiz_percentages, default=0),
        worst_quiz_score=min(quiz_percentages, default=0),
        total_assignments_submitted=len(assignment_subs),
        average_assignment_score=mean_rounded(assignment_percentages) or 0,
        total_violations=len(violations),
    )

    return StudentPerformance(
        student=UserPublic.model_validate(student.model_dump()),
        enrolled_courses=enrolled,
        quiz_submissions=_newest_first(quiz_details),
        assignment_submissions=_newest_first(assignment_details),
        proctoring_violations=violations,
        stats=stats,
    )
