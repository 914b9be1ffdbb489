"""Course gradebook and its CSV export."""
import logging
import re
from urllib.parse import quote
from typing import List, Optional

from ..schemas import (
    CamelModel, CourseRecord, QuizRecord, AssignmentRecord, UserPublic,
    QuizSubmissionRecord, AssignmentSubmissionRecord,
)
from ..storage import Storage
from .scoring import mean_rounded, to_percentage

logger = logging.getLogger(__name__)

MISSING_CELL = "—"


class QuizResult(CamelModel):
    quiz_id: str
    quiz_title: str
    score: Optional[int] = None
    percentage: Optional[int] = None
    status: str = "not_attempted"


class AssignmentResult(CamelModel):
    assignment_id: str
    assignment_title: str
    score: Optional[int] = None
    max_score: int
    status: str = "not_submitted"

    @property
    def percentage(self) -> Optional[int]:
        if self.score is None:
            return None
        return to_percentage(self.score, self.max_score)


class StudentRow(CamelModel):
    student: UserPublic
    quiz_results: List[QuizResult]
    assignment_results: List[AssignmentResult]
    overall_average: Optional[int] = None


class QuizSummary(CamelModel):
    quiz_id: str
    title: str
    best: Optional[int] = None
    worst: Optional[int] = None
    average: Optional[int] = None
    count: int = 0


class AssignmentSummary(CamelModel):
    assignment_id: str
    title: str
    best: Optional[int] = None
    worst: Optional[int] = None
    average: Optional[int] = None
    count: int = 0


class Gradebook(CamelModel):
    course: CourseRecord
    quizzes: List[QuizRecord]
    assignments: List[AssignmentRecord]
    students: List[StudentRow]
    quiz_summary: List[QuizSummary]
    assignment_summary: List[AssignmentSummary]


def _pick(submissions, score_field: str):
    """A student's submission for an assessment: the latest scored one, else the latest."""
    if not submissions:
        return None
    scored = [s for s in submissions if getattr(s, score_field) is not None]
    return (scored or submissions)[-1]


def _summarize(percentages: List[int]) -> dict:
    return {
        "best": max(percentages) if percentages else None,
        "worst": min(percentages) if percentages else None,
        "average": mean_rounded(percentages),
        "count": len(percentages),
    }


def get_gradebook(storage: Storage, course_id: str) -> Optional[Gradebook]:
    """Per-student results and per-assessment summaries for a course; None if the course is unknown."""
    course = storage.get_course(course_id)
    if course is None:
        return None

    quizzes = storage.get_quizzes(course_id=course_id)
    assignments = storage.get_assignments(course_id=course_id)
    quiz_subs = {q.id: storage.get_quiz_submissions(quiz_id=q.id) for q in quizzes}
    assignment_subs = {a.id: storage.get_assignment_submissions(assignment_id=a.id) for a in assignments}

    students = []
    for enrollment in storage.get_enrollments(course_id=course_id):
        student = storage.get_user(enrollment.student_id)
        if student is None:
            continue

        quiz_results = []
        for quiz in quizzes:
            sub: Optional[QuizSubmissionRecord] = _pick(
                [s for s in quiz_subs[quiz.id] if s.student_id == student.id], "percentage"
            )
            result = QuizResult(quiz_id=quiz.id, quiz_title=quiz.title)
            if sub is not None:
                result.score = sub.score
                result.percentage = sub.percentage
                result.status = sub.status.value
            quiz_results.append(result)

        assignment_results = []
        for assignment in assignments:
            sub: Optional[AssignmentSubmissionRecord] = _pick(
                [s for s in assignment_subs[assignment.id] if s.student_id == student.id], "score"
            )
            result = AssignmentResult(
                assignment_id=assignment.id,
                assignment_title=assignment.title,
                max_score=assignment.max_score,
            )
            if sub is not None:
                result.score = sub.score
                result.status = sub.status.value
            assignment_results.append(result)

        percentages = [r.percentage for r in quiz_results if r.percentage is not None]
        percentages += [r.percentage for r in assignment_results if r.percentage is not None]
        students.append(StudentRow(
            student=UserPublic.model_validate(student.model_dump()),
            quiz_results=quiz_results,
            assignment_results=assignment_results,
            overall_average=mean_rounded(percentages),
        ))

    quiz_summary = [
        QuizSummary(
            quiz_id=quiz.id,
            title=quiz.title,
            **_summarize([s.percentage for s in quiz_subs[quiz.id] if s.percentage is not None]),
        )
        for quiz in quizzes
    ]
    assignment_summary = [
        AssignmentSummary(
            assignment_id=assignment.id,
            title=assignment.title,
            **_summarize([
                to_percentage(s.score, assignment.max_score)
                for s in assignment_subs[assignment.id]
                if s.score is not None and assignment.max_score > 0
            ]),
        )
        for assignment in assignments
    ]

    return Gradebook(
        course=course,
        quizzes=quizzes,
        assignments=assignments,
        students=students,
        quiz_summary=quiz_summary,
        assignment_summary=assignment_summary,
    )


def _quoted(value: str) -> str:
    return '"' + str(value).replace('"', '""') + '"'


def _percent_cell(value: Optional[int]) -> str:
    return f"{value}%" if value is not None else MISSING_CELL


def export_gradebook_csv(gradebook: Gradebook) -> str:
    """Render the gradebook the way the export button does: quoted names, NN% or an em dash."""
    header = ["Student Name", "Email"]
    header += [_quoted(q.title) for q in gradebook.quizzes]
    header += [_quoted(a.title) for a in gradebook.assignments]
    header.append("Overall Average")

    lines = [",".join(header)]
    for row in gradebook.students:
        quiz_by_id = {r.quiz_id: r for r in row.quiz_results}
        assignment_by_id = {r.assignment_id: r for r in row.assignment_results}
        cells = [_quoted(row.student.name), _quoted(row.student.email)]
        for quiz in gradebook.quizzes:
            result = quiz_by_id.get(quiz.id)
            cells.append(_percent_cell(result.percentage if result else None))
        for assignment in gradebook.assignments:
            result = assignment_by_id.get(assignment.id)
            cells.append(_percent_cell(result.percentage if result else None))
        cells.append(_percent_cell(row.overall_average))
        lines.append(",".join(cells))

    return "\n".join(lines)


def csv_filename(course: CourseRecord) -> str:
    return "gradebook-" + "-".join(course.name.split()) + ".csv"


def content_disposition(filename: str) -> str:
    """Attachment header: an ASCII-only filename plus the UTF-8 name as filename* (RFC 5987)."""
    fallback = re.sub(r"[^A-Za-z0-9._-]", "_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"
