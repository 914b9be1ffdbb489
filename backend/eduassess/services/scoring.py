"""Percentages, rounding and answer scoring shared by the grading services."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple

from ..schemas import AnswerRecord, QuestionRecord, SubmittedAnswer


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (Python's round() is banker's)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_percentage(score: float, total: float) -> Optional[int]:
    if not total or total <= 0:
        return None
    return round_half_up(score / total * 100)


def mean_rounded(values: Iterable[float]) -> Optional[int]:
    values = list(values)
    if not values:
        return None
    return round_half_up(sum(values) / len(values))


def normalize_answer(answer) -> str:
    return str(answer or "").strip().lower()


def score_answers(
    questions: List[QuestionRecord], answers: List[SubmittedAnswer]
) -> Tuple[List[AnswerRecord], int, int, int]:
    """Score submitted answers against a quiz's questions.

    Returns (scored answers, score, total points, percentage). Total points
    cover every question, so unanswered questions simply earn nothing.
    """
    by_id: Dict[str, QuestionRecord] = {q.id: q for q in questions}
    total_points = sum(q.points for q in questions)

    # One answer per question; a repeated question id keeps the last answer
    latest: Dict[str, SubmittedAnswer] = {}
    for submitted in answers:
        if submitted.question_id in by_id:
            latest.pop(submitted.question_id, None)
            latest[submitted.question_id] = submitted

    scored: List[AnswerRecord] = []
    score = 0
    for submitted in latest.values():
        question = by_id[submitted.question_id]
        is_correct = normalize_answer(submitted.answer) == normalize_answer(question.correct_answer)
        points = question.points if is_correct else 0
        score += points
        scored.append(AnswerRecord(
            question_id=submitted.question_id,
            answer=submitted.answer,
            is_correct=is_correct,
            points=points,
        ))

    percentage = to_percentage(score, total_points) or 0
    return scored, score, total_points, percentage
