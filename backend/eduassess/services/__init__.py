"""Business logic on top of the repository: scoring, grading, aggregation, public links and chat."""
from .scoring import round_half_up, to_percentage, mean_rounded, score_answers
from .stats import get_dashboard_stats, get_course_analytics, get_student_performance
from .gradebook import get_gradebook, export_gradebook_csv, csv_filename, content_disposition

__all__ = [
    "round_half_up",
    "to_percentage",
    "mean_rounded",
    "score_answers",
    "get_dashboard_stats",
    "get_course_analytics",
    "get_student_performance",
    "get_gradebook",
    "export_gradebook_csv",
    "csv_filename",
    "content_disposition",
]
