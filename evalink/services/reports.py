from ..extensions import db
from ..models import (
    Evaluation,
    EvaluationAnswer,
    EvaluationCategory,
    EvaluationQuestion,
    Subject,
    User,
)
from .aggregation import aggregate_by_faculty, aggregate_subjects


def _rating_rows_query():
    return (
        db.session.query(
            User.id.label("faculty_id"),
            User.name.label("faculty_name"),
            Subject.id.label("subject_id"),
            Subject.name.label("subject_name"),
            Subject.code.label("subject_code"),
            EvaluationCategory.name.label("category_name"),
            EvaluationQuestion.id.label("question_id"),
            EvaluationQuestion.text.label("question_text"),
            EvaluationAnswer.rating.label("rating"),
            Evaluation.id.label("evaluation_id"),
            Evaluation.comments.label("comments"),
        )
        .select_from(Evaluation)
        .join(User, Evaluation.faculty_id == User.id)
        .join(EvaluationAnswer, EvaluationAnswer.evaluation_id == Evaluation.id)
        .join(EvaluationQuestion, EvaluationAnswer.question_id == EvaluationQuestion.id)
        .join(EvaluationCategory, EvaluationQuestion.category_id == EvaluationCategory.id)
        .join(Subject, Evaluation.subject_id == Subject.id)
    )


def _report_ordering():
    return (
        Subject.name,
        Subject.id,
        EvaluationCategory.display_order,
        EvaluationCategory.id,
        EvaluationQuestion.display_order,
        EvaluationQuestion.id,
        Evaluation.id,
    )


def fetch_faculty_rows(faculty_id):
    query = (
        _rating_rows_query()
        .filter(Evaluation.faculty_id == faculty_id)
        .order_by(*_report_ordering())
    )
    return [row._asdict() for row in query.all()]


def fetch_all_faculty_rows():
    query = (
        _rating_rows_query()
        .filter(User.role == "faculty")
        .order_by(User.name, User.id, *_report_ordering())
    )
    return [row._asdict() for row in query.all()]


def faculty_results(faculty_id):
    """Return ``(faculty_name, subject_summaries)`` for one faculty member."""
    rows = fetch_faculty_rows(faculty_id)
    faculty_name = rows[0]["faculty_name"] if rows else None
    return faculty_name, aggregate_subjects(rows)


def all_faculty_results():
    return aggregate_by_faculty(fetch_all_faculty_rows())
