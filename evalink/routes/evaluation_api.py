from datetime import date, timedelta

from flask import Blueprint, g, jsonify, request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..auth import auth_required, can_access_user
from ..extensions import db
from ..logger import get_logger
from ..models import (
    Evaluation,
    EvaluationAnswer,
    EvaluationCategory,
    EvaluationQuestion,
    StudentSubject,
    Subject,
)
from ..services.activity import log_activity
from ..services.aggregation import MAX_RATING, MIN_RATING
from ..services.cascades import delete_category_questions, delete_question_answers
from ..services.db_utils import parse_datetime, parse_int
from ..services.schedule import get_schedule, is_evaluation_open, save_schedule, schedule_state

bp = Blueprint("evaluation_api", __name__)
logger = get_logger("evaluations")


@bp.route("/api/evaluation-questions", methods=["GET"])
@auth_required()
def get_evaluation_questions():
    rows = (
        db.session.query(EvaluationCategory, EvaluationQuestion)
        .outerjoin(EvaluationQuestion, EvaluationQuestion.category_id == EvaluationCategory.id)
        .order_by(
            EvaluationCategory.display_order,
            EvaluationCategory.id,
            EvaluationQuestion.display_order,
            EvaluationQuestion.id,
        )
        .all()
    )
    categories = {}
    for category, question in rows:
        entry = categories.setdefault(
            category.id,
            {
                "id": category.id,
                "name": category.name,
                "display_order": category.display_order,
                "questions": [],
            },
        )
        if question is not None:
            entry["questions"].append(
                {"id": question.id, "text": question.text, "display_order": question.display_order}
            )
    return jsonify(list(categories.values()))


@bp.route("/api/evaluation-categories", methods=["POST"])
@auth_required(role="admin")
def create_evaluation_category():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"error": "Category name is required."}), 400

    category = EvaluationCategory(name=name, display_order=parse_int(data.get("display_order"), 0))
    try:
        db.session.add(category)
        db.session.flush()
        log_activity("create_eval_category", f"Created evaluation category: {name}")
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "This category name already exists."}), 409
    return jsonify({"message": "Evaluation category added successfully.", "id": category.id}), 201


@bp.route("/api/evaluation-categories/<int:category_id>", methods=["PUT"])
@auth_required(role="admin")
def update_evaluation_category(category_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"error": "Category name is required."}), 400

    category = db.session.get(EvaluationCategory, category_id)
    if not category:
        return jsonify({"error": "Category not found."}), 404
    category.name = name
    category.display_order = parse_int(data.get("display_order"), 0)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "This category name already exists."}), 409
    return jsonify({"message": "Evaluation category updated successfully."}), 200


@bp.route("/api/evaluation-categories/<int:category_id>", methods=["DELETE"])
@auth_required(role="admin")
def delete_evaluation_category(category_id):
    category = db.session.get(EvaluationCategory, category_id)
    if not category:
        return jsonify({"error": "Category not found."}), 404
    try:
        delete_category_questions(category_id)
        db.session.delete(category)
        log_activity("delete_eval_category", f"Deleted evaluation category: {category.name}")
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        logger.error("Error deleting category %s: %s", category_id, exc)
        return jsonify({"error": "Failed to delete category."}), 500
    return jsonify({"message": "Category and all its questions deleted successfully."}), 200


@bp.route("/api/evaluation-questions", methods=["POST"])
@auth_required(role="admin")
def create_evaluation_question():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    category_id = parse_int(data.get("category_id"))
    text = (data.get("text") or "").strip()
    if category_id is None or not text:
        return jsonify({"error": "Category ID and question text are required."}), 400
    if not db.session.get(EvaluationCategory, category_id):
        return jsonify({"error": "Category not found."}), 404

    question = EvaluationQuestion(
        category_id=category_id, text=text, display_order=parse_int(data.get("display_order"), 0)
    )
    db.session.add(question)
    db.session.flush()
    log_activity("create_eval_question", "Added new evaluation question.")
    db.session.commit()
    return jsonify({"message": "Evaluation question added successfully.", "id": question.id}), 201


@bp.route("/api/evaluation-questions/<int:question_id>", methods=["PUT"])
@auth_required(role="admin")
def update_evaluation_question(question_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    text = (data.get("text") or "").strip()
    category_id = parse_int(data.get("category_id"))
    if not text or category_id is None:
        return jsonify({"error": "Question text and category are required."}), 400

    question = db.session.get(EvaluationQuestion, question_id)
    if not question:
        return jsonify({"error": "Question not found."}), 404
    if not db.session.get(EvaluationCategory, category_id):
        return jsonify({"error": "Category not found."}), 404
    question.text = text
    question.category_id = category_id
    if data.get("display_order") is not None:
        question.display_order = parse_int(data.get("display_order"), 0)
    db.session.commit()
    return jsonify({"message": "Evaluation question updated successfully."}), 200


@bp.route("/api/evaluation-questions/<int:question_id>", methods=["DELETE"])
@auth_required(role="admin")
def delete_evaluation_question(question_id):
    question = db.session.get(EvaluationQuestion, question_id)
    if not question:
        return jsonify({"error": "Question not found."}), 404
    try:
        delete_question_answers([question_id])
        db.session.delete(question)
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        logger.error("Error deleting question %s: %s", question_id, exc)
        return jsonify({"error": "Failed to delete evaluation question."}), 500
    return jsonify({"message": "Evaluation question deleted successfully."}), 200


@bp.route("/api/evaluation-schedule", methods=["GET"])
@auth_required()
def get_evaluation_schedule():
    schedule = get_schedule()
    return jsonify(
        {
            "start_date": schedule.start_date.isoformat() if schedule else None,
            "end_date": schedule.end_date.isoformat() if schedule else None,
            "state": schedule_state(schedule),
        }
    )


@bp.route("/api/evaluation-schedule", methods=["POST"])
@auth_required(role="admin")
def set_evaluation_schedule():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    start_date = parse_datetime(data.get("start_date"))
    end_date = parse_datetime(data.get("end_date"))
    if not start_date or not end_date:
        return jsonify({"error": "Start date and end date are required."}), 400
    if start_date >= end_date:
        return jsonify({"error": "End date must be after the start date."}), 400

    save_schedule(start_date, end_date)
    log_activity("update_schedule", f"Set evaluation window {start_date} to {end_date}")
    db.session.commit()
    return jsonify({"message": "Evaluation schedule saved successfully."}), 200


def _parse_rating(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _parse_answers(raw_answers):
    """Return ``{question_id: rating}`` or raise ``ValueError`` with a user message."""
    if not isinstance(raw_answers, dict) or not raw_answers:
        raise ValueError("No answers provided.")
    answers = {}
    for raw_question_id, raw_rating in raw_answers.items():
        question_id = parse_int(raw_question_id)
        rating = _parse_rating(raw_rating)
        if question_id is None:
            raise ValueError(f"Invalid question id: {raw_question_id}.")
        if rating is None or not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"Ratings must be between {MIN_RATING} and {MAX_RATING}.")
        answers[question_id] = rating

    known = {
        row.id
        for row in db.session.query(EvaluationQuestion.id)
        .filter(EvaluationQuestion.id.in_(list(answers)))
        .all()
    }
    unknown = sorted(set(answers) - known)
    if unknown:
        raise ValueError(f"Unknown question ids: {unknown}.")
    return answers


@bp.route("/api/evaluations", methods=["POST"])
@auth_required(role="student")
def submit_evaluation():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400

    faculty_id = str(data.get("faculty_id") or "").strip()
    subject_id = parse_int(data.get("subject_id"))
    if not faculty_id or subject_id is None or not data.get("answers"):
        return jsonify({"error": "Missing required evaluation data."}), 400

    if not is_evaluation_open():
        return jsonify({"error": "The evaluation period is not open."}), 403

    enrollment = StudentSubject.query.filter_by(
        student_id=g.user.id, subject_id=subject_id, faculty_id=faculty_id
    ).first()
    if not enrollment:
        return jsonify({"error": "You are not enrolled in this subject with this faculty."}), 403

    if Evaluation.query.filter_by(student_id=g.user.id, subject_id=subject_id).first():
        return jsonify({"error": "You have already submitted an evaluation for this subject."}), 409

    try:
        answers = _parse_answers(data.get("answers"))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    comments = data.get("comments")
    try:
        evaluation = Evaluation(
            student_id=g.user.id,
            faculty_id=faculty_id,
            subject_id=subject_id,
            section_id=parse_int(data.get("section_id")) or enrollment.section_id,
            comments=comments.strip() if isinstance(comments, str) else None,
        )
        db.session.add(evaluation)
        db.session.flush()
        db.session.add_all(
            [
                EvaluationAnswer(evaluation_id=evaluation.id, question_id=question_id, rating=rating)
                for question_id, rating in answers.items()
            ]
        )
        log_activity("evaluation", f"Submitted evaluation for subject ID {subject_id}.")
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "You have already submitted an evaluation for this subject."}), 409
    except Exception as exc:
        db.session.rollback()
        logger.error("Error submitting evaluation: %s", exc)
        return jsonify({"error": "Failed to submit evaluation due to a server error."}), 500

    return jsonify({"message": "Evaluation submitted successfully!", "id": evaluation.id}), 201


@bp.route("/api/students/<student_id>/evaluated-subjects", methods=["GET"])
@auth_required()
def get_evaluated_subjects(student_id):
    if not can_access_user(student_id):
        return jsonify({"error": "Access denied."}), 403
    rows = db.session.query(Evaluation.subject_id).filter(Evaluation.student_id == student_id).all()
    return jsonify([row.subject_id for row in rows])


@bp.route("/api/evaluations", methods=["GET"])
@auth_required(role="admin")
def list_evaluations():
    rows = (
        db.session.query(
            Evaluation.id,
            Evaluation.student_id,
            Subject.name.label("course"),
            Evaluation.comments.label("feedback"),
            func.avg(EvaluationAnswer.rating).label("rating"),
        )
        .join(Subject, Evaluation.subject_id == Subject.id)
        .outerjoin(EvaluationAnswer, EvaluationAnswer.evaluation_id == Evaluation.id)
        .group_by(
            Evaluation.id,
            Evaluation.student_id,
            Subject.name,
            Evaluation.comments,
            Evaluation.submitted_at,
        )
        .order_by(Evaluation.submitted_at.desc(), Evaluation.id.desc())
        .all()
    )
    return jsonify(
        [
            {
                "id": row.id,
                "student_id": row.student_id,
                "course": row.course,
                "feedback": row.feedback,
                "rating": float(row.rating) if row.rating is not None else 0,
            }
            for row in rows
        ]
    )


@bp.route("/api/evaluations/stats/daily", methods=["GET"])
@auth_required(role="admin")
def get_daily_stats():
    days = max(1, parse_int(request.args.get("days"), 7) or 7)
    today_arg = request.args.get("today")
    today = date.today()
    if today_arg:
        parsed = parse_datetime(today_arg)
        if parsed is None:
            return jsonify({"error": "Invalid 'today' date."}), 400
        today = parsed.date()
    start = today - timedelta(days=days - 1)

    evaluation_date = func.date(Evaluation.submitted_at)
    rows = (
        db.session.query(evaluation_date.label("evaluation_date"), func.count(Evaluation.id))
        .filter(evaluation_date >= start.isoformat(), evaluation_date <= today.isoformat())
        .group_by(evaluation_date)
        .order_by(evaluation_date)
        .all()
    )
    return jsonify(
        [
            {"evaluation_date": str(evaluation_day), "evaluation_count": count}
            for evaluation_day, count in rows
        ]
    )
