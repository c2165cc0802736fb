"""Dependent-row cleanup for deletes. Nothing here commits; callers own the transaction."""

from ..extensions import db
from ..models import (
    ActivityLog,
    Evaluation,
    EvaluationAnswer,
    EvaluationQuestion,
    FacultySubject,
    Incident,
    Section,
    StudentSubject,
    Subject,
    User,
)


def delete_evaluations(*criteria):
    evaluation_ids = [
        row.id for row in db.session.query(Evaluation.id).filter(*criteria).all()
    ]
    if not evaluation_ids:
        return 0
    EvaluationAnswer.query.filter(EvaluationAnswer.evaluation_id.in_(evaluation_ids)).delete(
        synchronize_session=False
    )
    Evaluation.query.filter(Evaluation.id.in_(evaluation_ids)).delete(
        synchronize_session=False
    )
    return len(evaluation_ids)


def delete_user_dependents(user_id):
    ActivityLog.query.filter_by(user_id=user_id).delete(synchronize_session=False)
    Incident.query.filter_by(student_id=user_id).delete(synchronize_session=False)
    StudentSubject.query.filter(
        (StudentSubject.student_id == user_id) | (StudentSubject.faculty_id == user_id)
    ).delete(synchronize_session=False)
    FacultySubject.query.filter_by(faculty_id=user_id).delete(synchronize_session=False)
    delete_evaluations((Evaluation.student_id == user_id) | (Evaluation.faculty_id == user_id))


def detach_department(department_id):
    for model in (User, Section, Subject):
        model.query.filter_by(department_id=department_id).update(
            {"department_id": None}, synchronize_session=False
        )


def detach_section(section_id):
    User.query.filter_by(section_id=section_id).update(
        {"section_id": None}, synchronize_session=False
    )
    FacultySubject.query.filter_by(section_id=section_id).delete(synchronize_session=False)
    StudentSubject.query.filter_by(section_id=section_id).update(
        {"section_id": None}, synchronize_session=False
    )
    Evaluation.query.filter_by(section_id=section_id).update(
        {"section_id": None}, synchronize_session=False
    )


def delete_subject_dependents(subject_id):
    FacultySubject.query.filter_by(subject_id=subject_id).delete(synchronize_session=False)
    StudentSubject.query.filter_by(subject_id=subject_id).delete(synchronize_session=False)
    delete_evaluations(Evaluation.subject_id == subject_id)


def delete_question_answers(question_ids):
    if not question_ids:
        return
    EvaluationAnswer.query.filter(EvaluationAnswer.question_id.in_(question_ids)).delete(
        synchronize_session=False
    )


def delete_category_questions(category_id):
    question_ids = [
        row.id
        for row in db.session.query(EvaluationQuestion.id)
        .filter(EvaluationQuestion.category_id == category_id)
        .all()
    ]
    delete_question_answers(question_ids)
    EvaluationQuestion.query.filter_by(category_id=category_id).delete(
        synchronize_session=False
    )
