from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from ..auth import auth_required
from ..extensions import db
from ..models import Department, FacultySubject, Section, StudentSubject, Subject, User
from ..services.activity import log_activity
from ..services.db_utils import parse_int

bp = Blueprint("assignment_api", __name__)


def _require_user(user_id, role):
    user = db.session.get(User, user_id) if user_id else None
    return user if user and user.role == role else None


@bp.route("/api/faculty-loads", methods=["GET"])
@auth_required(role="admin")
def list_faculty_loads():
    rows = (
        db.session.query(FacultySubject, User.name, Subject.name, Section.name, Department.name)
        .join(User, FacultySubject.faculty_id == User.id)
        .join(Subject, FacultySubject.subject_id == Subject.id)
        .join(Section, FacultySubject.section_id == Section.id)
        .outerjoin(Department, Subject.department_id == Department.id)
        .order_by(User.name, Subject.name)
        .all()
    )
    return jsonify(
        [
            {
                "id": load.id,
                "faculty_id": load.faculty_id,
                "subject_id": load.subject_id,
                "section_id": load.section_id,
                "faculty_name": faculty_name,
                "subject_name": subject_name,
                "section_name": section_name,
                "department_name": department_name,
            }
            for load, faculty_name, subject_name, section_name, department_name in rows
        ]
    )


@bp.route("/api/faculty-loads", methods=["POST"])
@auth_required(role="admin")
def assign_faculty_load():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    faculty_id = str(data.get("faculty_id") or "").strip()
    subject_id = parse_int(data.get("subject_id"))
    section_id = parse_int(data.get("section_id"))
    if not faculty_id or subject_id is None or section_id is None:
        return jsonify({"error": "Faculty, subject, and section are required."}), 400
    if not _require_user(faculty_id, "faculty"):
        return jsonify({"error": "Faculty member not found."}), 404
    if not db.session.get(Subject, subject_id) or not db.session.get(Section, section_id):
        return jsonify({"error": "Subject or section not found."}), 404

    load = FacultySubject(faculty_id=faculty_id, subject_id=subject_id, section_id=section_id)
    try:
        db.session.add(load)
        db.session.flush()
        log_activity("assign_load", f"Assigned subject {subject_id} to faculty {faculty_id}")
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return (
            jsonify({"error": "This subject and section is already assigned to a faculty member."}),
            409,
        )
    return jsonify({"message": "Faculty load assigned successfully.", "assignmentId": load.id}), 201


@bp.route("/api/faculty-loads/<int:load_id>", methods=["DELETE"])
@auth_required(role="admin")
def unassign_faculty_load(load_id):
    load = db.session.get(FacultySubject, load_id)
    if not load:
        return jsonify({"error": "Faculty load not found."}), 404
    db.session.delete(load)
    log_activity(
        "unassign_load", f"Unassigned subject {load.subject_id} from faculty {load.faculty_id}"
    )
    db.session.commit()
    return jsonify({"message": "Faculty load unassigned successfully."}), 200


@bp.route("/api/student-subjects", methods=["GET"])
@auth_required(role="admin")
def list_enrollments():
    student = aliased(User)
    faculty = aliased(User)
    rows = (
        db.session.query(StudentSubject, student.name, Subject.name, faculty.name, Section.name)
        .join(student, StudentSubject.student_id == student.id)
        .join(Subject, StudentSubject.subject_id == Subject.id)
        .join(faculty, StudentSubject.faculty_id == faculty.id)
        .outerjoin(Section, StudentSubject.section_id == Section.id)
        .order_by(student.name, Subject.name)
        .all()
    )
    return jsonify(
        [
            {
                "id": enrollment.id,
                "student_id": enrollment.student_id,
                "subject_id": enrollment.subject_id,
                "faculty_id": enrollment.faculty_id,
                "section_id": enrollment.section_id,
                "student_name": student_name,
                "subject_name": subject_name,
                "faculty_name": faculty_name,
                "section_name": section_name,
            }
            for enrollment, student_name, subject_name, faculty_name, section_name in rows
        ]
    )


@bp.route("/api/student-subjects", methods=["POST"])
@auth_required(role="admin")
def enroll_student():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    student_id = str(data.get("student_id") or "").strip()
    faculty_id = str(data.get("faculty_id") or "").strip()
    subject_id = parse_int(data.get("subject_id"))
    section_id = parse_int(data.get("section_id"))
    if not student_id or not faculty_id or subject_id is None:
        return jsonify({"error": "Student, subject, and faculty are required."}), 400
    if not _require_user(student_id, "student"):
        return jsonify({"error": "Student not found."}), 404
    if not _require_user(faculty_id, "faculty"):
        return jsonify({"error": "Faculty member not found."}), 404
    if not db.session.get(Subject, subject_id):
        return jsonify({"error": "Subject not found."}), 404

    enrollment = StudentSubject(
        student_id=student_id,
        subject_id=subject_id,
        faculty_id=faculty_id,
        section_id=section_id,
    )
    try:
        db.session.add(enrollment)
        db.session.flush()
        log_activity("enroll_student", f"Enrolled student {student_id} in subject {subject_id}")
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "This student is already enrolled in this subject."}), 409
    return (
        jsonify({"message": "Student enrolled in subject successfully.", "enrollmentId": enrollment.id}),
        201,
    )


@bp.route("/api/student-subjects/<int:enrollment_id>", methods=["DELETE"])
@auth_required(role="admin")
def unenroll_student(enrollment_id):
    enrollment = db.session.get(StudentSubject, enrollment_id)
    if not enrollment:
        return jsonify({"error": "Enrollment not found."}), 404
    db.session.delete(enrollment)
    log_activity(
        "unenroll_student",
        f"Unenrolled student {enrollment.student_id} from subject {enrollment.subject_id}",
    )
    db.session.commit()
    return jsonify({"message": "Student enrollment deleted successfully."}), 200
