from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError

from ..auth import auth_required
from ..extensions import db
from ..logger import get_logger
from ..models import Department, FacultySubject, Section, Subject, User
from ..services.activity import log_activity
from ..services.cascades import delete_subject_dependents, detach_department, detach_section
from ..services.db_utils import parse_int

bp = Blueprint("catalog_api", __name__)
logger = get_logger("catalog")


@bp.route("/api/departments", methods=["GET"])
@auth_required()
def list_departments():
    departments = Department.query.order_by(Department.name).all()
    return jsonify([{"id": d.id, "name": d.name} for d in departments])


@bp.route("/api/departments", methods=["POST"])
@auth_required(role="admin")
def create_department():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"error": "Department name is required."}), 400

    department = Department(name=name)
    try:
        db.session.add(department)
        db.session.flush()
        log_activity("create_department", f"Added department: {name}")
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "This department already exists."}), 409
    return jsonify({"message": "Department added successfully.", "departmentId": department.id}), 201


@bp.route("/api/departments/<int:department_id>", methods=["PUT"])
@auth_required(role="admin")
def update_department(department_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"error": "Department name is required."}), 400

    department = db.session.get(Department, department_id)
    if not department:
        return jsonify({"error": "Department not found."}), 404
    department.name = name
    try:
        log_activity("update_department", f"Updated department ID {department_id} to name: {name}")
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "This department already exists."}), 409
    return jsonify({"message": "Department updated successfully."}), 200


@bp.route("/api/departments/<int:department_id>", methods=["DELETE"])
@auth_required(role="admin")
def delete_department(department_id):
    department = db.session.get(Department, department_id)
    if not department:
        return jsonify({"error": "Department not found."}), 404
    try:
        detach_department(department_id)
        db.session.delete(department)
        log_activity("delete_department", f"Deleted department with ID: {department_id}")
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        logger.error("Error deleting department %s: %s", department_id, exc)
        return jsonify({"error": "Failed to delete department. It might be in use."}), 500
    return jsonify({"message": "Department deleted successfully."}), 200


@bp.route("/api/sections", methods=["GET"])
@auth_required()
def list_sections():
    rows = (
        db.session.query(Section, Department.name)
        .outerjoin(Department, Section.department_id == Department.id)
        .order_by(Section.name)
        .all()
    )
    return jsonify(
        [
            {
                "id": section.id,
                "name": section.name,
                "year_level": section.year_level,
                "department_id": section.department_id,
                "department_name": department_name,
            }
            for section, department_name in rows
        ]
    )


@bp.route("/api/sections", methods=["POST"])
@auth_required(role="admin")
def create_section():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"error": "Section name is required."}), 400

    section = Section(
        name=name,
        department_id=parse_int(data.get("department_id")),
        year_level=parse_int(data.get("year_level")),
    )
    db.session.add(section)
    db.session.flush()
    log_activity("create_section", f"Added section: {name}")
    db.session.commit()
    return jsonify({"message": "Section added successfully.", "sectionId": section.id}), 201


@bp.route("/api/sections/<int:section_id>", methods=["PUT"])
@auth_required(role="admin")
def update_section(section_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    name = (data.get("name") or "").strip()
    department_id = parse_int(data.get("department_id"))
    year_level = parse_int(data.get("year_level"))
    if not name or department_id is None or year_level is None:
        return jsonify({"error": "All fields are required."}), 400

    section = db.session.get(Section, section_id)
    if not section:
        return jsonify({"error": "Section not found."}), 404
    section.name = name
    section.department_id = department_id
    section.year_level = year_level
    log_activity("update_section", f"Updated section ID {section_id}")
    db.session.commit()
    return jsonify({"message": "Section updated successfully."}), 200


@bp.route("/api/sections/<int:section_id>", methods=["DELETE"])
@auth_required(role="admin")
def delete_section(section_id):
    section = db.session.get(Section, section_id)
    if not section:
        return jsonify({"error": "Section not found."}), 404
    try:
        detach_section(section_id)
        db.session.delete(section)
        log_activity("delete_section", f"Deleted section with ID: {section_id}")
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        logger.error("Error deleting section %s: %s", section_id, exc)
        return jsonify({"error": "Failed to delete section."}), 500
    return jsonify({"message": "Section deleted successfully."}), 200


@bp.route("/api/subjects", methods=["GET"])
@auth_required()
def list_subjects():
    rows = (
        db.session.query(Subject, Department.name)
        .outerjoin(Department, Subject.department_id == Department.id)
        .order_by(Subject.code)
        .all()
    )
    faculty_names = {}
    assignments = (
        db.session.query(FacultySubject.subject_id, User.name)
        .join(User, FacultySubject.faculty_id == User.id)
        .filter(User.role == "faculty")
        .order_by(User.name)
        .all()
    )
    for subject_id, faculty_name in assignments:
        names = faculty_names.setdefault(subject_id, [])
        if faculty_name not in names:
            names.append(faculty_name)

    return jsonify(
        [
            {
                "id": subject.id,
                "code": subject.code,
                "name": subject.name,
                "year_level": subject.year_level,
                "department_id": subject.department_id,
                "department_name": department_name,
                "faculty_name": ",".join(faculty_names.get(subject.id, [])) or None,
            }
            for subject, department_name in rows
        ]
    )


@bp.route("/api/subjects", methods=["POST"])
@auth_required(role="admin")
def create_subject():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    code = (data.get("code") or "").strip()
    name = (data.get("name") or "").strip()
    if not code or not name:
        return jsonify({"error": "Subject code and name are required."}), 400

    subject = Subject(
        code=code,
        name=name,
        department_id=parse_int(data.get("department_id")),
        year_level=parse_int(data.get("year_level")),
    )
    try:
        db.session.add(subject)
        db.session.flush()
        log_activity("create_subject", f"Added subject: {name} ({code})")
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "A subject with this code already exists."}), 409
    return jsonify({"message": "Subject added successfully.", "subjectId": subject.id}), 201


@bp.route("/api/subjects/<int:subject_id>", methods=["PUT"])
@auth_required(role="admin")
def update_subject(subject_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    code = (data.get("code") or "").strip()
    name = (data.get("name") or "").strip()
    department_id = parse_int(data.get("department_id"))
    year_level = parse_int(data.get("year_level"))
    if not code or not name or department_id is None or year_level is None:
        return jsonify({"error": "All fields are required."}), 400

    subject = db.session.get(Subject, subject_id)
    if not subject:
        return jsonify({"error": "Subject not found."}), 404
    subject.code = code
    subject.name = name
    subject.department_id = department_id
    subject.year_level = year_level
    try:
        log_activity("update_subject", f"Updated subject ID {subject_id}")
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "A subject with this code already exists."}), 409
    return jsonify({"message": "Subject updated successfully."}), 200


@bp.route("/api/subjects/<int:subject_id>", methods=["DELETE"])
@auth_required(role="admin")
def delete_subject(subject_id):
    subject = db.session.get(Subject, subject_id)
    if not subject:
        return jsonify({"error": "Subject not found."}), 404
    try:
        delete_subject_dependents(subject_id)
        db.session.delete(subject)
        log_activity("delete_subject", f"Deleted subject with ID: {subject_id}")
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        logger.error("Error deleting subject %s: %s", subject_id, exc)
        return jsonify({"error": "Failed to delete subject. It might be in use."}), 500
    return jsonify({"message": "Subject deleted successfully."}), 200
