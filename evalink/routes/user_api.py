from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash

from ..auth import ROLES, auth_required, can_access_user, normalize_email
from ..extensions import db
from ..logger import get_logger
from ..models import Department, FacultySubject, Section, StudentSubject, Subject, User
from ..services.activity import log_activity
from ..services.cascades import delete_user_dependents
from ..services.db_utils import parse_int
from ..services.storage import UploadRejected, save_profile_image

bp = Blueprint("user_api", __name__)
logger = get_logger("users")


def _serialize_user(user, department_name=None):
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "year_level": user.year_level,
        "section_id": user.section_id,
        "department_id": user.department_id,
        "department_name": department_name,
        "profile_image_url": user.profile_image_url,
        "is_active": user.is_active,
    }


def _users_with_department():
    return db.session.query(User, Department.name).outerjoin(
        Department, User.department_id == Department.id
    )


@bp.route("/api/users", methods=["GET"])
@auth_required(role="admin")
def list_users():
    role = request.args.get("role")
    if not role:
        return jsonify({"error": "Role query parameter is required."}), 400
    rows = _users_with_department().filter(User.role == role).order_by(User.name).all()
    return jsonify([_serialize_user(user, department_name) for user, department_name in rows])


@bp.route("/api/users/<user_id>", methods=["GET"])
@auth_required()
def get_user(user_id):
    if not can_access_user(user_id):
        return jsonify({"error": "Access denied."}), 403
    row = _users_with_department().filter(User.id == user_id).first()
    if not row:
        return jsonify({"error": "User not found."}), 404
    user, department_name = row
    return jsonify(_serialize_user(user, department_name))


@bp.route("/api/users", methods=["POST"])
@auth_required(role="admin")
def create_user():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400

    user_id = str(data.get("id") or "").strip()
    name = (data.get("name") or "").strip()
    password = str(data.get("password") or "")
    role = (data.get("role") or "").strip().lower()
    email = normalize_email(data.get("email") or "") or None

    if not user_id or not name or not password or not role:
        return jsonify({"error": "ID, name, password, and role are required."}), 400
    if role not in ROLES:
        return jsonify({"error": "Invalid role."}), 400
    if db.session.get(User, user_id):
        return jsonify({"error": "A user with this ID already exists."}), 409

    user = User(
        id=user_id,
        name=name,
        email=email,
        role=role,
        password_hash=generate_password_hash(password),
        department_id=parse_int(data.get("department_id")),
        section_id=parse_int(data.get("section_id")),
        year_level=parse_int(data.get("year_level")),
    )
    try:
        db.session.add(user)
        db.session.flush()
        log_activity("create_user", f"Created new {role}: {name} ({user_id})")
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "A user with this email already exists."}), 409
    return jsonify({"message": "User added successfully.", "userId": user.id}), 201


@bp.route("/api/users/<user_id>", methods=["PUT"])
@auth_required(role="admin")
def update_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found."}), 404

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400

    if data.get("name") is not None:
        user.name = (data.get("name") or user.name).strip()
    if "email" in data:
        user.email = normalize_email(data.get("email") or "") or None
    if "department_id" in data:
        user.department_id = parse_int(data.get("department_id"))
    if user.role == "student":
        if "year_level" in data:
            user.year_level = parse_int(data.get("year_level"))
        if "section_id" in data:
            user.section_id = parse_int(data.get("section_id"))
    if data.get("is_active") is not None:
        user.is_active = bool(data.get("is_active"))
    if data.get("password"):
        user.password_hash = generate_password_hash(str(data.get("password")))

    try:
        log_activity("update_user", f"Updated user profile for {user.role} ID: {user_id}")
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "A user with this email already exists."}), 409
    return jsonify({"message": "User updated successfully."}), 200


@bp.route("/api/users/<user_id>", methods=["DELETE"])
@auth_required(role="admin")
def delete_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found."}), 404
    try:
        delete_user_dependents(user_id)
        db.session.delete(user)
        log_activity("delete_user", f"Deleted user with ID: {user_id}")
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        logger.error("Error deleting user %s: %s", user_id, exc)
        return jsonify({"error": "Failed to delete user."}), 500
    return jsonify({"message": "User deleted successfully."}), 200


@bp.route("/api/users/<user_id>/profile-image", methods=["POST"])
@auth_required()
def upload_profile_image(user_id):
    if not can_access_user(user_id):
        return jsonify({"error": "Access denied."}), 403
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found."}), 404

    try:
        image_url = save_profile_image(request.files.get("profileImage"))
    except UploadRejected as exc:
        return jsonify({"error": str(exc)}), 400

    user.profile_image_url = image_url
    log_activity("update_profile", "User updated their profile picture.", user_id=user_id)
    db.session.commit()
    return jsonify({"message": "Profile image updated successfully.", "imageUrl": image_url})


@bp.route("/api/users/<user_id>/sections", methods=["GET"])
@auth_required()
def get_faculty_sections(user_id):
    if not can_access_user(user_id):
        return jsonify({"error": "Access denied."}), 403
    rows = (
        db.session.query(FacultySubject, Section.name, Subject.name, Subject.code)
        .join(Section, FacultySubject.section_id == Section.id)
        .join(Subject, FacultySubject.subject_id == Subject.id)
        .filter(FacultySubject.faculty_id == user_id)
        .order_by(Section.name, Subject.name)
        .all()
    )
    return jsonify(
        [
            {
                "section_id": load.section_id,
                "subject_id": load.subject_id,
                "section_name": section_name,
                "subject_name": subject_name,
                "subject_code": subject_code,
            }
            for load, section_name, subject_name, subject_code in rows
        ]
    )


@bp.route("/api/users/<user_id>/subjects", methods=["GET"])
@auth_required()
def get_student_subjects(user_id):
    if not can_access_user(user_id):
        return jsonify({"error": "Access denied."}), 403
    rows = (
        db.session.query(StudentSubject, Subject, User.name)
        .join(Subject, StudentSubject.subject_id == Subject.id)
        .join(User, StudentSubject.faculty_id == User.id)
        .filter(StudentSubject.student_id == user_id)
        .order_by(Subject.name)
        .all()
    )
    return jsonify(
        [
            {
                "id": subject.id,
                "code": subject.code,
                "name": subject.name,
                "faculty_id": enrollment.faculty_id,
                "section_id": enrollment.section_id,
                "faculty_name": faculty_name,
            }
            for enrollment, subject, faculty_name in rows
        ]
    )
