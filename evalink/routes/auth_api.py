from flask import Blueprint, jsonify, request, session
from werkzeug.security import check_password_hash

from ..auth import build_user_payload, normalize_email, resolve_session_user
from ..extensions import db
from ..logger import get_logger
from ..models import User
from ..services.activity import log_activity

bp = Blueprint("auth_api", __name__)
logger = get_logger("auth")


@bp.route("/api/auth/login", methods=["POST"])
def login_user():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400

    email = normalize_email(data.get("email") or "")
    user_id = str(data.get("id") or "").strip()
    password = data.get("password") or ""
    if (not email and not user_id) or not password:
        return jsonify({"error": "Identifier and password are required."}), 400

    if email:
        user = User.query.filter_by(email=email, role="admin").first()
    else:
        user = db.session.get(User, user_id)

    if not user or not check_password_hash(user.password_hash, password):
        return jsonify({"error": "Invalid credentials."}), 401
    if user.is_active is False:
        return jsonify({"error": "Account disabled. Contact an administrator."}), 403

    session["user_id"] = user.id
    user.last_login_at = db.func.now()
    log_activity("login", "User logged in successfully.", user_id=user.id)
    db.session.commit()
    logger.info("User %s logged in.", user.id)

    return jsonify({"message": "Login successful.", "user": build_user_payload(user)}), 200


@bp.route("/api/auth/logout", methods=["POST"])
def logout_user():
    user = resolve_session_user()
    if user:
        log_activity("logout", "User logged out.", user_id=user.id)
        db.session.commit()
    session.pop("user_id", None)
    return jsonify({"message": "Logged out successfully."}), 200


@bp.route("/api/auth/me", methods=["GET"])
def get_current_user():
    user = resolve_session_user()
    if not user:
        return jsonify({"error": "Authentication required."}), 401
    return jsonify({"user": build_user_payload(user)}), 200
