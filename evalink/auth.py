import re
from functools import wraps

from flask import current_app, g, jsonify, request, session

from .extensions import db
from .models import User

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
ROLES = ("admin", "faculty", "student")


def normalize_email(email):
    return email.strip().lower()


def is_valid_email(email):
    return bool(EMAIL_RE.match(email or ""))


def build_user_payload(user):
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "department_id": user.department_id,
        "section_id": user.section_id,
        "year_level": user.year_level,
        "profile_image_url": user.profile_image_url,
    }


def resolve_session_user():
    user_id = session.get("user_id")
    if not user_id:
        return None
    user = db.session.get(User, user_id)
    if not user or user.is_active is False:
        session.pop("user_id", None)
        return None
    return user


def can_access_user(user_id):
    """Admins see everyone; other roles only see their own records."""
    return g.user.role == "admin" or g.user.id == user_id


def auth_required(role=None):
    allowed = {role} if isinstance(role, str) else set(role or ())

    def wrapper(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = resolve_session_user()
            if not user and current_app.config.get("ALLOW_MOCK_AUTH", False):
                mock_user_id = request.args.get("mock_user_id") or request.headers.get(
                    "X-Mock-User-Id"
                )
                if mock_user_id:
                    user = db.session.get(User, mock_user_id)

            if not user:
                return jsonify({"error": "Authentication required."}), 401
            if user.is_active is False:
                return jsonify({"error": "Account disabled. Contact an administrator."}), 403
            if allowed and user.role not in allowed:
                return (
                    jsonify({"error": f"Access denied. Required role: {', '.join(sorted(allowed))}"}),
                    403,
                )

            g.user = user
            return f(*args, **kwargs)

        return decorated_function

    return wrapper
