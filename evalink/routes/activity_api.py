from flask import Blueprint, g, jsonify, request

from ..auth import auth_required, can_access_user
from ..extensions import db
from ..models import ActivityLog, User
from ..services.activity import log_activity, serialize_activity
from ..services.db_utils import parse_int

bp = Blueprint("activity_api", __name__)


@bp.route("/api/activity-logs", methods=["GET"])
@auth_required(role="admin")
def list_admin_activity():
    limit = parse_int(request.args.get("limit"), 50) or 50
    rows = (
        db.session.query(ActivityLog, User)
        .join(User, ActivityLog.user_id == User.id)
        .filter(User.role == "admin")
        .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
    return jsonify([serialize_activity(entry, user) for entry, user in rows])


@bp.route("/api/activity-logs", methods=["POST"])
@auth_required()
def record_activity():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    activity_type = (data.get("activity_type") or "").strip()
    if not activity_type:
        return jsonify({"error": "Activity type is required."}), 400

    log_activity(activity_type, data.get("description"), user_id=g.user.id)
    db.session.commit()
    return jsonify({"message": "Activity logged successfully."}), 201


@bp.route("/api/users/<user_id>/activity-logs", methods=["GET"])
@auth_required()
def list_user_activity(user_id):
    if not can_access_user(user_id):
        return jsonify({"error": "Access denied."}), 403
    entries = (
        ActivityLog.query.filter_by(user_id=user_id)
        .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .limit(20)
        .all()
    )
    return jsonify([serialize_activity(entry) for entry in entries])
