from flask import g

from ..extensions import db
from ..logger import get_logger
from ..models import ActivityLog

logger = get_logger("activity")


def log_activity(activity_type, description=None, user_id=None):
    """Queue an activity row on the current session; the caller commits."""
    try:
        if user_id is None and hasattr(g, "user") and g.user:
            user_id = g.user.id
        if user_id is None:
            return
        entry = ActivityLog(
            user_id=user_id,
            activity_type=activity_type,
            description=description,
        )
        db.session.add(entry)
    except Exception as exc:
        logger.warning("Failed to write activity log: %s", exc)


def serialize_activity(entry, user=None):
    payload = {
        "activity_type": entry.activity_type,
        "description": entry.description,
        "timestamp": entry.timestamp.strftime("%Y-%m-%d %I:%M %p") if entry.timestamp else None,
    }
    if user is not None:
        payload["user_name"] = user.name
        payload["user_role"] = user.role
    return payload
