from flask import Blueprint, g, jsonify, request

from ..auth import auth_required, can_access_user
from ..extensions import db
from ..models import Incident, User
from ..services.activity import log_activity

bp = Blueprint("incident_api", __name__)

INCIDENT_STATUSES = ("Pending", "Under Investigation", "Resolved")


def _serialize_incident(incident, reporter=None):
    payload = {
        "id": incident.id,
        "student_id": incident.student_id,
        "title": incident.title,
        "description": incident.description,
        "status": incident.status,
        "submitted_at": incident.submitted_at.isoformat() if incident.submitted_at else None,
    }
    if reporter is not None:
        payload["reporter_name"] = reporter.name
        payload["reporter_role"] = reporter.role
    return payload


@bp.route("/api/incidents", methods=["POST"])
@auth_required(role=("student", "faculty"))
def report_incident():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    title = (data.get("title") or "").strip()
    description = (data.get("description") or "").strip()
    if not title or not description:
        return jsonify({"error": "Title and description are required."}), 400

    incident = Incident(student_id=g.user.id, title=title, description=description, status="Pending")
    db.session.add(incident)
    db.session.flush()
    log_activity("report_incident", f"Reported incident: {title}")
    db.session.commit()
    return jsonify({"message": "Incident reported successfully.", "incidentId": incident.id}), 201


@bp.route("/api/incidents/student/<user_id>", methods=["GET"])
@auth_required()
def get_reporter_incidents(user_id):
    if not can_access_user(user_id):
        return jsonify({"error": "Access denied."}), 403
    incidents = (
        Incident.query.filter_by(student_id=user_id)
        .order_by(Incident.submitted_at.desc(), Incident.id.desc())
        .all()
    )
    return jsonify([_serialize_incident(incident) for incident in incidents])


@bp.route("/api/incidents", methods=["GET"])
@auth_required(role="admin")
def list_incidents():
    rows = (
        db.session.query(Incident, User)
        .join(User, Incident.student_id == User.id)
        .order_by(Incident.submitted_at.desc(), Incident.id.desc())
        .all()
    )
    return jsonify([_serialize_incident(incident, reporter) for incident, reporter in rows])


@bp.route("/api/incidents/<int:incident_id>", methods=["PATCH"])
@auth_required(role="admin")
def update_incident_status(incident_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    status = data.get("status")
    if status not in INCIDENT_STATUSES:
        return jsonify({"error": "Invalid status provided."}), 400

    incident = db.session.get(Incident, incident_id)
    if not incident:
        return jsonify({"error": "Incident not found."}), 404
    incident.status = status
    log_activity("update_incident", f"Updated incident #{incident_id} status to {status}")
    db.session.commit()
    return jsonify({"message": "Incident status updated successfully."}), 200
