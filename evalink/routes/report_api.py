from io import BytesIO
from pathlib import Path

from flask import Blueprint, current_app, jsonify, send_file

from ..auth import auth_required, can_access_user
from ..extensions import db
from ..logger import get_logger
from ..models import User
from ..services.activity import log_activity
from ..services.aggregation import AggregationError
from ..services.pdf_report import build_consolidated_report, build_faculty_report
from ..services.reports import all_faculty_results, faculty_results

bp = Blueprint("report_api", __name__)
logger = get_logger("reports")


def _logo_path():
    path = Path(current_app.static_folder or "") / "images" / "evalinklogo.png"
    return str(path) if path.is_file() else None


def _send_pdf(pdf_bytes, filename):
    return send_file(
        BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=filename,
    )


@bp.route("/api/faculty/<faculty_id>/evaluations", methods=["GET"])
@auth_required(role=("admin", "faculty"))
def get_faculty_evaluations(faculty_id):
    if not can_access_user(faculty_id):
        return jsonify({"error": "Access denied."}), 403
    try:
        _, subjects = faculty_results(faculty_id)
    except AggregationError as exc:
        logger.error("Error aggregating results for faculty %s: %s", faculty_id, exc)
        return jsonify({"error": "Failed to fetch evaluation results."}), 500
    return jsonify(subjects)


@bp.route("/api/admin/evaluations/aggregated", methods=["GET"])
@auth_required(role="admin")
def get_aggregated_evaluations():
    try:
        results = all_faculty_results()
    except AggregationError as exc:
        logger.error("Error aggregating faculty results: %s", exc)
        return jsonify({"error": "Failed to fetch aggregated evaluation results."}), 500
    return jsonify(results)


@bp.route("/api/admin/evaluations/report/pdf", methods=["GET"])
@auth_required(role="admin")
def download_consolidated_report():
    try:
        results = all_faculty_results()
    except AggregationError as exc:
        logger.error("Error building consolidated report: %s", exc)
        return jsonify({"error": "Failed to generate PDF report."}), 500
    if not results:
        return jsonify({"error": "No evaluation data available."}), 404

    pdf_bytes = build_consolidated_report(results, logo_path=_logo_path())
    log_activity("download_report", "Downloaded consolidated evaluation report.")
    db.session.commit()
    return _send_pdf(pdf_bytes, "evaluation_report.pdf")


@bp.route("/api/faculty/<faculty_id>/report/pdf", methods=["GET"])
@auth_required(role=("admin", "faculty"))
def download_faculty_report(faculty_id):
    if not can_access_user(faculty_id):
        return jsonify({"error": "Access denied."}), 403
    faculty = db.session.get(User, faculty_id)
    if not faculty or faculty.role != "faculty":
        return jsonify({"error": "Faculty member not found."}), 404

    try:
        faculty_name, subjects = faculty_results(faculty_id)
    except AggregationError as exc:
        logger.error("Error aggregating results for faculty %s: %s", faculty_id, exc)
        return jsonify({"error": "Failed to generate PDF report."}), 500
    if not subjects:
        return jsonify({"error": "No evaluation data found for this faculty member."}), 404

    pdf_bytes = build_faculty_report(faculty_name or faculty.name, subjects, logo_path=_logo_path())
    log_activity("download_report", f"Downloaded evaluation report for faculty {faculty_id}.")
    db.session.commit()
    safe_name = "_".join(faculty.name.split()) or faculty_id
    return _send_pdf(pdf_bytes, f"evaluation_report_{safe_name}.pdf")
