# Overview: Flask API routes for the dashboard and profit analysis.

from flask import Blueprint, request, jsonify, current_app

from ..services import reporting_service
from ..services.reporting_service import ReportError
from ..pages import PAGE_DASHBOARD, PAGE_PROFIT_ANALYSIS
from ..time_utils import parse_iso_datetime
from ..decorators import require_auth, require_page


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
@require_page(PAGE_DASHBOARD)
def dashboard_route():
    stats = reporting_service.dashboard_stats(current_app.config["LOW_STOCK_THRESHOLD"])
    return jsonify(stats), 200


@reports_bp.get("/profit")
@require_auth
@require_page(PAGE_PROFIT_ANALYSIS)
def profit_route():
    """
    Query params:
    - start, end: ISO-8601 (optional, default: the last 30 days)
    """
    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
        return jsonify(reporting_service.profit_analysis(start=start, end=end)), 200
    except ValueError:
        return jsonify({"error": "start and end must be ISO-8601 datetimes"}), 400
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
