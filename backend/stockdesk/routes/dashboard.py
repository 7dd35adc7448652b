# Overview: Flask API route for the dashboard summary.

from flask import Blueprint, jsonify, current_app

from ..errors import AppError
from ..services.dashboard_service import dashboard_stats

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
def stats():
    """Stock snapshot, today / month / all-time revenue and averages."""
    try:
        return jsonify(dashboard_stats()), 200
    except AppError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build dashboard stats")
        return jsonify({"error": "Internal server error"}), 500
