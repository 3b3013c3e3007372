"""
Web Analytics Routes

Admin-only JSON endpoints for the analytics dashboard.
"""

from functools import wraps
from typing import Callable, List

from flask import Blueprint, request, jsonify

from .services import WebAnalyticsDashboardService


def create_web_analytics_blueprint(
    dashboard_service: WebAnalyticsDashboardService,
    admin_user_ids: List[str]
) -> Blueprint:
    """Create web analytics blueprint with routes.

    Args:
        dashboard_service: The dashboard service instance
        admin_user_ids: User ids allowed to read analytics

    Returns:
        Flask blueprint with web analytics routes
    """
    blueprint = Blueprint('web_analytics', __name__, url_prefix='/api/admin/analytics')

    def is_admin_user(uid: str) -> bool:
        return uid.strip() in admin_user_ids

    def admin_required(f: Callable) -> Callable:
        """Decorator to require admin access."""
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user_id = request.cookies.get('uid')
            if not user_id or not is_admin_user(user_id):
                return jsonify({"error": "Unauthorized"}), 401
            return f(*args, **kwargs)
        return decorated_function

    @blueprint.route('/web', methods=['GET'])
    @admin_required
    def web_analytics():
        """Dashboard totals, trends and breakdowns for a period."""
        period = request.args.get('period') or dashboard_service.default_period
        return jsonify(dashboard_service.get_dashboard(period))

    @blueprint.route('/live', methods=['GET'])
    @admin_required
    def live_visitors():
        """Visitors active within the live window."""
        return jsonify(dashboard_service.get_live())

    return blueprint
