"""
Page View Tracking Routes

Flask routes for ingesting page views from the frontend.
"""

import logging

from flask import Blueprint, request, jsonify, make_response

from visitor_engine import PageViewTracker
from visitor_engine.models import TrackRequest
from .utils import get_client_ip, get_extra_data, add_cors_headers

logger = logging.getLogger(__name__)


def create_tracking_blueprint(tracker: PageViewTracker) -> Blueprint:
    """Create a Flask blueprint for page view tracking.

    Args:
        tracker: Page view tracker that records events

    Returns:
        Flask blueprint with the tracking routes
    """
    bp = Blueprint('tracking', __name__, url_prefix='/api')

    @bp.route("/track", methods=["POST", "OPTIONS"])
    def track():
        """Record a page view. Tracking failures never fail the request."""
        if request.method == "OPTIONS":
            return add_cors_headers(make_response("", 200))

        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        path = payload.get("path")
        if not isinstance(path, str) or not path.strip():
            return add_cors_headers(make_response(jsonify({"error": "Path is required"}), 400))

        track_request = TrackRequest(
            path=path,
            title=payload.get("title") if isinstance(payload.get("title"), str) else None,
            referrer=payload.get("referrer") if isinstance(payload.get("referrer"), str) else None,
            user_agent=request.headers.get("User-Agent"),
            ip_address=get_client_ip(),
            user_id=request.cookies.get("uid"),
            extra_data=get_extra_data(payload)
        )

        result = tracker.track_page_view(track_request)
        if not result.success:
            logger.warning(f"Page view for {path} was not recorded: {result.error}")

        return add_cors_headers(make_response(jsonify({
            "success": True,
            "sessionId": result.session_id,
            "visitorId": result.visitor_id
        }), 200))

    return bp
