"""
Factory for creating page view tracking module.
"""
from datetime import timedelta
from typing import Optional

from visitor_engine import AnalyticsStore, PageViewTracker, LocationResolver
from .routes import create_tracking_blueprint


def create_tracking_module(
    store: AnalyticsStore,
    session_timeout_minutes: int = 30,
    location_resolver: Optional[LocationResolver] = None
) -> dict:
    """Create page view tracking module with service and routes.

    Args:
        store: Analytics store shared with the dashboard
        session_timeout_minutes: Inactivity after which a new session starts
        location_resolver: Resolver for client addresses

    Returns:
        Dictionary containing the service and blueprint
    """
    tracker = PageViewTracker(
        store,
        location_resolver=location_resolver,
        session_timeout=timedelta(minutes=session_timeout_minutes)
    )

    blueprint = create_tracking_blueprint(tracker)

    return {
        "service": tracker,
        "blueprint": blueprint
    }
