"""
Factory for creating web analytics module.
"""
from datetime import timedelta
from typing import List

from config_manager import AnalyticsConfig
from visitor_engine import AnalyticsAggregator, AnalyticsStore, LiveVisitorsService
from .services import WebAnalyticsDashboardService
from .routes import create_web_analytics_blueprint


def create_web_analytics_module(
    store: AnalyticsStore,
    analytics_config: AnalyticsConfig,
    admin_user_ids: List[str]
) -> dict:
    """Create web analytics module with service and routes.

    Args:
        store: Analytics store shared with the tracking module
        analytics_config: Window and top-N settings
        admin_user_ids: User ids allowed to read analytics

    Returns:
        Dictionary containing the service and blueprint
    """
    aggregator = AnalyticsAggregator(
        store,
        top_pages_limit=analytics_config.top_pages_limit,
        top_countries_limit=analytics_config.top_countries_limit,
        top_devices_limit=analytics_config.top_devices_limit,
        top_browsers_limit=analytics_config.top_browsers_limit
    )
    live_visitors = LiveVisitorsService(
        store,
        live_window=timedelta(minutes=analytics_config.live_window_minutes)
    )

    dashboard_service = WebAnalyticsDashboardService(
        aggregator,
        live_visitors,
        default_period=analytics_config.default_time_range
    )

    blueprint = create_web_analytics_blueprint(
        dashboard_service=dashboard_service,
        admin_user_ids=admin_user_ids
    )

    return {
        "service": dashboard_service,
        "blueprint": blueprint
    }
