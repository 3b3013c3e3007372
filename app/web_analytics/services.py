"""
Web Analytics Dashboard Service

Turns aggregator output into the admin dashboard payload: fills in device and
browser shares and stamps where the numbers came from. A storage failure
yields a zeroed payload instead of an error page.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from visitor_engine import AnalyticsAggregator, LiveVisitorsService, StoreError, resolve_time_range
from visitor_engine.models import WebAnalytics, to_iso, utc_now

logger = logging.getLogger(__name__)

SOURCE_DATABASE = "database"
SOURCE_DATABASE_ERROR = "database_error"


def calculate_percentages(metrics: List[Any]) -> None:
    """Set each metric's share of the total visits, rounded to 2 decimals."""
    total = sum(metric.visits for metric in metrics)
    for metric in metrics:
        metric.percentage = round(metric.visits / total * 100, 2) if total else 0


class WebAnalyticsDashboardService:
    """Service for the admin web analytics dashboard."""

    def __init__(
        self,
        aggregator: AnalyticsAggregator,
        live_visitors: LiveVisitorsService,
        default_period: str = "30d"
    ):
        self.aggregator = aggregator
        self.live_visitors = live_visitors
        self.default_period = default_period

    def get_dashboard(self, period: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Get the dashboard payload for a period.

        Args:
            period: Time range key such as "7d"; unknown keys fall back to 30 days
            now: End of the window, defaults to the current UTC time

        Returns:
            Camel-cased analytics dictionary with a ``metadata`` block
        """
        now = now or utc_now()
        period, _ = resolve_time_range(period or self.default_period, now)

        try:
            analytics = self.aggregator.get_web_analytics(period, now=now)
            calculate_percentages(analytics.devices)
            calculate_percentages(analytics.browsers)
            metadata = {"source": SOURCE_DATABASE}
        except StoreError as e:
            logger.error(f"Failed to load analytics for period {period}: {e}")
            analytics = WebAnalytics.empty()
            metadata = {
                "source": SOURCE_DATABASE_ERROR,
                "note": f"Analytics storage is unavailable: {e}"
            }
        except Exception as e:
            logger.exception(f"Unexpected error building analytics for period {period}: {e}")
            analytics = WebAnalytics.empty()
            metadata = {
                "source": SOURCE_DATABASE_ERROR,
                "note": f"Analytics could not be computed: {e}"
            }

        payload = analytics.to_dict()
        metadata.update({"period": period, "generatedAt": to_iso(now)})
        payload["metadata"] = metadata
        return payload

    def get_live(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Get currently active visitors."""
        try:
            return self.live_visitors.get_live_visitors(now=now)
        except StoreError as e:
            logger.error(f"Failed to load live visitors: {e}")
            return {"count": 0, "visitors": [], "timestamp": to_iso(now or utc_now())}
