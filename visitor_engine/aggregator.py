"""
Analytics Aggregator

Read-only dashboard queries over a rolling time window: totals, session
quality, top-N breakdowns and daily trends. Runs against a lock-free snapshot
of the store and never writes.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from .models import (
    BrowserMetric,
    CountryMetric,
    DeviceMetric,
    MetricSeries,
    PageMetric,
    PageView,
    SessionMetrics,
    TrendPoint,
    WebAnalytics,
    utc_now
)
from .store import AnalyticsStore

logger = logging.getLogger(__name__)

TIME_RANGES: Dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}
DEFAULT_TIME_RANGE = "30d"


def round_half_up(value: float) -> int:
    """Round a non-negative number to the nearest integer, halves upwards."""
    return int(value + 0.5)


def resolve_time_range(time_range: Optional[str], now: datetime) -> Tuple[str, datetime]:
    """Map a time range key to the start of its window.

    Unknown keys fall back to the default 30 day window.

    Returns:
        Tuple of (effective time range key, since timestamp)
    """
    if time_range not in TIME_RANGES:
        logger.warning(f"Unknown time range {time_range!r}, using {DEFAULT_TIME_RANGE}")
        time_range = DEFAULT_TIME_RANGE
    return time_range, now - TIME_RANGES[time_range]


def _day_start(value: datetime) -> datetime:
    day = value.astimezone(timezone.utc).date()
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def _daily_trend(timestamps: Iterable[datetime]) -> List[TrendPoint]:
    buckets = Counter(_day_start(ts) for ts in timestamps)
    return [
        TrendPoint(date=day.isoformat(), value=count)
        for day, count in sorted(buckets.items())
    ]


def _top_by_distinct_visitors(
    page_views: List[PageView],
    facet: Callable[[PageView], Optional[str]],
    limit: int
) -> List[Tuple[str, int]]:
    """Group page views by a facet and rank buckets by distinct visitors.

    Page views with no value for the facet are skipped. Ties keep the order in
    which buckets first appeared.
    """
    visitors_by_bucket: Dict[str, Set[str]] = {}
    for page_view in page_views:
        value = facet(page_view)
        if not value:
            continue
        visitors_by_bucket.setdefault(value, set()).add(page_view.visitor_id)

    ranked = sorted(visitors_by_bucket.items(), key=lambda item: len(item[1]), reverse=True)
    return [(bucket, len(visitor_ids)) for bucket, visitor_ids in ranked[:limit]]


class AnalyticsAggregator:
    """Computes the web analytics dashboard for a rolling window."""

    def __init__(
        self,
        store: AnalyticsStore,
        top_pages_limit: int = 20,
        top_countries_limit: int = 10,
        top_devices_limit: int = 10,
        top_browsers_limit: int = 10
    ):
        self.store = store
        self.top_pages_limit = top_pages_limit
        self.top_countries_limit = top_countries_limit
        self.top_devices_limit = top_devices_limit
        self.top_browsers_limit = top_browsers_limit

    def get_web_analytics(self, time_range: str = DEFAULT_TIME_RANGE, now: Optional[datetime] = None) -> WebAnalytics:
        """Get web analytics for a rolling window.

        Args:
            time_range: One of "24h", "7d", "30d" or "90d"
            now: End of the window, defaults to the current UTC time

        Returns:
            WebAnalytics with totals, trends and breakdowns. Device and browser
            percentages are left at zero for the caller to normalise.

        Raises:
            StoreError: If the analytics tables cannot be read
        """
        now = now or utc_now()
        time_range, since = resolve_time_range(time_range, now)
        snapshot = self.store.snapshot()

        page_views = [pv for pv in snapshot.page_views if pv.viewed_at >= since]
        visitors = [v for v in snapshot.visitors.values() if v.last_visit_at >= since]
        sessions = [s for s in snapshot.sessions.values() if s.started_at >= since]

        return WebAnalytics(
            page_views=MetricSeries(
                total=len(page_views),
                trend=_daily_trend(pv.viewed_at for pv in page_views)
            ),
            unique_visitors=MetricSeries(
                total=len(visitors),
                # Each visitor counts once, on the day of its latest visit
                trend=_daily_trend(v.last_visit_at for v in visitors)
            ),
            sessions=self._session_metrics(sessions),
            top_pages=self._top_pages(page_views),
            countries=self._top_countries(page_views),
            devices=[
                DeviceMetric(device=device, visits=visits)
                for device, visits in _top_by_distinct_visitors(
                    page_views, lambda pv: pv.device_type, self.top_devices_limit
                )
            ],
            browsers=[
                BrowserMetric(browser=browser, visits=visits)
                for browser, visits in _top_by_distinct_visitors(
                    page_views, lambda pv: pv.browser, self.top_browsers_limit
                )
            ]
        )

    def _session_metrics(self, sessions) -> SessionMetrics:
        total = len(sessions)
        durations = [s.duration_ms for s in sessions if s.duration_ms is not None]
        bounced = sum(1 for s in sessions if s.bounced)

        avg_duration = round_half_up(sum(durations) / len(durations) / 1000) if durations else 0
        bounce_rate = round_half_up(bounced / total * 100) if total else 0

        return SessionMetrics(total=total, avg_duration=avg_duration, bounce_rate=bounce_rate)

    def _top_pages(self, page_views: List[PageView]) -> List[PageMetric]:
        views: Dict[Tuple[str, Optional[str]], int] = {}
        for page_view in page_views:
            key = (page_view.path, page_view.title)
            views[key] = views.get(key, 0) + 1

        ranked = sorted(views.items(), key=lambda item: item[1], reverse=True)
        return [
            PageMetric(path=path, title=title or "Untitled", views=count)
            for (path, title), count in ranked[:self.top_pages_limit]
        ]

    def _top_countries(self, page_views: List[PageView]) -> List[CountryMetric]:
        codes: Dict[str, str] = {}
        for page_view in page_views:
            if page_view.country and page_view.country_code:
                codes.setdefault(page_view.country, page_view.country_code)

        return [
            CountryMetric(
                country=codes.get(name) or name[:2].upper(),
                name=name,
                visits=visits
            )
            for name, visits in _top_by_distinct_visitors(
                page_views, lambda pv: pv.country, self.top_countries_limit
            )
        ]
