"""
Models package for the visitor engine.

Dataclasses for the persisted entities and the write path, Pydantic models for
the dashboard payload.
"""

from .entities import (
    Visitor,
    VisitorSession,
    PageView,
    utc_now,
    new_id,
    to_iso,
    from_iso
)

from .tracking import (
    TrackRequest,
    TrackResult,
    DeviceInfo,
    LocationInfo
)

from .analytics_models import (
    WebAnalytics,
    MetricSeries,
    TrendPoint,
    SessionMetrics,
    PageMetric,
    CountryMetric,
    DeviceMetric,
    BrowserMetric
)

__all__ = [
    "Visitor",
    "VisitorSession",
    "PageView",
    "utc_now",
    "new_id",
    "to_iso",
    "from_iso",
    "TrackRequest",
    "TrackResult",
    "DeviceInfo",
    "LocationInfo",
    "WebAnalytics",
    "MetricSeries",
    "TrendPoint",
    "SessionMetrics",
    "PageMetric",
    "CountryMetric",
    "DeviceMetric",
    "BrowserMetric",
]
