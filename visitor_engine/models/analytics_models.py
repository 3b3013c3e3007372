"""
Dashboard data models.

This module contains Pydantic models for the web analytics payload returned by
the aggregator. Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class _DashboardModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TrendPoint(_DashboardModel):
    """One daily bucket of a metric."""
    date: str = Field(description="Start of the UTC day (ISO format)")
    value: int = Field(description="Metric value for the day")


class MetricSeries(_DashboardModel):
    """A window total plus its daily trend."""
    total: int = Field(default=0, description="Total over the window")
    trend: List[TrendPoint] = Field(default_factory=list, description="Daily buckets, ascending")


class SessionMetrics(_DashboardModel):
    """Session count and quality over the window."""
    total: int = Field(default=0, description="Sessions started in the window")
    avg_duration: int = Field(default=0, alias="avgDuration", description="Average closed session duration in seconds")
    bounce_rate: int = Field(default=0, alias="bounceRate", description="Bounced sessions as a rounded percentage")


class PageMetric(_DashboardModel):
    path: str
    title: str = "Untitled"
    views: int = 0


class CountryMetric(_DashboardModel):
    country: str = Field(description="Country code")
    name: str = Field(description="Country name")
    visits: int = 0


class DeviceMetric(_DashboardModel):
    device: str
    visits: int = 0
    percentage: float = 0


class BrowserMetric(_DashboardModel):
    browser: str
    visits: int = 0
    percentage: float = 0


class WebAnalytics(_DashboardModel):
    """Complete web analytics result for one rolling window."""
    page_views: MetricSeries = Field(default_factory=MetricSeries, alias="pageViews")
    unique_visitors: MetricSeries = Field(default_factory=MetricSeries, alias="uniqueVisitors")
    sessions: SessionMetrics = Field(default_factory=SessionMetrics)
    top_pages: List[PageMetric] = Field(default_factory=list, alias="topPages")
    countries: List[CountryMetric] = Field(default_factory=list)
    devices: List[DeviceMetric] = Field(default_factory=list)
    browsers: List[BrowserMetric] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "WebAnalytics":
        """All-zero result with empty breakdowns."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dictionary served to the dashboard."""
        return self.model_dump(by_alias=True)
