# Visitor identification and session reconstruction engine

from .errors import AnalyticsError, StoreError
from .fingerprint import generate_fingerprint
from .user_agent_parser import parse_user_agent
from .location_resolver import LocationResolver, StaticLocationResolver
from .store import AnalyticsStore, AnalyticsSnapshot
from .visitor_store import VisitorStore
from .session_reconstructor import (
    SessionReconstructor,
    DEFAULT_SESSION_TIMEOUT,
    CLOSED_BY_NEXT_EVENT,
    CLOSED_BY_TIMEOUT,
)
from .page_view_recorder import PageViewRecorder
from .tracker import PageViewTracker
from .aggregator import (
    AnalyticsAggregator,
    TIME_RANGES,
    DEFAULT_TIME_RANGE,
    resolve_time_range,
)
from .live_visitors import LiveVisitorsService
from .logging_config import (
    setup_logging,
    stop_logging,
    get_logger,
    ThreadSafeLoggingConfig,
)

__all__ = [
    "AnalyticsError",
    "StoreError",
    "generate_fingerprint",
    "parse_user_agent",
    "LocationResolver",
    "StaticLocationResolver",
    "AnalyticsStore",
    "AnalyticsSnapshot",
    "VisitorStore",
    "SessionReconstructor",
    "DEFAULT_SESSION_TIMEOUT",
    "CLOSED_BY_NEXT_EVENT",
    "CLOSED_BY_TIMEOUT",
    "PageViewRecorder",
    "PageViewTracker",
    "AnalyticsAggregator",
    "TIME_RANGES",
    "DEFAULT_TIME_RANGE",
    "resolve_time_range",
    "LiveVisitorsService",
    "setup_logging",
    "stop_logging",
    "get_logger",
    "ThreadSafeLoggingConfig",
]
