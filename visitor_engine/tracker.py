"""
Page View Tracker

Entry point of the write path. One tracked page view runs fingerprinting,
user agent and location enrichment, visitor upsert, session reconstruction and
the page view append inside a single store transaction, so an event is either
recorded completely or not at all.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from .fingerprint import generate_fingerprint
from .location_resolver import LocationResolver, StaticLocationResolver
from .models import TrackRequest, TrackResult, utc_now
from .page_view_recorder import PageViewRecorder
from .session_reconstructor import DEFAULT_SESSION_TIMEOUT, SessionReconstructor
from .store import AnalyticsStore
from .user_agent_parser import parse_user_agent
from .visitor_store import VisitorStore

logger = logging.getLogger(__name__)


class PageViewTracker:
    """Records page views and keeps visitors and sessions in step."""

    def __init__(
        self,
        store: AnalyticsStore,
        location_resolver: Optional[LocationResolver] = None,
        session_timeout: timedelta = DEFAULT_SESSION_TIMEOUT
    ):
        """Initialize the tracker.

        Args:
            store: Analytics store holding visitors, sessions and page views
            location_resolver: Resolver for client addresses (static region by default)
            session_timeout: Inactivity after which the next event starts a new session
        """
        self.store = store
        self.location_resolver = location_resolver or StaticLocationResolver()
        self.visitor_store = VisitorStore()
        self.session_reconstructor = SessionReconstructor(self.visitor_store, session_timeout)
        self.page_view_recorder = PageViewRecorder()

    def track_page_view(self, request: TrackRequest, now: Optional[datetime] = None) -> TrackResult:
        """Track a page view.

        Never raises: any failure is logged and reported as a failed result so
        that analytics can't break page delivery.

        Args:
            request: The page view event
            now: Event time, defaults to the current UTC time

        Returns:
            TrackResult with the session and visitor ids, or the error
        """
        try:
            if not request.validate():
                raise ValueError("Invalid page view request: a non-empty path is required")

            now = now or utc_now()
            fingerprint = generate_fingerprint(request.user_agent, request.ip_address, request.extra_data)
            device = parse_user_agent(request.user_agent)
            location = self.location_resolver.resolve(request.ip_address)

            with self.store.transaction() as snapshot:
                visitor, is_new = self.visitor_store.find_or_create(
                    snapshot,
                    fingerprint,
                    device,
                    location,
                    now,
                    ip_address=request.ip_address,
                    user_agent=request.user_agent
                )
                session, _ = self.session_reconstructor.resolve_session(
                    snapshot,
                    visitor,
                    is_new,
                    request.path,
                    request.referrer,
                    now
                )
                self.page_view_recorder.record(
                    snapshot,
                    request.path,
                    visitor,
                    session,
                    device,
                    location,
                    now,
                    title=request.title,
                    referrer=request.referrer,
                    user_id=request.user_id,
                    ip_address=request.ip_address,
                    user_agent=request.user_agent
                )

            logger.info(f"Tracked page view: {request.path} (visitor: {visitor.id}, session: {session.id})")
            return TrackResult.ok(session_id=session.id, visitor_id=visitor.id)

        except Exception as e:
            logger.exception(f"Analytics tracking error for {getattr(request, 'path', None)!r}: {e}")
            return TrackResult.failure(e)
