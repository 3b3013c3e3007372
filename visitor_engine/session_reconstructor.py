"""
Session Reconstructor

Decides for every incoming event whether it continues the visitor's current
session or starts a new one. Sessions are closed lazily: a session inactive
for longer than the timeout is closed when the visitor's next event arrives,
or by the close_stale_sessions() sweep.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from .models import Visitor, VisitorSession, new_id, utc_now
from .store import AnalyticsSnapshot, AnalyticsStore
from .visitor_store import VisitorStore

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TIMEOUT = timedelta(minutes=30)

CLOSED_BY_NEXT_EVENT = "next_event"
CLOSED_BY_TIMEOUT = "timeout"


class SessionReconstructor:
    """Per-visitor session state machine: no open session / open session."""

    def __init__(
        self,
        visitor_store: VisitorStore,
        session_timeout: timedelta = DEFAULT_SESSION_TIMEOUT
    ):
        self.visitor_store = visitor_store
        self.session_timeout = session_timeout

    def is_expired(self, session: VisitorSession, now: datetime) -> bool:
        """True when the session was last touched longer ago than the timeout."""
        return session.last_activity_at < now - self.session_timeout

    def close_session(self, session: VisitorSession, reason: str) -> None:
        """Stamp a session as closed at its last activity time."""
        if not session.is_open:
            return
        session.ended_at = session.last_activity_at
        session.exit_page = session.last_page
        session.duration_ms = int(
            (session.last_activity_at - session.started_at).total_seconds() * 1000
        )
        session.bounced = session.page_view_count <= 1
        session.close_reason = reason

    def resolve_session(
        self,
        snapshot: AnalyticsSnapshot,
        visitor: Visitor,
        is_new_visitor: bool,
        path: str,
        referrer: Optional[str],
        now: datetime
    ) -> Tuple[VisitorSession, bool]:
        """Attach an event to a session, opening or closing sessions as needed.

        Args:
            snapshot: Store unit of work the event runs in
            visitor: Owner of the event, already upserted by the VisitorStore
            is_new_visitor: True when the visitor was created by this event
            path: Path viewed by the event
            referrer: Referrer of the event
            now: Event time

        Returns:
            Tuple of (session owning the event, True if the session is new)
        """
        latest = None if is_new_visitor else snapshot.latest_session(visitor.id)

        if latest is not None and latest.is_open and not self.is_expired(latest, now):
            latest.last_activity_at = max(latest.last_activity_at, now)
            latest.page_view_count += 1
            latest.last_page = path
            return latest, False

        for session in snapshot.sessions_for(visitor.id):
            if session.is_open:
                self.close_session(session, CLOSED_BY_NEXT_EVENT)
                logger.debug(
                    f"Closed session {session.id} (pages={session.page_view_count}, "
                    f"bounced={session.bounced})"
                )

        session = VisitorSession(
            id=new_id(),
            visitor_id=visitor.id,
            started_at=now,
            last_activity_at=now,
            entry_page=path,
            last_page=path,
            referrer=referrer,
            page_view_count=1
        )
        snapshot.add_session(session)

        # Creating the visitor already counted its first visit
        if not is_new_visitor:
            self.visitor_store.record_new_visit(visitor)

        return session, True

    def close_stale_sessions(self, store: AnalyticsStore, now: Optional[datetime] = None) -> int:
        """Close every open session inactive beyond the timeout.

        Idempotent: already closed sessions are skipped, and sessions closed
        here are tagged with the "timeout" close reason.

        Returns:
            Number of sessions closed
        """
        now = now or utc_now()
        closed = 0
        with store.transaction() as snapshot:
            for session in snapshot.open_sessions():
                if self.is_expired(session, now):
                    self.close_session(session, CLOSED_BY_TIMEOUT)
                    closed += 1

        if closed:
            logger.info(f"Closed {closed} stale sessions")
        return closed
