"""
Live visitors: sessions that are open and were active in the last few minutes.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from .models import to_iso, utc_now
from .store import AnalyticsStore


class LiveVisitorsService:
    """Read-only view of currently active sessions."""

    def __init__(self, store: AnalyticsStore, live_window: timedelta = timedelta(minutes=5)):
        self.store = store
        self.live_window = live_window

    def get_live_visitors(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Get open sessions active within the live window, most recent first."""
        now = now or utc_now()
        cutoff = now - self.live_window
        snapshot = self.store.snapshot()

        active = sorted(
            (s for s in snapshot.open_sessions() if s.last_activity_at >= cutoff),
            key=lambda s: s.last_activity_at,
            reverse=True
        )

        visitors = []
        for session in active:
            visitor = snapshot.visitors.get(session.visitor_id)
            visitors.append({
                "id": session.id,
                "currentPage": session.last_page,
                "country": visitor.country if visitor else None,
                "device": visitor.device_type if visitor else None,
                "browser": visitor.browser if visitor else None,
                "startedAt": to_iso(session.started_at),
                "pageViewCount": session.page_view_count,
                "lastActivity": to_iso(session.last_activity_at)
            })

        return {
            "count": len(visitors),
            "visitors": visitors,
            "timestamp": to_iso(now)
        }
