"""
Page View Recorder

Appends immutable page view records once the owning session is settled.
"""

from datetime import datetime
from typing import Optional

from .models import DeviceInfo, LocationInfo, PageView, Visitor, VisitorSession, new_id
from .store import AnalyticsSnapshot


class PageViewRecorder:
    """Append-only writer for page views."""

    def record(
        self,
        snapshot: AnalyticsSnapshot,
        path: str,
        visitor: Visitor,
        session: VisitorSession,
        device: DeviceInfo,
        location: LocationInfo,
        viewed_at: datetime,
        title: Optional[str] = None,
        referrer: Optional[str] = None,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> PageView:
        """Append one page view linked to a visitor and session."""
        page_view = PageView(
            id=new_id(),
            path=path,
            title=title,
            referrer=referrer,
            visitor_id=visitor.id,
            session_id=session.id,
            user_id=user_id,
            user_agent=user_agent,
            browser=device.browser or None,
            device=device.device or None,
            device_type=device.device_type or None,
            os=device.os or None,
            ip_address=ip_address,
            country=location.country or None,
            country_code=location.country_code or None,
            city=location.city or None,
            viewed_at=viewed_at
        )
        snapshot.add_page_view(page_view)
        return page_view
