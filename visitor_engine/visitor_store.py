"""
Visitor Store

Owns Visitor rows: find-or-create by fingerprint and every change to the
running totals. No other component touches total_visits or total_page_views.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from .models import DeviceInfo, LocationInfo, Visitor, new_id
from .store import AnalyticsSnapshot

logger = logging.getLogger(__name__)


class VisitorStore:
    """Upsert visitors by fingerprint and maintain their counters."""

    def find_or_create(
        self,
        snapshot: AnalyticsSnapshot,
        fingerprint: str,
        device: DeviceInfo,
        location: LocationInfo,
        now: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Tuple[Visitor, bool]:
        """Find the visitor for a fingerprint or create it.

        A new visitor starts with one visit and one page view. An existing
        visitor gets its facets and last_visit_at refreshed and one more page
        view; its visit count is left to record_new_visit().

        Returns:
            Tuple of (visitor, is_new)
        """
        visitor = snapshot.find_visitor(fingerprint)

        if visitor is None:
            visitor = Visitor(
                id=new_id(),
                fingerprint=fingerprint,
                first_visit_at=now,
                last_visit_at=now,
                total_visits=1,
                total_page_views=1
            )
            self._refresh_facets(visitor, device, location, ip_address, user_agent)
            snapshot.add_visitor(visitor)
            logger.debug(f"Created visitor {visitor.id} for fingerprint {fingerprint}")
            return visitor, True

        self._refresh_facets(visitor, device, location, ip_address, user_agent)
        visitor.last_visit_at = max(visitor.last_visit_at, now)
        visitor.total_page_views += 1
        return visitor, False

    def record_new_visit(self, visitor: Visitor) -> None:
        """Count one more visit (session) for an existing visitor."""
        visitor.total_visits += 1

    def _refresh_facets(
        self,
        visitor: Visitor,
        device: DeviceInfo,
        location: LocationInfo,
        ip_address: Optional[str],
        user_agent: Optional[str]
    ) -> None:
        visitor.ip_address = ip_address or visitor.ip_address
        visitor.user_agent = user_agent or visitor.user_agent

        if not device.is_empty():
            visitor.browser = device.browser or None
            visitor.browser_version = device.browser_version or None
            visitor.device = device.device or None
            visitor.device_type = device.device_type or None
            visitor.os = device.os or None
            visitor.os_version = device.os_version or None

        if not location.is_empty():
            visitor.country = location.country or None
            visitor.country_code = location.country_code or None
            visitor.city = location.city or None
