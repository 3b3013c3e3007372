"""
Persistent entities of the visitor engine.

Visitors, their sessions and the page views linking the two. Timestamps are
kept as timezone-aware UTC datetimes in memory and as ISO-8601 strings on disk.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp, assuming UTC for naive values."""
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Visitor:
    """One inferred browsing identity, keyed by fingerprint."""

    id: str
    fingerprint: str
    first_visit_at: datetime
    last_visit_at: datetime
    total_visits: int = 0
    total_page_views: int = 0
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    browser: Optional[str] = None
    browser_version: Optional[str] = None
    device: Optional[str] = None
    device_type: Optional[str] = None
    os: Optional[str] = None
    os_version: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    city: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "fingerprint": self.fingerprint,
            "first_visit_at": to_iso(self.first_visit_at),
            "last_visit_at": to_iso(self.last_visit_at),
            "total_visits": self.total_visits,
            "total_page_views": self.total_page_views,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "browser": self.browser,
            "browser_version": self.browser_version,
            "device": self.device,
            "device_type": self.device_type,
            "os": self.os,
            "os_version": self.os_version,
            "country": self.country,
            "country_code": self.country_code,
            "city": self.city
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Visitor':
        """Create Visitor from dictionary."""
        return cls(
            id=data["id"],
            fingerprint=data["fingerprint"],
            first_visit_at=from_iso(data["first_visit_at"]),
            last_visit_at=from_iso(data["last_visit_at"]),
            total_visits=data.get("total_visits", 0),
            total_page_views=data.get("total_page_views", 0),
            ip_address=data.get("ip_address"),
            user_agent=data.get("user_agent"),
            browser=data.get("browser"),
            browser_version=data.get("browser_version"),
            device=data.get("device"),
            device_type=data.get("device_type"),
            os=data.get("os"),
            os_version=data.get("os_version"),
            country=data.get("country"),
            country_code=data.get("country_code"),
            city=data.get("city")
        )


@dataclass
class VisitorSession:
    """One continuous browsing episode of a visitor."""

    id: str
    visitor_id: str
    started_at: datetime
    last_activity_at: datetime
    entry_page: str
    last_page: str
    page_view_count: int = 1
    referrer: Optional[str] = None
    ended_at: Optional[datetime] = None
    exit_page: Optional[str] = None
    duration_ms: Optional[int] = None
    bounced: bool = False
    close_reason: Optional[str] = None  # "next_event" or "timeout"

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "visitor_id": self.visitor_id,
            "started_at": to_iso(self.started_at),
            "last_activity_at": to_iso(self.last_activity_at),
            "ended_at": to_iso(self.ended_at),
            "entry_page": self.entry_page,
            "exit_page": self.exit_page,
            "last_page": self.last_page,
            "referrer": self.referrer,
            "page_view_count": self.page_view_count,
            "duration_ms": self.duration_ms,
            "bounced": self.bounced,
            "close_reason": self.close_reason
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VisitorSession':
        """Create VisitorSession from dictionary."""
        return cls(
            id=data["id"],
            visitor_id=data["visitor_id"],
            started_at=from_iso(data["started_at"]),
            last_activity_at=from_iso(data["last_activity_at"]),
            ended_at=from_iso(data.get("ended_at")),
            entry_page=data.get("entry_page", ""),
            exit_page=data.get("exit_page"),
            last_page=data.get("last_page") or data.get("entry_page", ""),
            referrer=data.get("referrer"),
            page_view_count=data.get("page_view_count", 1),
            duration_ms=data.get("duration_ms"),
            bounced=data.get("bounced", False),
            close_reason=data.get("close_reason")
        )


@dataclass
class PageView:
    """Immutable record of one viewed path."""

    id: str
    path: str
    visitor_id: str
    session_id: str
    viewed_at: datetime
    title: Optional[str] = None
    referrer: Optional[str] = None
    user_id: Optional[str] = None
    user_agent: Optional[str] = None
    browser: Optional[str] = None
    device: Optional[str] = None
    device_type: Optional[str] = None
    os: Optional[str] = None
    ip_address: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    city: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "path": self.path,
            "title": self.title,
            "referrer": self.referrer,
            "visitor_id": self.visitor_id,
            "session_id": self.session_id,
            "user_id": self.user_id,
            "user_agent": self.user_agent,
            "browser": self.browser,
            "device": self.device,
            "device_type": self.device_type,
            "os": self.os,
            "ip_address": self.ip_address,
            "country": self.country,
            "country_code": self.country_code,
            "city": self.city,
            "viewed_at": to_iso(self.viewed_at)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PageView':
        """Create PageView from dictionary."""
        return cls(
            id=data["id"],
            path=data["path"],
            visitor_id=data["visitor_id"],
            session_id=data["session_id"],
            viewed_at=from_iso(data["viewed_at"]),
            title=data.get("title"),
            referrer=data.get("referrer"),
            user_id=data.get("user_id"),
            user_agent=data.get("user_agent"),
            browser=data.get("browser"),
            device=data.get("device"),
            device_type=data.get("device_type"),
            os=data.get("os"),
            ip_address=data.get("ip_address"),
            country=data.get("country"),
            country_code=data.get("country_code"),
            city=data.get("city")
        )
