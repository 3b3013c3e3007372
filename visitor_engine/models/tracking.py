"""
Data structures for the page view write path.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class TrackRequest:
    """One inbound "a page was viewed" event."""

    path: str
    title: Optional[str] = None
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    user_id: Optional[str] = None
    extra_data: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> bool:
        """Validate the request structure."""
        return (
            isinstance(self.path, str) and bool(self.path.strip()) and
            (self.title is None or isinstance(self.title, str)) and
            (self.referrer is None or isinstance(self.referrer, str)) and
            (self.user_agent is None or isinstance(self.user_agent, str)) and
            (self.ip_address is None or isinstance(self.ip_address, str)) and
            (self.user_id is None or isinstance(self.user_id, str)) and
            isinstance(self.extra_data, dict)
        )


@dataclass
class DeviceInfo:
    """Facets parsed from a user agent string. Empty strings mean unknown."""

    browser: str = ""
    browser_version: str = ""
    device: str = ""
    device_type: str = ""
    os: str = ""
    os_version: str = ""

    def is_empty(self) -> bool:
        return not any(self.to_dict().values())

    def to_dict(self) -> Dict[str, str]:
        return {
            "browser": self.browser,
            "browser_version": self.browser_version,
            "device": self.device,
            "device_type": self.device_type,
            "os": self.os,
            "os_version": self.os_version
        }


@dataclass
class LocationInfo:
    """Coarse location of a network address. Empty strings mean unknown."""

    country: str = ""
    country_code: str = ""
    city: str = ""

    def is_empty(self) -> bool:
        return not (self.country or self.country_code or self.city)

    def to_dict(self) -> Dict[str, str]:
        return {
            "country": self.country,
            "country_code": self.country_code,
            "city": self.city
        }


@dataclass
class TrackResult:
    """Outcome of tracking one page view.

    Either a success carrying the owning session and visitor ids, or a
    failure carrying the error that stopped the event from being recorded.
    """

    success: bool
    session_id: Optional[str] = None
    visitor_id: Optional[str] = None
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, session_id: str, visitor_id: str) -> "TrackResult":
        """Create a successful result."""
        return cls(success=True, session_id=session_id, visitor_id=visitor_id)

    @classmethod
    def failure(cls, error: Exception) -> "TrackResult":
        """Create a failed result."""
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        if self.success:
            return {
                "success": True,
                "sessionId": self.session_id,
                "visitorId": self.visitor_id
            }
        return {
            "success": False,
            "error": str(self.error) if self.error else None
        }
