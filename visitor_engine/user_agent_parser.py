"""
User agent classification using the user-agents library.

Parses raw User-Agent strings into browser, OS and device facets. Parsing is
fail-open: unknown or malformed input yields empty facets instead of an error.
"""

import logging
from typing import Optional

from user_agents import parse as parse_ua
from user_agents.parsers import UserAgent

from .models import DeviceInfo

logger = logging.getLogger(__name__)

# Family reported by ua-parser when nothing matched
UNKNOWN_FAMILY = "Other"


def _family(value: Optional[str]) -> str:
    if not value or value == UNKNOWN_FAMILY:
        return ""
    return value


def _device_type(ua: UserAgent) -> str:
    """Determine device type: "bot", "mobile", "tablet", "desktop" or ""."""
    if ua.is_bot:
        return "bot"
    if ua.is_mobile:
        return "mobile"
    if ua.is_tablet:
        return "tablet"
    if ua.is_pc:
        return "desktop"
    return ""


def parse_user_agent(user_agent: Optional[str]) -> DeviceInfo:
    """Parse a user agent string to extract device information.

    Args:
        user_agent: Raw user agent string from the HTTP header

    Returns:
        DeviceInfo with parsed facets; all fields empty when the agent is
        missing, unrecognised or cannot be parsed.
    """
    if not user_agent or not user_agent.strip():
        return DeviceInfo()

    try:
        ua = parse_ua(user_agent)

        browser = _family(ua.browser.family)
        os_name = _family(ua.os.family)
        device = _family(ua.device.model) or _family(ua.device.family)

        if not (browser or os_name or device):
            return DeviceInfo()

        return DeviceInfo(
            browser=browser,
            browser_version=ua.browser.version_string if browser else "",
            device=device,
            device_type=_device_type(ua),
            os=os_name,
            os_version=ua.os.version_string if os_name else ""
        )
    except Exception as e:
        logger.warning(f"Failed to parse user agent {user_agent[:100]!r}: {e}")
        return DeviceInfo()
