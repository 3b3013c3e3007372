"""
Visitor fingerprinting.

Derives a best-effort key approximating one browser instance from request
attributes. The key is a stable digest: the same inputs always produce the
same fingerprint, so returning visitors are recognised.
"""

import hashlib
from typing import Any, Dict, Optional

FINGERPRINT_LENGTH = 32

# Client hints sent by the tracking snippet, in digest order
CLIENT_HINT_KEYS = ("screenResolution", "timezoneOffset", "language")


def _client_hints(extra_data: Optional[Dict[str, Any]]) -> list[str]:
    if not isinstance(extra_data, dict):
        return []
    hints = []
    for key in CLIENT_HINT_KEYS:
        value = extra_data.get(key)
        if value is None or value == "":
            continue
        hints.append(f"{key}={value}")
    return hints


def generate_fingerprint(
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
    extra_data: Optional[Dict[str, Any]] = None
) -> str:
    """Generate a visitor fingerprint.

    Args:
        user_agent: Raw User-Agent header
        ip_address: Client network address
        extra_data: Optional client hints (screenResolution, timezoneOffset, language)

    Returns:
        Lowercase hex key of FINGERPRINT_LENGTH characters. Never raises;
        missing inputs only make the key less specific.
    """
    components = [
        f"ua={(user_agent or '').strip()}",
        f"ip={(ip_address or '').strip()}",
    ]
    components.extend(_client_hints(extra_data))
    combined = "|".join(components)
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
