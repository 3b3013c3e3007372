"""
Utility functions for page view tracking.
"""

from typing import Any, Dict, Optional

from flask import request


def get_client_ip() -> Optional[str]:
    """Get client IP address, handling proxy headers."""
    if request.headers.get('X-Forwarded-For'):
        return request.headers.get('X-Forwarded-For').split(',')[0].strip()
    elif request.headers.get('X-Real-IP'):
        return request.headers.get('X-Real-IP')
    elif request.headers.get('CF-Connecting-IP'):
        return request.headers.get('CF-Connecting-IP')
    else:
        return request.remote_addr


def get_extra_data(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Client hints sent alongside the page view, accepted in either casing."""
    extra = payload.get("extraData")
    if extra is None:
        extra = payload.get("extra_data")
    return extra if isinstance(extra, dict) else {}


def add_cors_headers(response):
    """Allow the tracking script to post from any origin."""
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Access-Control-Allow-Methods'] = 'POST, OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    return response
