"""
Error types raised by the visitor engine.
"""


class AnalyticsError(Exception):
    """Base class for visitor engine errors."""


class StoreError(AnalyticsError):
    """Raised when the analytics store cannot be read or written.

    Covers I/O failures, corrupt table files and constraint violations such as
    a duplicate fingerprint or a page view pointing at an unknown session.
    """
