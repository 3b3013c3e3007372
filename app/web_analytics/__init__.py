"""
Web Analytics Module

Admin dashboard over tracked page views, visitors and sessions.
"""

from .factory import create_web_analytics_module

__all__ = ["create_web_analytics_module"]
