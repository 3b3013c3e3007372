"""
Page View Tracking Module

Public endpoint that records page views from the frontend.
"""

from .factory import create_tracking_module

__all__ = ["create_tracking_module"]
