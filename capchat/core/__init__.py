"""
Core domain models and pure functions for capchat.

This module contains the alert model, the CAP and feed parsers,
the geometry seam and the geofence filters. Nothing here performs
network or filesystem I/O.
"""

from .models import Alert, AlertInfo, AlertReference, Area, Output, Severity
from .cap import parse_cap, parse_polygon, format_polygon, circle_to_polygon
from .feed import parse_feed
from .geofence import filter_by_boundaries, filter_by_severity

__all__ = [
    "Alert", "AlertInfo", "AlertReference", "Area", "Output", "Severity",
    "parse_cap", "parse_polygon", "format_polygon", "circle_to_polygon",
    "parse_feed", "filter_by_boundaries", "filter_by_severity",
]
