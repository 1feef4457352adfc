"""
Output rendering for capchat: text summaries, JSON and situational maps.
"""

from .formats import OutputFormat, format_json
from .map import MapCompositor, MapStyle
from .text import format_text

__all__ = ["OutputFormat", "format_json", "MapCompositor", "MapStyle", "format_text"]
