"""
capchat: CAP alert feed ingestion, geofencing and situational maps.
"""

__version__ = "0.2.0"
