"""
Metrics definitions for capchat.

This module defines Prometheus counters for the ingestion
and filtering pipeline.
"""

from prometheus_client import Counter

feeds_fetched = Counter(
    "capchat_feeds_fetched_total",
    "Number of syndication feeds fetched and parsed",
    ["media_type"]
)

references_seen = Counter(
    "capchat_references_seen_total",
    "Number of alert references extracted from feeds"
)

references_duplicate = Counter(
    "capchat_references_duplicate_total",
    "Number of alert references already present in the dedup cache"
)

alerts_parsed = Counter(
    "capchat_alerts_parsed_total",
    "Number of CAP documents fetched and parsed",
    ["severity"]
)

circles_skipped = Counter(
    "capchat_circles_skipped_total",
    "Number of CAP circles that could not be turned into polygons"
)

alerts_filtered = Counter(
    "capchat_alerts_filtered_total",
    "Number of alerts dropped by a filter",
    ["filter"]
)
