"""
Geofence and severity filters for capchat.

This module implements the pure filtering predicates applied to the
set of newly ingested alerts: a geographic filter against the
boundaries of interest and a minimum severity filter.
"""

from typing import Iterable, Set

from shapely.geometry.base import BaseGeometry

from capchat.core.geometry import intersects_or_within, valid_polygons
from capchat.core.models import Alert, Severity
from capchat.observability import metrics
from capchat.observability.logging_setup import get_logger

log = get_logger("capchat.geofence")


def in_boundaries(alert: Alert, boundaries: BaseGeometry) -> bool:
    """경보 영역 폴리곤 중 하나라도 경계와 겹치거나 그 안에 있으면 True"""
    return any(intersects_or_within(p, boundaries) for p in valid_polygons(alert.polygons()))


def filter_by_boundaries(alerts: Iterable[Alert], boundaries: BaseGeometry) -> Set[Alert]:
    """
    관심 경계와 겹치는 경보만 남깁니다.

    Args:
        alerts: 경보 집합
        boundaries: 관심 경계 (MultiPolygon)

    Returns:
        필터링된 경보 집합. 경계가 비어 있으면 입력 그대로
    """
    alerts = set(alerts)
    if boundaries is None or boundaries.is_empty:
        log.debug("경계 없음, 지리 필터 생략")
        return alerts

    kept = {a for a in alerts if in_boundaries(a, boundaries)}
    dropped = len(alerts) - len(kept)
    if dropped:
        metrics.alerts_filtered.labels(filter="boundaries").inc(dropped)
    log.debug(f"지리 필터: {len(kept)}/{len(alerts)}개 유지")
    return kept


def filter_by_severity(alerts: Iterable[Alert], minimum: Severity) -> Set[Alert]:
    """
    심각도가 임계값 이상인 경보만 남깁니다.

    Args:
        alerts: 경보 집합
        minimum: 최소 심각도

    Returns:
        필터링된 경보 집합
    """
    alerts = set(alerts)
    kept = {a for a in alerts if a.severity >= minimum}
    dropped = len(alerts) - len(kept)
    if dropped:
        metrics.alerts_filtered.labels(filter="severity").inc(dropped)
    log.debug(f"심각도 필터(>= {minimum}): {len(kept)}/{len(alerts)}개 유지")
    return kept
