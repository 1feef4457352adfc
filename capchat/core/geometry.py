"""
Planar geometry operations for capchat.

This module is the single seam between capchat and shapely: union,
intersection, containment, concave hull and bounding boxes over
polygons in (lon, lat) treated as Cartesian coordinates. It also
provides the cheap-ruler approximation used to turn CAP circles into
polygons.
"""

import math
from functools import reduce
from typing import Iterable, List, Optional, Tuple

import shapely
from shapely.errors import GEOSException
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry

from capchat.core.errors import GeometryError

BBox = Tuple[float, float, float, float]

# 1이면 볼록 껍질, 0에 가까울수록 점들을 더 촘촘히 감쌈
CONCAVE_HULL_RATIO = 0.3

# WGS84 타원체 (cheap-ruler 상수)
_RE_KM = 6378.137
_FE = 1 / 298.257223563
_E2 = _FE * (2 - _FE)
_RAD = math.pi / 180


def polygons_of(geom: Optional[BaseGeometry]) -> List[Polygon]:
    """
    지오메트리에서 폴리곤만 평탄화하여 꺼냅니다.

    Polygon, MultiPolygon, GeometryCollection(재귀)만 남기고
    나머지 타입은 버립니다.
    """
    if geom is None or geom.is_empty:
        return []
    if isinstance(geom, Polygon):
        return [geom]
    if isinstance(geom, (MultiPolygon, GeometryCollection)):
        return [p for g in geom.geoms for p in polygons_of(g)]
    return []


def valid_polygons(polygons: Iterable[Polygon]) -> List[Polygon]:
    """
    자기 교차(bow-tie) 등 잘못된 폴리곤을 make_valid로 고쳐 폴리곤 부분만 반환합니다.

    유효한 폴리곤은 그대로 둡니다.

    Raises:
        GeometryError: GEOS 연산 실패
    """
    out: List[Polygon] = []
    for p in polygons:
        if p.is_empty:
            continue
        if p.is_valid:
            out.append(p)
            continue
        try:
            out.extend(polygons_of(shapely.make_valid(p)))
        except GEOSException as e:
            raise GeometryError(f"polygon repair failed: {e}") from e
    return out


def as_multipolygon(polygons: Iterable[Polygon]) -> MultiPolygon:
    return MultiPolygon([p for p in polygons if not p.is_empty])


def union_all(polygons: Iterable[Polygon]) -> BaseGeometry:
    """
    폴리곤들을 쌍 단위로 반복 합집합하여 하나의 영역으로 만듭니다.

    Raises:
        GeometryError: GEOS 연산 실패
    """
    polygons = [p for p in polygons if not p.is_empty]
    if not polygons:
        return MultiPolygon()
    try:
        return reduce(lambda acc, p: acc.union(p), polygons[1:], polygons[0])
    except GEOSException as e:
        raise GeometryError(f"polygon union failed: {e}") from e


def concave_hull(geom: BaseGeometry, ratio: float = CONCAVE_HULL_RATIO) -> BaseGeometry:
    """흩어진 조각들을 감싸는 오목 껍질. 폴리곤이 나오지 않으면 입력을 그대로 돌려줍니다."""
    if geom.is_empty:
        return geom
    try:
        hull = shapely.concave_hull(geom, ratio=ratio)
    except GEOSException as e:
        raise GeometryError(f"concave hull failed: {e}") from e
    if hull.is_empty or not polygons_of(hull):
        return geom
    return hull


def intersection(geom: BaseGeometry, mask: BaseGeometry) -> MultiPolygon:
    """
    geom을 mask로 잘라 폴리곤 부분만 MultiPolygon으로 반환합니다.

    Raises:
        GeometryError: GEOS 연산 실패
    """
    try:
        return as_multipolygon(polygons_of(geom.intersection(mask)))
    except GEOSException as e:
        raise GeometryError(f"polygon intersection failed: {e}") from e


def contains(outer: BaseGeometry, inner: BaseGeometry) -> bool:
    if outer.is_empty:
        return False
    try:
        return outer.contains(inner)
    except GEOSException as e:
        raise GeometryError(f"containment test failed: {e}") from e


def intersects_or_within(polygon: BaseGeometry, region: BaseGeometry) -> bool:
    """폴리곤이 영역과 겹치거나 영역 안에 포함되면 True"""
    try:
        return polygon.intersects(region) or polygon.within(region)
    except GEOSException as e:
        raise GeometryError(f"intersection test failed: {e}") from e


def bounding_box(geom: Optional[BaseGeometry]) -> Optional[BBox]:
    """(min_x, min_y, max_x, max_y), 비어 있으면 None"""
    if geom is None or geom.is_empty:
        return None
    return tuple(geom.bounds)


class CheapRuler:
    """
    기준 위도 주변의 국지 평면 근사 (Mapbox cheap-ruler, WGS84 타원체).

    수십 km 단위의 지역 반경에서만 충분히 정확합니다.
    거리 단위는 킬로미터입니다.
    """

    def __init__(self, lat: float):
        m = _RAD * _RE_KM
        coslat = math.cos(lat * _RAD)
        w2 = 1 / (1 - _E2 * (1 - coslat * coslat))
        w = math.sqrt(w2)
        self.kx = m * w * coslat
        self.ky = m * w * w2 * (1 - _E2)

    def offset(self, point: Tuple[float, float], dx: float, dy: float) -> Tuple[float, float]:
        return (point[0] + dx / self.kx, point[1] + dy / self.ky)

    def destination(self, point: Tuple[float, float], dist: float, bearing: float) -> Tuple[float, float]:
        """
        (lon, lat) 지점에서 방위각 bearing(도, 북쪽 기준 시계방향)으로
        dist km 떨어진 지점을 반환합니다.
        """
        a = bearing * _RAD
        return self.offset(point, math.sin(a) * dist, math.cos(a) * dist)

    def distance(self, a: Tuple[float, float], b: Tuple[float, float]) -> float:
        dx = (a[0] - b[0]) * self.kx
        dy = (a[1] - b[1]) * self.ky
        return math.sqrt(dx * dx + dy * dy)
