"""
Boundary directory loader for capchat.

This module reads every *.geojson file of a directory concurrently and
flattens them into one geometry collection. Polygon rings must be
closed in the file itself; they are never repaired.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from shapely.errors import GEOSException
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon, shape
from shapely.geometry.base import BaseGeometry

from capchat.core.errors import ParseError
from capchat.core.geometry import as_multipolygon, polygons_of
from capchat.observability.logging_setup import get_logger

log = get_logger("capchat.geodir")

GEOJSON_GLOB = "*.geojson"


def _ring(coords: List[Any]) -> List[tuple]:
    ring = [tuple(c[:2]) for c in coords]
    if len(ring) < 4:
        raise ParseError(f"polygon ring needs at least 4 coordinates, got {len(ring)}")
    if ring[0] != ring[-1]:
        raise ParseError("polygon ring is not closed")
    return ring


def _polygon(rings: List[Any]) -> Polygon:
    if not rings:
        return Polygon()
    return Polygon(_ring(rings[0]), [_ring(r) for r in rings[1:]])


def geometry_from_geojson(obj: Dict[str, Any]) -> Optional[BaseGeometry]:
    """
    GeoJSON 지오메트리 객체 하나를 shapely 지오메트리로 변환합니다.

    Polygon/MultiPolygon은 링이 닫혀 있는지 직접 검사합니다.
    (shapely.shape는 열린 링을 조용히 닫아버림)

    Raises:
        ParseError: 열린 링 또는 잘못된 좌표
    """
    if obj is None:
        return None
    kind = obj.get("type")
    try:
        if kind == "Polygon":
            return _polygon(obj["coordinates"])
        if kind == "MultiPolygon":
            return MultiPolygon([_polygon(p) for p in obj["coordinates"]])
        if kind == "GeometryCollection":
            return GeometryCollection([
                g for g in (geometry_from_geojson(m) for m in obj.get("geometries", []))
                if g is not None
            ])
        return shape(obj)
    except (KeyError, TypeError, ValueError, IndexError, GEOSException) as e:
        raise ParseError(f"invalid GeoJSON {kind} geometry: {e}") from e


def geometries_from_geojson(doc: Dict[str, Any]) -> List[BaseGeometry]:
    """FeatureCollection, Feature, 지오메트리 문서를 지오메트리 목록으로 평탄화"""
    kind = doc.get("type") if isinstance(doc, dict) else None
    if kind == "FeatureCollection":
        return [g for f in doc.get("features", []) for g in geometries_from_geojson(f)]
    if kind == "Feature":
        g = geometry_from_geojson(doc.get("geometry"))
        return [g] if g is not None else []
    if kind is None:
        raise ParseError("not a GeoJSON object")
    g = geometry_from_geojson(doc)
    return [g] if g is not None else []


async def load_geojson(path: Path) -> GeometryCollection:
    """
    GeoJSON 파일 하나를 읽습니다.

    Raises:
        ParseError: JSON/GeoJSON 형식 오류 (파일 경로 포함)
    """
    log.debug(f"GeoJSON 읽기: {path}")
    contents = await asyncio.to_thread(path.read_bytes)
    log.debug(f"GeoJSON 파일 읽음: {path}, bytes={len(contents)}")
    try:
        doc = json.loads(contents)
        return GeometryCollection(geometries_from_geojson(doc))
    except json.JSONDecodeError as e:
        raise ParseError(f"{path}: invalid JSON: {e}") from e
    except ParseError as e:
        raise ParseError(f"{path}: {e}") from e


async def load_geo_dir(path: Optional[str | Path]) -> GeometryCollection:
    """
    디렉토리의 모든 *.geojson 파일을 동시에 읽어 하나로 합칩니다.

    경로가 없거나 디렉토리가 존재하지 않으면 빈 컬렉션을 반환합니다.
    """
    if not path:
        return GeometryCollection()
    directory = Path(path)
    if not directory.is_dir():
        log.warning(f"경계 디렉토리 없음: {directory}")
        return GeometryCollection()

    files = sorted(directory.glob(GEOJSON_GLOB))
    collections = await asyncio.gather(*(load_geojson(f) for f in files))
    geoms = [g for gc in collections for g in gc.geoms]
    log.debug(f"경계 지오메트리 로드: {directory}, files={len(files)}, geos={len(geoms)}")
    return GeometryCollection(geoms)


async def load_polygons(path: Optional[str | Path]) -> MultiPolygon:
    """
    디렉토리를 읽어 폴리곤만 남긴 BoundarySet을 반환합니다.

    Args:
        path: *.geojson 파일들이 있는 디렉토리

    Returns:
        MultiPolygon (비어 있을 수 있음)
    """
    gc = await load_geo_dir(path)
    polys = polygons_of(gc)
    log.debug(f"{path}: 폴리곤 {len(polys)}개")
    return as_multipolygon(polys)
