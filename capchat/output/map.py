"""
Situational map composition for capchat.

This module merges the boundaries of interest into a crop mask, crops
alert areas and basemap outlines to it, lays them out as a vector scene
and rasterizes the result to PNG.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry

from capchat.core.errors import GeometryError
from capchat.core.geometry import (
    BBox,
    as_multipolygon,
    bounding_box,
    concave_hull,
    contains,
    intersection,
    polygons_of,
    union_all,
    valid_polygons,
)
from capchat.core.models import Alert, Output
from capchat.output.raster import encode_png, rasterize
from capchat.output.scene import Layer, Scene, Style, build_scene
from capchat.output.text import format_text
from capchat.observability.logging_setup import get_logger

log = get_logger("capchat.map")


@dataclass(frozen=True)
class MapStyle:
    """지도 색상 설정"""
    background: str = "#f4f1ea"
    basemap: Style = Style(fill="#e3e0d8", stroke="#9c9889", opacity=1.0, stroke_width=1)
    areas: Style = Style(fill="#e8541c", stroke="#a8320a", opacity=0.6, stroke_width=2)


@dataclass
class MapPlan:
    """래스터화 전 지오메트리 단계의 결과"""
    mask: BaseGeometry
    areas: MultiPolygon
    basemap: MultiPolygon
    bbox: BBox
    areas_cropped: bool


def crop_mask(boundaries: BaseGeometry) -> BaseGeometry:
    """관심 경계를 합집합 후 오목 껍질로 다듬어 하나의 자르기 영역으로 만듭니다."""
    polys = polygons_of(boundaries)
    if not polys:
        return MultiPolygon()
    return concave_hull(union_all(valid_polygons(polys)))


def areas_layer(alerts: Iterable[Alert]) -> MultiPolygon:
    """모든 경보 영역 폴리곤 (guid 순으로 고정, 자기 교차는 보정)"""
    return as_multipolygon(valid_polygons(
        p for alert in sorted(alerts, key=lambda a: a.guid) for p in alert.polygons()
    ))


def crop(layer: MultiPolygon, mask: BaseGeometry) -> MultiPolygon:
    """
    레이어를 마스크로 자릅니다. 마스크가 비었거나 이미 전부 포함하면 그대로.

    겹치는 폴리곤이 각자 보이도록 폴리곤 단위로 교집합을 구합니다.
    """
    polys: List[Polygon] = list(layer.geoms)
    if mask.is_empty or all(contains(mask, p) for p in polys):
        return layer
    return as_multipolygon(q for p in polys for q in intersection(p, mask).geoms)


def plan(alerts: Iterable[Alert],
         boundaries: BaseGeometry,
         outlines: Optional[BaseGeometry] = None) -> MapPlan:
    """
    자르기 영역, 경보 레이어, 배경 지도, 전체 경계 상자를 계산합니다.

    Raises:
        GeometryError: 그릴 것이 없음
    """
    mask = crop_mask(boundaries)
    areas = areas_layer(alerts)

    cropped = not mask.is_empty and not all(contains(mask, p) for p in areas.geoms)
    if cropped:
        areas = crop(areas, mask)
        log.debug(f"경보 영역을 관심 경계로 자름: {len(areas.geoms)}개 폴리곤")

    basemap = as_multipolygon(valid_polygons(polygons_of(outlines)))
    if not basemap.is_empty:
        basemap = crop(basemap, mask)

    bbox = bounding_box(mask) or bounding_box(areas)
    if bbox is None:
        raise GeometryError("nothing to draw: no boundaries and no alert areas")

    return MapPlan(mask=mask, areas=areas, basemap=basemap, bbox=bbox, areas_cropped=cropped)


class MapCompositor:
    """경보 집합 + 경계 + 외곽선 → PNG 지도와 텍스트 요약"""

    def __init__(self,
                 *,
                 max_width: int = 1024,
                 max_height: int = 1024,
                 style: Optional[MapStyle] = None,
                 formatter: Callable[[Iterable[Alert]], Output] = format_text):
        """
        초기화합니다.

        Args:
            max_width: 최대 이미지 너비 (픽셀)
            max_height: 최대 이미지 높이 (픽셀)
            style: 지도 색상
            formatter: 텍스트 요약 함수
        """
        self.max_width = max_width
        self.max_height = max_height
        self.style = style or MapStyle()
        self.formatter = formatter

    def scene(self, p: MapPlan) -> Scene:
        return build_scene(
            p.bbox,
            [
                Layer("basemap", list(p.basemap.geoms), self.style.basemap),
                Layer("areas", list(p.areas.geoms), self.style.areas),
            ],
            max_width=self.max_width,
            max_height=self.max_height,
            background=self.style.background,
        )

    def render(self,
               alerts: Iterable[Alert],
               boundaries: BaseGeometry,
               outlines: Optional[BaseGeometry] = None) -> bytes:
        """
        지도를 PNG로 그립니다.

        Raises:
            GeometryError: 빈 경계 상자, 크기 0 이미지
            RenderError: 래스터화/인코딩 실패
        """
        p = plan(alerts, boundaries, outlines)
        scene = self.scene(p)
        log.info(f"지도 그리기: bbox={p.bbox}, size={scene.width}x{scene.height}")
        image = rasterize(scene, self.max_width, self.max_height)
        png = encode_png(image)
        log.debug(f"PNG 인코딩 완료: {image.size[0]}x{image.size[1]}, bytes={len(png)}")
        return png

    def compose(self,
                alerts: Iterable[Alert],
                boundaries: BaseGeometry,
                outlines: Optional[BaseGeometry] = None) -> Output:
        """텍스트 요약과 지도 이미지를 함께 반환합니다."""
        alerts = set(alerts)
        image = self.render(alerts, boundaries, outlines)
        text = self.formatter(alerts)
        return Output(message=text.message, image=image)
