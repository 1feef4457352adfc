"""
Layered vector scene for capchat maps.

A scene is an ordered list of polygon layers over a background, in
image space: translated so the bounding box origin is the image origin
and flipped so y grows downwards.
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from shapely.geometry import Polygon

from capchat.core.errors import GeometryError
from capchat.core.geometry import BBox

Point = Tuple[float, float]


@dataclass(frozen=True)
class Style:
    """레이어 스타일"""
    fill: str
    stroke: str
    opacity: float = 1.0
    stroke_width: int = 1


@dataclass(frozen=True)
class Transform:
    """지도 좌표(y 위쪽) → 이미지 좌표(y 아래쪽)"""
    min_x: float
    max_y: float
    scale: float

    def apply(self, x: float, y: float) -> Point:
        return ((x - self.min_x) * self.scale, (self.max_y - y) * self.scale)

    def ring(self, coords: Sequence[Sequence[float]]) -> List[Point]:
        return [self.apply(c[0], c[1]) for c in coords]


@dataclass
class Layer:
    name: str
    polygons: List[Polygon]
    style: Style


@dataclass
class Scene:
    """배경 + 레이어 (앞에서부터 차례로 그림)"""
    bbox: BBox
    width: int
    height: int
    transform: Transform
    background: str
    layers: List[Layer] = field(default_factory=list)


def fit(bbox: BBox, max_width: int, max_height: int) -> Tuple[int, int, Transform]:
    """
    경계 상자를 비율을 유지하며 max_width x max_height 안에 맞춥니다.

    Returns:
        (장면 너비, 장면 높이, 변환)

    Raises:
        GeometryError: 면적 0인 경계 상자 또는 크기 0 이미지 요청
    """
    if max_width <= 0 or max_height <= 0:
        raise GeometryError(f"requested image size is empty: {max_width}x{max_height}")
    min_x, min_y, max_x, max_y = bbox
    w, h = max_x - min_x, max_y - min_y
    if w <= 0 or h <= 0:
        raise GeometryError(f"bounding box has no area: {bbox}")

    scale = min(max_width / w, max_height / h)
    width = max(1, min(max_width, round(w * scale)))
    height = max(1, min(max_height, round(h * scale)))
    return width, height, Transform(min_x=min_x, max_y=max_y, scale=scale)


def build_scene(bbox: BBox,
                layers: List[Layer],
                *,
                max_width: int,
                max_height: int,
                background: str) -> Scene:
    """빈 레이어는 건너뛰고 장면을 구성합니다."""
    width, height, transform = fit(bbox, max_width, max_height)
    return Scene(
        bbox=bbox,
        width=width,
        height=height,
        transform=transform,
        background=background,
        layers=[l for l in layers if l.polygons],
    )
