"""
Pillow rasterizer for capchat scenes.

Each layer is filled through its own alpha mask (so polygon holes stay
transparent) and composited in order; outlines are drawn on top of
their layer's fill. The canvas starts fully transparent, so anything
outside the scene's background rectangle is trimmed afterwards.
"""

import io
from typing import Optional, Tuple

from PIL import Image, ImageChops, ImageColor, ImageDraw

from capchat.core.errors import RenderError
from capchat.output.scene import Layer, Scene, Transform
from capchat.observability.logging_setup import get_logger

log = get_logger("capchat.raster")


def _rgba(colour: str, opacity: float = 1.0) -> Tuple[int, int, int, int]:
    try:
        r, g, b = ImageColor.getrgb(colour)[:3]
    except ValueError as e:
        raise RenderError(f"invalid colour {colour!r}") from e
    return (r, g, b, round(255 * max(0.0, min(1.0, opacity))))


def _fill_mask(layer: Layer, size: Tuple[int, int], transform: Transform) -> Image.Image:
    combined = Image.new("L", size, 0)
    for poly in layer.polygons:
        mask = Image.new("L", size, 0)
        draw = ImageDraw.Draw(mask)
        draw.polygon(transform.ring(poly.exterior.coords), fill=255)
        for hole in poly.interiors:
            draw.polygon(transform.ring(hole.coords), fill=0)
        # 같은 레이어의 겹치는 폴리곤이 서로의 구멍을 지우지 않도록 합침
        combined = ImageChops.lighter(combined, mask)
    return combined


def _draw_layer(canvas: Image.Image, layer: Layer, transform: Transform) -> None:
    style = layer.style
    r, g, b, a = _rgba(style.fill, style.opacity)

    fill = Image.new("RGBA", canvas.size, (r, g, b, 0))
    fill.putalpha(_fill_mask(layer, canvas.size, transform).point(lambda v: v * a // 255))
    canvas.alpha_composite(fill)

    if style.stroke_width > 0:
        lines = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(lines)
        stroke = _rgba(style.stroke)
        for poly in layer.polygons:
            for ring in (poly.exterior, *poly.interiors):
                draw.line(transform.ring(ring.coords), fill=stroke, width=style.stroke_width, joint="curve")
        canvas.alpha_composite(lines)


def _clip(canvas: Image.Image, width: int, height: int) -> None:
    # 장면 영역 밖으로 번진 채우기/외곽선은 투명하게
    inside = Image.new("L", canvas.size, 0)
    ImageDraw.Draw(inside).rectangle((0, 0, width - 1, height - 1), fill=255)
    canvas.putalpha(ImageChops.multiply(canvas.getchannel("A"), inside))


def trim(image: Image.Image) -> Image.Image:
    """완전히 투명한 테두리를 잘라냅니다."""
    bbox: Optional[Tuple[int, int, int, int]] = image.getchannel("A").getbbox()
    if bbox is None:
        raise RenderError("rendered image is fully transparent")
    return image.crop(bbox)


def rasterize(scene: Scene, canvas_width: int, canvas_height: int) -> Image.Image:
    """
    장면을 canvas_width x canvas_height RGBA 이미지로 그린 뒤 여백을 잘라냅니다.

    Raises:
        RenderError: Pillow 그리기 실패
    """
    try:
        canvas = Image.new("RGBA", (canvas_width, canvas_height), (0, 0, 0, 0))
        ImageDraw.Draw(canvas).rectangle(
            (0, 0, scene.width - 1, scene.height - 1), fill=_rgba(scene.background)
        )
        for layer in scene.layers:
            log.debug(f"레이어 그리기: {layer.name}, polygons={len(layer.polygons)}")
            _draw_layer(canvas, layer, scene.transform)
        _clip(canvas, scene.width, scene.height)
    except (ValueError, TypeError, OSError, MemoryError) as e:
        raise RenderError(f"rasterization failed: {e}") from e
    return trim(canvas)


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    try:
        image.save(buf, format="PNG", optimize=True)
    except (OSError, ValueError) as e:
        raise RenderError(f"PNG encoding failed: {e}") from e
    return buf.getvalue()
