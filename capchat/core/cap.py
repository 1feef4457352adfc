"""
CAP document parsing for capchat.

This module turns one Common Alerting Protocol XML document into an
Alert, including the conversion of CAP circles into polygons.
Element matching ignores XML namespaces so CAP 1.1 and 1.2 documents
are handled alike.
"""

import math
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Dict, List, Optional

from dateutil import parser as dateparser
from shapely.geometry import Polygon

from capchat.core.errors import ParseError
from capchat.core.geometry import CheapRuler
from capchat.core.models import Alert, AlertInfo, Area, Severity
from capchat.observability import metrics
from capchat.observability.logging_setup import get_logger

log = get_logger("capchat.cap")

# 원 근사 폴리곤의 꼭짓점 수
CIRCLE_EDGES = 32


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(el: ET.Element, name: str) -> List[ET.Element]:
    return [c for c in el if _local(c.tag) == name]


def _child(el: ET.Element, name: str) -> Optional[ET.Element]:
    for c in el:
        if _local(c.tag) == name:
            return c
    return None


def _text(el: ET.Element, name: str) -> str:
    c = _child(el, name)
    if c is None or c.text is None:
        return ""
    return c.text.strip()


def _required(el: ET.Element, name: str) -> str:
    value = _text(el, name)
    if not value:
        raise ParseError(f"missing required CAP field <{name}>")
    return value


def _timestamp(value: str, field: str) -> datetime:
    try:
        ts = dateparser.isoparse(value)
    except (ValueError, OverflowError) as e:
        raise ParseError(f"invalid <{field}> timestamp {value!r}: {e}") from e
    # 시간대 없는 값은 UTC로 간주
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_polygon(text: str) -> Polygon:
    """
    CAP polygon 텍스트를 폴리곤으로 변환합니다.

    텍스트는 공백으로 구분된 "위도,경도" 쌍이며, 첫 좌표와 마지막 좌표가
    같아야 합니다 (닫힌 링). 닫히지 않은 링은 보정하지 않고 오류입니다.

    Args:
        text: "lat,lon lat,lon ..." 형식 문자열

    Returns:
        (x=경도, y=위도) 좌표의 폴리곤

    Raises:
        ParseError: 잘못된 좌표 쌍, 숫자 변환 실패, 열린 링, 좌표 부족
    """
    coords = []
    for pair in text.split():
        lat, sep, lon = pair.partition(",")
        if not sep:
            raise ParseError(f"invalid coordinate pair {pair!r}")
        try:
            x, y = float(lon), float(lat)
        except ValueError as e:
            raise ParseError(f"invalid coordinate in pair {pair!r}: {e}") from e
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ParseError(f"non-finite coordinate in pair {pair!r}")
        coords.append((x, y))

    if len(coords) < 4:
        raise ParseError(f"polygon needs at least 4 coordinates, got {len(coords)}")
    if coords[0] != coords[-1]:
        log.trace(f"열린 폴리곤: {text}")
        raise ParseError("polygon is not closed")

    return Polygon(coords)


def format_polygon(polygon: Polygon) -> str:
    """parse_polygon의 역변환 (외곽 링만)"""
    return " ".join(f"{y!r},{x!r}" for x, y in polygon.exterior.coords)


def circle_to_polygon(circle: str) -> Optional[Polygon]:
    """
    CAP circle ("위도,경도 반경km")을 32각형으로 근사합니다.

    원 중심 위도를 기준으로 한 cheap-ruler 국지 근사를 쓰므로
    지역 규모 반경에서만 의미가 있습니다.

    CheapRuler에는 경도가 아니라 위도(y)를 넘깁니다. 경도 1도의
    거리(kx)는 위도에 따라 달라지므로 이 인자를 경도로 바꾸면 안 됩니다.

    Returns:
        폴리곤, 형식이 잘못되었으면 None
    """
    parts = circle.split()
    if len(parts) != 2:
        return None
    lat, sep, lon = parts[0].partition(",")
    if not sep:
        return None
    try:
        y, x, r = float(lat), float(lon), float(parts[1])
    except ValueError:
        return None
    if not all(math.isfinite(v) for v in (x, y, r)) or r <= 0:
        return None

    ruler = CheapRuler(y)
    center = (x, y)
    return Polygon([
        ruler.destination(center, r, 360.0 * (i / CIRCLE_EDGES))
        for i in range(CIRCLE_EDGES)
    ])


def _parameters(info: ET.Element) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for p in _children(info, "parameter"):
        name = _text(p, "valueName")
        if name:
            params[name] = _text(p, "value")
    return params


def _area(el: ET.Element, guid: str) -> Area:
    polygons = [parse_polygon(p.text or "") for p in _children(el, "polygon")]

    for c in _children(el, "circle"):
        circle = (c.text or "").strip()
        log.debug(f"원을 폴리곤으로 변환: guid={guid}, circle={circle}")
        poly = circle_to_polygon(circle)
        if poly is None:
            # 원 하나의 실패는 경보 전체를 실패시키지 않음
            log.warning(f"원 변환 실패, 건너뜀: guid={guid}, circle={circle!r}")
            metrics.circles_skipped.inc()
            continue
        polygons.append(poly)

    return Area(desc=_text(el, "areaDesc"), polygons=polygons)


def parse_cap(body: bytes | str) -> Alert:
    """
    CAP XML 문서 하나를 Alert로 변환합니다.

    Args:
        body: CAP 문서 바이트 또는 문자열

    Returns:
        파싱된 경보

    Raises:
        ParseError: XML 오류, 필수 필드 누락, 잘못된 심각도/시각/폴리곤
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ParseError(f"malformed CAP document: {e}") from e

    if _local(root.tag) != "alert":
        raise ParseError(f"not a CAP alert document (root <{_local(root.tag)}>)")

    guid = _required(root, "identifier")
    info_el = _child(root, "info")
    if info_el is None:
        raise ParseError(f"CAP alert {guid} has no <info> block")

    try:
        severity = Severity.parse(_required(info_el, "severity"))
    except ValueError as e:
        raise ParseError(str(e)) from e

    info = AlertInfo(
        category=_text(info_el, "category"),
        event=_text(info_el, "event"),
        urgency=_text(info_el, "urgency"),
        severity=severity,
        certainty=_text(info_el, "certainty"),
        onset=_timestamp(_required(info_el, "onset"), "onset"),
        expires=_timestamp(_required(info_el, "expires"), "expires"),
        headline=_text(info_el, "headline"),
        description=_text(info_el, "description"),
        instruction=_text(info_el, "instruction"),
        response_type=_text(info_el, "responseType"),
        sender_name=_text(info_el, "senderName"),
        parameters=_parameters(info_el),
        areas=[_area(a, guid) for a in _children(info_el, "area")],
    )

    alert = Alert(
        guid=guid,
        date_sent=_timestamp(_required(root, "sent"), "sent"),
        status=_text(root, "status"),
        scope=_text(root, "scope"),
        msg_type=_text(root, "msgType"),
        info=info,
    )

    log.info(
        f"CAP 파싱 완료: guid={guid}, headline={info.headline!r}, "
        f"areas={[a.desc for a in info.areas]}"
    )
    return alert
