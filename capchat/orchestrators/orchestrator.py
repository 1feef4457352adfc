"""
Run orchestrator for capchat.

This module wires one complete run: ingest new alerts from every feed,
apply the geofence and severity filters, and render the requested
output format.
"""

import asyncio
from datetime import tzinfo
from typing import Iterable, Optional

from shapely.geometry import MultiPolygon

from capchat.adapters.geodir.loader import load_polygons
from capchat.core.geofence import filter_by_boundaries, filter_by_severity
from capchat.core.models import Output, Severity
from capchat.ingestion.ingestor import AlertIngestor
from capchat.output.formats import OutputFormat, format_json
from capchat.output.map import MapCompositor
from capchat.output.text import format_text
from capchat.observability.logging_setup import get_logger

log = get_logger("capchat.orchestrator")


class Orchestrator:
    """수집 -> 지오펜스 -> 심각도 -> 출력 파이프라인 (1회 실행)"""

    def __init__(self,
                 ingestor: AlertIngestor,
                 compositor: MapCompositor,
                 *,
                 boundaries_dir: Optional[str] = None,
                 outlines_dir: Optional[str] = None,
                 min_severity: Severity = Severity.MINOR,
                 output_format: OutputFormat = OutputFormat.TEXT,
                 tz: Optional[tzinfo] = None):
        """
        초기화합니다.

        Args:
            ingestor: 경보 수집기
            compositor: 지도 합성기 (map 형식일 때만 사용)
            boundaries_dir: 관심 경계 디렉토리
            outlines_dir: 배경 지도 외곽선 디렉토리
            min_severity: 최소 심각도
            output_format: 출력 형식
            tz: 텍스트 시각 표시 시간대
        """
        self.ingestor = ingestor
        self.compositor = compositor
        self.boundaries_dir = boundaries_dir
        self.outlines_dir = outlines_dir
        self.min_severity = min_severity
        self.output_format = output_format
        self.tz = tz

    async def run(self, feed_urls: Iterable[str]) -> Optional[Output]:
        """
        1회 실행합니다.

        Returns:
            발송할 Output, 조건에 맞는 새 경보가 없으면 None
        """
        alerts = await self.ingestor.ingest(feed_urls)
        log.debug(f"새 경보 {len(alerts)}개")

        want_map = self.output_format is OutputFormat.MAP
        boundaries, outlines = await asyncio.gather(
            load_polygons(self.boundaries_dir),
            load_polygons(self.outlines_dir) if want_map else _empty(),
        )

        alerts = filter_by_boundaries(alerts, boundaries)
        alerts = filter_by_severity(alerts, self.min_severity)
        if not alerts:
            log.info("조건에 맞는 새 경보 없음")
            return None

        log.info(f"경보 {len(alerts)}개 출력 ({self.output_format.value})")
        if self.output_format is OutputFormat.JSON:
            return format_json(alerts)
        if want_map:
            return self.compositor.compose(alerts, boundaries, outlines)
        return format_text(alerts, tz=self.tz)


async def _empty() -> MultiPolygon:
    return MultiPolygon()
