# capchat/main.py
import argparse
import asyncio
import os
import sys
from functools import partial
from typing import List, Optional
from zoneinfo import ZoneInfo

from capchat.adapters.dispatch.console import ConsoleNotifier
from capchat.adapters.http.fetcher import HttpFetcher
from capchat.adapters.storage.sqlite_cache import SQLiteDedupCache
from capchat.core.errors import CapchatError
from capchat.core.models import Severity
from capchat.ingestion.ingestor import AlertIngestor
from capchat.ingestion.policy import COLLECT, CollectErrors, policy_for
from capchat.observability.logging_setup import get_logger, level_for_verbosity, setup_logging
from capchat.orchestrators.orchestrator import Orchestrator
from capchat.output.formats import OutputFormat
from capchat.output.map import MapCompositor, MapStyle
from capchat.output.scene import Style
from capchat.output.text import format_text
from capchat.settings import Settings

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # 피드
    feeds = os.getenv("CAP_FEEDS")
    if feeds:
        s.feeds.urls = [u.strip() for u in feeds.split(",") if u.strip()]

    # HTTP
    s.http.timeout_sec = float(os.getenv("HTTP_TIMEOUT_SEC", s.http.timeout_sec))

    # 지오펜스
    s.geo.boundaries_dir = os.getenv("BOUNDARIES_DIR", s.geo.boundaries_dir)
    s.geo.outlines_dir = os.getenv("OUTLINES_DIR", s.geo.outlines_dir)
    s.geo.min_severity = Severity.parse(os.getenv("MIN_SEVERITY", s.geo.min_severity.label))
    s.geo.display_timezone = os.getenv("DISPLAY_TIMEZONE", s.geo.display_timezone)

    # 캐시
    s.cache.path = os.getenv("CACHE_DB", s.cache.path)

    # 지도
    s.map.max_width = int(os.getenv("MAP_MAX_WIDTH", s.map.max_width))
    s.map.max_height = int(os.getenv("MAP_MAX_HEIGHT", s.map.max_height))
    s.map.output_path = os.getenv("MAP_OUTPUT", s.map.output_path)

    # 출력/정책
    s.output_format = OutputFormat.parse(os.getenv("OUTPUT_FORMAT", s.output_format.value))
    s.failure_policy = os.getenv("FAILURE_POLICY", s.failure_policy)

    # 관측성
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)
    s.observability.json_logs = _b("JSON_LOGS", s.observability.json_logs)

    return s

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="capchat", description="CAP 경보 피드 수집 및 지도 생성")
    parser.add_argument("-v", dest="verbose", action="count", default=0, help="로그 상세도 (-v, -vv)")
    parser.add_argument("--cap-rss", action="append", help="CAP 피드 URL (여러 번 지정 가능)")
    parser.add_argument("--boundaries", help="관심 경계 *.geojson 디렉토리")
    parser.add_argument("--outlines", help="배경 지도 *.geojson 디렉토리")
    parser.add_argument("--cache-db", help="중복 제거 캐시 경로")
    parser.add_argument("--min-severity", type=Severity.parse, help="minor|moderate|severe|extreme")
    parser.add_argument("--format", dest="output_format", type=OutputFormat.parse, help="json|text|map")
    parser.add_argument("--map-output", help="PNG 저장 경로")
    parser.add_argument("--max-width", type=int)
    parser.add_argument("--max-height", type=int)
    parser.add_argument("--collect-errors", action="store_true", help="실패한 피드/경보를 건너뛰고 계속")
    parser.add_argument("--json-logs", action="store_true")
    return parser.parse_args(argv)

def apply_args(s: Settings, args: argparse.Namespace) -> Settings:
    if args.cap_rss: s.feeds.urls = args.cap_rss
    if args.boundaries: s.geo.boundaries_dir = args.boundaries
    if args.outlines: s.geo.outlines_dir = args.outlines
    if args.cache_db: s.cache.path = args.cache_db
    if args.min_severity is not None: s.geo.min_severity = args.min_severity
    if args.output_format is not None: s.output_format = args.output_format
    if args.map_output: s.map.output_path = args.map_output
    if args.max_width is not None: s.map.max_width = args.max_width
    if args.max_height is not None: s.map.max_height = args.max_height
    if args.collect_errors: s.failure_policy = COLLECT
    if args.json_logs: s.observability.json_logs = True
    if args.verbose: s.observability.log_level = level_for_verbosity(args.verbose)
    return s

def build_compositor(s: Settings, tz) -> MapCompositor:
    m = s.map
    style = MapStyle(
        background=m.background,
        basemap=Style(fill=m.basemap_fill, stroke=m.basemap_stroke, opacity=1.0, stroke_width=1),
        areas=Style(fill=m.areas_fill, stroke=m.areas_stroke, opacity=m.areas_opacity, stroke_width=2),
    )
    return MapCompositor(
        max_width=m.max_width,
        max_height=m.max_height,
        style=style,
        formatter=partial(format_text, tz=tz),
    )

async def run(s: Settings) -> int:
    log = get_logger()
    tz = ZoneInfo(s.geo.display_timezone) if s.geo.display_timezone else None
    policy = policy_for(s.failure_policy)

    async with SQLiteDedupCache(s.cache.path, s.cache.timeout_sec) as cache, \
            HttpFetcher(timeout=s.http.timeout_sec, user_agent=s.http.user_agent) as fetcher:
        orch = Orchestrator(
            AlertIngestor(fetcher, cache, policy=policy),
            build_compositor(s, tz),
            boundaries_dir=s.geo.boundaries_dir,
            outlines_dir=s.geo.outlines_dir,
            min_severity=s.geo.min_severity,
            output_format=s.output_format,
            tz=tz,
        )
        out = await orch.run(s.feeds.urls)

    if out is not None:
        await ConsoleNotifier(image_path=s.map.output_path).send(out)

    if isinstance(policy, CollectErrors) and policy.errors:
        log.warning(f"실패 {len(policy.errors)}건을 건너뛰고 완료")
        return 1
    return 0

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    s = apply_args(build_settings(), args)
    setup_logging(s.observability.log_level, json=s.observability.json_logs)
    log = get_logger()
    log.debug(f"설정 로드 완료: {s.model_dump()}")

    try:
        return asyncio.run(run(s))
    except CapchatError as e:
        log.error(f"실행 실패: {e}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
