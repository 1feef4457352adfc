"""
Alert ingestion for capchat.

This module implements the feed → dedup → CAP pipeline: every feed is
fetched concurrently, its references are claimed in the dedup cache,
and each newly claimed reference is fetched and parsed concurrently.
"""

from typing import Iterable, List, Optional, Set

from capchat.core.cap import parse_cap
from capchat.core.errors import ParseError
from capchat.core.feed import essence, parse_feed
from capchat.core.models import Alert, AlertReference
from capchat.ingestion.policy import FailFast, FailurePolicy
from capchat.observability import metrics
from capchat.observability.logging_setup import get_logger, with_context
from capchat.ports.cache import DedupCachePort
from capchat.ports.fetch import FetchPort

log = get_logger("capchat.ingest")


class AlertIngestor:
    """피드 수집기 (피드 → 중복 제거 → CAP 파싱)"""

    def __init__(self,
                 fetcher: FetchPort,
                 cache: DedupCachePort,
                 *,
                 policy: Optional[FailurePolicy] = None):
        """
        초기화합니다.

        Args:
            fetcher: HTTP GET 포트
            cache: 중복 제거 캐시 (모든 동시 작업이 공유)
            policy: 실패 처리 정책, 기본값은 FailFast
        """
        self.fetcher = fetcher
        self.cache = cache
        self.policy = policy or FailFast()

    async def ingest(self, feed_urls: Iterable[str]) -> Set[Alert]:
        """
        모든 피드를 동시에 처리하여 새 경보 집합을 반환합니다.

        Args:
            feed_urls: 피드 URL 목록

        Returns:
            guid 기준으로 합쳐진 새 경보 집합
        """
        per_feed = await self.policy.gather(self.ingest_feed(url) for url in feed_urls)
        alerts = {a for feed in per_feed for a in feed}
        log.info(f"새 경보 {len(alerts)}개 수집")
        return alerts

    async def ingest_feed(self, url: str) -> List[Alert]:
        """피드 하나: 가져오기, 파싱, 캐시 확인, 새 경보 가져오기"""
        with with_context(feed=url):
            return await self._ingest_feed(url)

    async def _ingest_feed(self, url: str) -> List[Alert]:
        log.info(f"CAP 피드 가져오는 중: {url}")
        resp = await self.fetcher.get(url)
        log.info(f"CAP 피드 수신: {url}, bytes={len(resp.body)}, content_type={resp.content_type}")

        try:
            refs = parse_feed(resp.body, resp.content_type)
        except ParseError as e:
            log.error(f"피드 파싱 실패: {url}: {e}")
            raise
        metrics.feeds_fetched.labels(media_type=essence(resp.content_type)).inc()
        metrics.references_seen.inc(len(refs))

        new = await self.claim_new(refs)
        log.info(f"캐시 확인 후 {len(new)}/{len(refs)}개 남음: {url}")

        return await self.policy.gather(self.fetch_alert(ref) for ref in new)

    async def claim_new(self, refs: Iterable[AlertReference]) -> List[AlertReference]:
        """캐시에 처음 기록된 참조만 반환합니다 (한 번 기록된 guid는 다시 처리하지 않음)."""
        new = []
        for ref in refs:
            if await self.cache.try_claim(ref.guid, ref.link):
                log.trace(f"새 항목 유지: guid={ref.guid}")
                new.append(ref)
            else:
                log.trace(f"이미 캐시에 있음, 건너뜀: guid={ref.guid}")
                metrics.references_duplicate.inc()
        return new

    async def fetch_alert(self, ref: AlertReference) -> Alert:
        """
        참조가 가리키는 CAP 문서를 가져와 파싱합니다.

        Raises:
            FetchError: 가져오기 실패
            ParseError: CAP 형식 오류 (guid와 링크 포함)
        """
        log.info(f"CAP 가져오는 중: guid={ref.guid}")
        resp = await self.fetcher.get(ref.link)
        log.debug(f"CAP 수신: guid={ref.guid}, bytes={len(resp.body)}")
        try:
            alert = parse_cap(resp.body)
        except ParseError as e:
            raise ParseError(f"CAP {ref.guid} ({ref.link}): {e}") from e
        metrics.alerts_parsed.labels(severity=alert.severity.label).inc()
        return alert
