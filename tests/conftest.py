"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처(CAP/피드 문서 생성기,
가짜 HTTP fetcher, 경보 생성기)를 제공합니다.
"""

import asyncio
import os
import tempfile
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple, Union

import pytest
from shapely.geometry import Polygon, box

from capchat.core.errors import FetchError
from capchat.core.models import Alert, AlertInfo, Area, Severity
from capchat.ports.fetch import FetchResponse


CAP_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<alert xmlns="urn:oasis:names:tc:emergency:cap:1.2">
  <identifier>{guid}</identifier>
  <sender>test@capchat.invalid</sender>
  <sent>2021-05-30T10:00:00+12:00</sent>
  <status>Actual</status>
  <msgType>Alert</msgType>
  <scope>Public</scope>
  <info>
    <category>Met</category>
    <event>Heavy Rain</event>
    <responseType>Prepare</responseType>
    <urgency>Expected</urgency>
    <severity>{severity}</severity>
    <certainty>Likely</certainty>
    <onset>2021-05-30T13:00:00+12:00</onset>
    <expires>2021-05-31T01:00:00+12:00</expires>
    <senderName>MetService</senderName>
    <headline>{headline}</headline>
    <description>Periods of heavy rain.</description>
    <instruction>Watch for updates.</instruction>
    <parameter><valueName>ColourCode</valueName><value>Orange</value></parameter>
    <area>
      <areaDesc>{area}</areaDesc>
      {shapes}
    </area>
  </info>
</alert>
"""

SQUARE_TEXT = "-43.0,171.0 -43.0,172.0 -44.0,172.0 -44.0,171.0 -43.0,171.0"


def _cap_xml(guid: str = "urn:cap:1",
             *,
             severity: str = "Moderate",
             headline: str = "Heavy Rain Watch",
             area: str = "Canterbury High Country",
             polygons: Optional[List[str]] = None,
             circles: Optional[List[str]] = None) -> bytes:
    polygons = [SQUARE_TEXT] if polygons is None else polygons
    shapes = "".join(f"<polygon>{p}</polygon>" for p in polygons)
    shapes += "".join(f"<circle>{c}</circle>" for c in circles or [])
    return CAP_TEMPLATE.format(
        guid=guid, severity=severity, headline=headline, area=area, shapes=shapes
    ).encode("utf-8")


def _rss_xml(items: List[Tuple[str, str, str]]) -> bytes:
    """items: (guid, title, link)"""
    body = "".join(
        f"<item><title>{t}</title><link>{l}</link><guid>{g}</guid></item>"
        for g, t, l in items
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>CAP</title>'
        '<link>https://alerts.example.test/</link><description>alerts</description>'
        f"{body}</channel></rss>"
    ).encode("utf-8")


def _atom_xml(entries: List[Tuple[str, str, str]]) -> bytes:
    """entries: (id, title, href)"""
    body = "".join(
        f'<entry><id>{i}</id><title>{t}</title><updated>2021-05-30T00:00:00Z</updated>'
        f'<link href="{h}"/></entry>'
        for i, t, h in entries
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<feed xmlns="http://www.w3.org/2005/Atom"><title>CAP</title>'
        '<id>urn:feed</id><updated>2021-05-30T00:00:00Z</updated>'
        f"{body}</feed>"
    ).encode("utf-8")


class FakeFetcher:
    """URL → (content_type, body) 또는 예외를 돌려주는 테스트용 fetcher"""

    def __init__(self, routes: Dict[str, Union[Tuple[str, bytes], Exception]]):
        self.routes = routes
        self.calls: List[str] = []

    async def __aenter__(self) -> "FakeFetcher":
        return self

    async def __aexit__(self, *exc) -> None:
        pass

    async def get(self, url: str) -> FetchResponse:
        self.calls.append(url)
        await asyncio.sleep(0)
        route = self.routes.get(url)
        if route is None:
            raise FetchError(url, "unexpected HTTP status", status=404)
        if isinstance(route, Exception):
            raise route
        content_type, body = route
        return FetchResponse(url=url, status=200, content_type=content_type, body=body)


def _make_alert(guid: str = "urn:test:1",
                polygons: Optional[List[Polygon]] = None,
                severity: Severity = Severity.MODERATE,
                headline: str = "Heavy Rain Watch",
                area: str = "Test Area",
                colour: Optional[str] = None) -> Alert:
    polygons = [box(0, 0, 1, 1)] if polygons is None else polygons
    onset = datetime(2021, 5, 30, 1, 0, tzinfo=timezone.utc)
    expires = datetime(2021, 5, 30, 13, 0, tzinfo=timezone.utc)
    return Alert(
        guid=guid,
        date_sent=onset,
        status="Actual",
        scope="Public",
        msg_type="Alert",
        info=AlertInfo(
            severity=severity,
            onset=onset,
            expires=expires,
            headline=headline,
            description="Periods of heavy rain.",
            parameters={"ColourCode": colour} if colour else {},
            areas=[Area(desc=area, polygons=polygons)],
        ),
    )


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    os.unlink(temp_path)
    yield temp_path
    # 테스트 후 파일 정리
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def cap_xml():
    """CAP 문서 생성기"""
    return _cap_xml


@pytest.fixture
def rss_xml():
    """RSS 피드 생성기"""
    return _rss_xml


@pytest.fixture
def atom_xml():
    """Atom 피드 생성기"""
    return _atom_xml


@pytest.fixture
def fake_fetcher():
    """가짜 HTTP fetcher 클래스"""
    return FakeFetcher


@pytest.fixture
def make_alert():
    """테스트용 Alert 생성기"""
    return _make_alert


@pytest.fixture
def boundary_square():
    """테스트용 관심 경계 (0,0)-(10,10)"""
    return Polygon([(0, 0), (0, 10), (10, 10), (10, 0), (0, 0)])


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "asyncio: 비동기 테스트 마커"
    )
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 비동기 테스트에 asyncio 마커 추가
        if asyncio.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)

        # 통합 테스트 마커 추가
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
