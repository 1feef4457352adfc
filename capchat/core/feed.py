"""
Syndication feed parsing for capchat.

This module turns an RSS or Atom document into AlertReferences.
The media type of the HTTP response selects the dialect; generic XML
media types try RSS first and fall back to Atom.
"""

import io
from typing import Callable, Dict, List, Optional

import feedparser

from capchat.core.errors import ParseError, UnsupportedMediaType
from capchat.core.models import AlertReference
from capchat.observability.logging_setup import get_logger

log = get_logger("capchat.feed")

CAP_MEDIA_TYPE = "application/cap+xml"

RSS = "rss"
ATOM = "atom"

RSS_MEDIA_TYPES = frozenset({"application/rss+xml"})
ATOM_MEDIA_TYPES = frozenset({"application/atom+xml"})
GENERIC_XML_MEDIA_TYPES = frozenset({"application/xml", "text/xml"})


def essence(media_type: str) -> str:
    """미디어 타입에서 파라미터(; charset=...)를 떼고 소문자로 정규화"""
    return media_type.split(";", 1)[0].strip().lower()


def _parse_dialect(body: bytes, dialect: str) -> feedparser.FeedParserDict:
    parsed = feedparser.parse(io.BytesIO(body))
    version = parsed.get("version") or ""
    if version.startswith(dialect):
        return parsed

    if parsed.get("bozo"):
        reason = f"{parsed.get('bozo_exception')}"
    else:
        reason = f"detected {version or 'unknown format'}"
    raise ParseError(f"not a valid {dialect.upper()} document: {reason}")


def _select_link(links: List[Dict]) -> Optional[str]:
    # CAP 타입이 아닌 RSS enclosure(이미지 등)는 항목 링크로 보지 않음
    links = [
        l for l in links
        if l.get("rel") != "enclosure" or l.get("type") == CAP_MEDIA_TYPE
    ]
    # 링크가 하나뿐이면 그대로, 여럿이면 CAP 타입 링크를 우선
    if len(links) == 1:
        return links[0].get("href")
    for link in links:
        if link.get("type") == CAP_MEDIA_TYPE and link.get("href"):
            return link["href"]
    return None


def _references(parsed: feedparser.FeedParserDict) -> List[AlertReference]:
    refs = []
    for entry in parsed.entries:
        guid = (entry.get("id") or "").strip()
        if not guid:
            log.warning(f"guid 없는 항목 제외: title={entry.get('title')!r}")
            continue
        link = _select_link(entry.get("links") or [])
        if not link:
            log.warning(f"링크를 결정할 수 없는 항목 제외: guid={guid}")
            continue
        refs.append(AlertReference(guid=guid, title=entry.get("title") or "", link=link))
    return refs


def parse_rss(body: bytes) -> List[AlertReference]:
    """RSS (channel/item) 문서 파싱"""
    return _references(_parse_dialect(body, RSS))


def parse_atom(body: bytes) -> List[AlertReference]:
    """Atom (feed/entry) 문서 파싱"""
    return _references(_parse_dialect(body, ATOM))


def resolve_parser(media_type: str) -> Callable[[bytes], List[AlertReference]]:
    """
    미디어 타입에 맞는 파서를 선택합니다.

    Raises:
        UnsupportedMediaType: RSS/Atom/XML 이외의 타입
    """
    mt = essence(media_type)
    if mt in RSS_MEDIA_TYPES:
        return parse_rss
    if mt in ATOM_MEDIA_TYPES:
        return parse_atom
    if mt in GENERIC_XML_MEDIA_TYPES:
        return parse_ambiguous
    raise UnsupportedMediaType(mt or media_type)


def parse_ambiguous(body: bytes) -> List[AlertReference]:
    """
    일반 XML 미디어 타입: RSS로 먼저 시도하고 실패하면 Atom으로 재시도.
    둘 다 실패하면 Atom 쪽 오류를 그대로 올립니다.
    """
    try:
        return parse_rss(body)
    except ParseError as e:
        log.debug(f"RSS 파싱 실패, Atom으로 재시도: {e}")
    return parse_atom(body)


def parse_feed(body: bytes, media_type: str) -> List[AlertReference]:
    """
    피드 문서를 경보 참조 목록으로 변환합니다.

    Args:
        body: 피드 본문
        media_type: HTTP Content-Type 값

    Returns:
        피드 순서대로의 AlertReference 목록

    Raises:
        UnsupportedMediaType: 지원하지 않는 미디어 타입
        ParseError: 피드 형식 오류
    """
    refs = resolve_parser(media_type)(body)
    log.debug(f"피드에서 {len(refs)}개 항목 추출")
    return refs
