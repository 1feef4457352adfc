"""
Dedup cache port interface.

This module defines the protocol for the persistent "seen alerts" store.
"""

from typing import Protocol


class DedupCachePort(Protocol):
    """중복 제거 캐시 포트 인터페이스"""

    async def try_claim(self, guid: str, link: str) -> bool:
        """
        guid가 없을 때만 (guid, link)를 원자적으로 기록합니다.

        Args:
            guid: 경보 guid
            link: 경보 문서 링크

        Returns:
            새로 기록했으면 True, 이미 있었으면 False
        """
        ...
