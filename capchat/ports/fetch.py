"""
HTTP fetch port interface.

This module defines the protocol for fetching feeds and CAP documents.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class FetchResponse:
    """HTTP 응답 요약"""
    url: str
    status: int
    content_type: str
    body: bytes


class FetchPort(Protocol):
    """HTTP GET 포트 인터페이스"""

    async def get(self, url: str) -> FetchResponse:
        """
        URL을 가져옵니다.

        Args:
            url: 가져올 URL

        Returns:
            2xx 응답

        Raises:
            FetchError: 네트워크 오류 또는 2xx가 아닌 상태
        """
        ...
