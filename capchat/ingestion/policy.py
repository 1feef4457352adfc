"""
Failure policies for concurrent ingestion.

The ingestor hands every batch of concurrent fetches to a policy object,
so switching between abort-on-first-error and collect-and-report does
not touch the ingestion logic.
"""

import asyncio
from typing import Awaitable, Iterable, List, Protocol, TypeVar

from capchat.core.errors import CapchatError
from capchat.observability.logging_setup import get_logger

log = get_logger("capchat.ingest")

T = TypeVar("T")

FAIL_FAST = "fail_fast"
COLLECT = "collect"


class FailurePolicy(Protocol):
    """동시 작업 묶음의 실패 처리 정책"""

    async def gather(self, aws: Iterable[Awaitable[T]]) -> List[T]:
        ...


class FailFast:
    """첫 실패에서 전체 수집을 중단합니다 (기본값)."""

    async def gather(self, aws: Iterable[Awaitable[T]]) -> List[T]:
        return list(await asyncio.gather(*aws))


class CollectErrors:
    """
    실패를 기록하고 성공한 결과만 돌려줍니다.

    capchat 오류(FetchError, ParseError 등)만 수집하며,
    그 외 예외는 버그로 보고 그대로 올립니다.
    """

    def __init__(self):
        self.errors: List[CapchatError] = []

    async def gather(self, aws: Iterable[Awaitable[T]]) -> List[T]:
        results = await asyncio.gather(*aws, return_exceptions=True)
        ok: List[T] = []
        for r in results:
            if isinstance(r, CapchatError):
                log.error(f"수집 실패 (계속 진행): {r}")
                self.errors.append(r)
            elif isinstance(r, BaseException):
                raise r
            else:
                ok.append(r)
        return ok


def policy_for(name: str) -> FailurePolicy:
    """설정 문자열로 정책 생성"""
    if name == FAIL_FAST:
        return FailFast()
    if name == COLLECT:
        return CollectErrors()
    raise ValueError(f"unknown failure policy: {name}")
