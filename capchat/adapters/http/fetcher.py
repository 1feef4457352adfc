import asyncio
from typing import Optional

import aiohttp

from capchat.core.errors import FetchError
from capchat.observability.logging_setup import get_logger
from capchat.ports.fetch import FetchResponse

log = get_logger("capchat.http")

DEFAULT_USER_AGENT = "capchat/0.2 (+CAP alert relay)"


class HttpFetcher:
    """aiohttp 기반 HTTP GET. 모든 요청에 전체 타임아웃이 걸립니다."""

    def __init__(self, timeout: float = 30.0, user_agent: str = DEFAULT_USER_AGENT):
        self.timeout = timeout
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self):
        if not self._session or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
            )

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "HttpFetcher":
        await self._ensure_session()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def get(self, url: str) -> FetchResponse:
        """URL을 가져옵니다. 2xx가 아니거나 네트워크 오류면 FetchError."""
        await self._ensure_session()
        try:
            async with self._session.get(url) as resp:
                log.debug(
                    f"응답 수신: url={url}, status={resp.status}, "
                    f"content_type={resp.headers.get('Content-Type', '?')}, "
                    f"age={resp.headers.get('Age', '?')}"
                )
                if not 200 <= resp.status < 300:
                    raise FetchError(url, "unexpected HTTP status", status=resp.status)
                body = await resp.read()
                return FetchResponse(
                    url=url,
                    status=resp.status,
                    content_type=resp.headers.get("Content-Type", ""),
                    body=body,
                )
        except asyncio.TimeoutError as e:
            raise FetchError(url, f"timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            raise FetchError(url, f"request failed ({e})") from e
