"""
SQLite-based dedup cache for capchat.

This module implements the persistent "seen alerts" store. Keys are
alert guids and values the alert links, both stored as bytes. Entries
are written once and never expire.
"""

import sqlite3
from typing import Optional

import aiosqlite

from capchat.core.errors import StoreError
from capchat.observability.logging_setup import get_logger

log = get_logger("capchat.cache")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS cache (
    k BLOB PRIMARY KEY,
    v BLOB NOT NULL
);
"""


class SQLiteDedupCache:
    """SQLite 기반 중복 제거 캐시"""

    def __init__(self, path: str, timeout_sec: float = 30.0):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
            timeout_sec: 잠금 대기 시간 (초)
        """
        self.path = path
        self.timeout = timeout_sec
        self._db: Optional[aiosqlite.Connection] = None
        log.info(f"SQLiteDedupCache 초기화: {path}")

    async def init(self) -> None:
        """연결을 열고 스키마를 초기화합니다."""
        if self._db is not None:
            return
        try:
            self._db = await aiosqlite.connect(self.path, timeout=self.timeout)
            await self._db.executescript(SCHEMA)
            await self._db.commit()
        except (sqlite3.Error, OSError) as e:
            await self.close()
            raise StoreError(f"cannot open dedup cache at {self.path}: {e}") from e
        log.info(f"SQLiteDedupCache 스키마 초기화 완료")

    async def close(self) -> None:
        if self._db is not None:
            db, self._db = self._db, None
            await db.close()

    async def __aenter__(self) -> "SQLiteDedupCache":
        await self.init()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreError("dedup cache is not open, call init() first")
        return self._db

    async def try_claim(self, guid: str, link: str) -> bool:
        """
        guid가 없으면 (guid, link)를 기록하고 True, 있으면 False를 반환합니다.

        하나의 연결을 공유하므로 동시 호출이 같은 guid를 두 번 새 항목으로
        판정하지 않습니다. 기존 값은 절대 덮어쓰지 않습니다.

        Args:
            guid: 경보 guid
            link: 경보 링크

        Returns:
            새로 기록되었는지 여부

        Raises:
            StoreError: SQLite I/O 오류
        """
        db = self._conn()
        try:
            cursor = await db.execute(
                "INSERT OR IGNORE INTO cache (k, v) VALUES (?, ?)",
                (guid.encode("utf-8"), link.encode("utf-8"))
            )
            await db.commit()
        except sqlite3.Error as e:
            log.error(f"SQLiteDedupCache try_claim 오류: {e}")
            raise StoreError(f"dedup cache write failed for {guid}: {e}") from e
        return cursor.rowcount == 1

    async def get(self, guid: str) -> Optional[bytes]:
        """
        guid에 기록된 링크를 조회합니다.

        Returns:
            링크 바이트 또는 None
        """
        try:
            cursor = await self._conn().execute(
                "SELECT v FROM cache WHERE k = ?", (guid.encode("utf-8"),)
            )
            row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"dedup cache read failed for {guid}: {e}") from e
        return bytes(row[0]) if row else None

    async def count(self) -> int:
        """현재 저장된 항목 수를 반환합니다."""
        try:
            cursor = await self._conn().execute("SELECT COUNT(*) FROM cache")
            result = await cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"dedup cache count failed: {e}") from e
        return result[0] if result else 0

    async def clear(self) -> int:
        """
        모든 항목을 삭제합니다 (운영자가 캐시를 초기화할 때).

        Returns:
            삭제된 항목 수
        """
        db = self._conn()
        try:
            cursor = await db.execute("DELETE FROM cache")
            await db.commit()
        except sqlite3.Error as e:
            raise StoreError(f"dedup cache clear failed: {e}") from e
        log.warning(f"중복 제거 캐시 초기화: {cursor.rowcount}개 삭제")
        return cursor.rowcount
