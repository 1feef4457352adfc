"""
SQLite 중복 제거 캐시 테스트.
"""

import asyncio
import os

import pytest

from capchat.adapters.storage.sqlite_cache import SQLiteDedupCache
from capchat.core.errors import StoreError


@pytest.mark.asyncio
async def test_cache_init_empty(temp_db_path):
    """초기화 후 항목 수 0 테스트."""
    async with SQLiteDedupCache(temp_db_path) as cache:
        assert await cache.count() == 0
    assert os.path.exists(temp_db_path)


@pytest.mark.asyncio
async def test_try_claim_basic(temp_db_path):
    """기본적인 try_claim 기능 테스트."""
    async with SQLiteDedupCache(temp_db_path) as cache:
        # 첫 번째 기록은 성공해야 함
        assert await cache.try_claim("urn:1", "https://a.test/1.xml") is True

        # 같은 guid로 다시 기록하면 실패해야 함
        assert await cache.try_claim("urn:1", "https://a.test/1.xml") is False

        # 다른 guid는 성공해야 함
        assert await cache.try_claim("urn:2", "https://a.test/2.xml") is True

        assert await cache.count() == 2


@pytest.mark.asyncio
async def test_existing_value_never_overwritten(temp_db_path):
    """기존 값은 다른 링크로 덮어쓰지 않음."""
    async with SQLiteDedupCache(temp_db_path) as cache:
        assert await cache.try_claim("urn:1", "https://a.test/first.xml")
        assert not await cache.try_claim("urn:1", "https://a.test/second.xml")
        assert await cache.get("urn:1") == b"https://a.test/first.xml"
        assert await cache.get("urn:missing") is None


@pytest.mark.asyncio
async def test_concurrent_claims_single_winner(temp_db_path):
    """같은 guid 동시 기록은 정확히 하나만 성공."""
    async with SQLiteDedupCache(temp_db_path) as cache:
        results = await asyncio.gather(*[
            cache.try_claim("urn:race", f"https://a.test/{i}.xml") for i in range(20)
        ])
        assert results.count(True) == 1
        assert await cache.count() == 1


@pytest.mark.asyncio
async def test_persistence_across_runs(temp_db_path):
    """다시 열어도 기록이 유지됨."""
    async with SQLiteDedupCache(temp_db_path) as cache:
        assert await cache.try_claim("urn:1", "https://a.test/1.xml")

    async with SQLiteDedupCache(temp_db_path) as cache:
        assert await cache.try_claim("urn:1", "https://a.test/1.xml") is False
        assert await cache.count() == 1


@pytest.mark.asyncio
async def test_clear(temp_db_path):
    """clear 기능 테스트."""
    async with SQLiteDedupCache(temp_db_path) as cache:
        for i in range(3):
            await cache.try_claim(f"urn:{i}", "https://a.test/x.xml")
        assert await cache.clear() == 3
        assert await cache.count() == 0
        assert await cache.try_claim("urn:0", "https://a.test/x.xml")


@pytest.mark.asyncio
async def test_not_open():
    """init 전에 사용하면 StoreError."""
    cache = SQLiteDedupCache("unused.db")
    with pytest.raises(StoreError, match="not open"):
        await cache.try_claim("urn:1", "x")


@pytest.mark.asyncio
async def test_open_failure(tmp_path):
    """열 수 없는 경로는 StoreError."""
    cache = SQLiteDedupCache(str(tmp_path / "no" / "such" / "dir" / "cache.db"))
    with pytest.raises(StoreError, match="cannot open"):
        await cache.init()
