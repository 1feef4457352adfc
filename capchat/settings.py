# capchat/settings.py
from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from capchat.core.models import Severity
from capchat.ingestion.policy import COLLECT, FAIL_FAST
from capchat.output.formats import OutputFormat

DEFAULT_FEED = "https://alerts.metservice.com/cap/rss"

class FeedsConfig(BaseModel):
    urls: List[str] = Field(default_factory=lambda: [DEFAULT_FEED])

class HttpConfig(BaseModel):
    timeout_sec: float = 30.0
    user_agent: str = "capchat/0.2 (+CAP alert relay)"

class GeoConfig(BaseModel):
    boundaries_dir: Optional[str] = None     # 관심 경계 (지오펜스 + 자르기)
    outlines_dir: Optional[str] = None       # 배경 지도 전용
    min_severity: Severity = Severity.MINOR
    display_timezone: Optional[str] = None   # 텍스트 요약 시각 표시용, 없으면 UTC

    @field_validator("min_severity", mode="before")
    @classmethod
    def _severity(cls, v):
        return Severity.parse(v)

class CacheConfig(BaseModel):
    path: str = "_cache.db"
    timeout_sec: float = 30.0

class MapConfig(BaseModel):
    max_width: int = 1024
    max_height: int = 1024
    output_path: str = "map.png"
    background: str = "#f4f1ea"
    basemap_fill: str = "#e3e0d8"
    basemap_stroke: str = "#9c9889"
    areas_fill: str = "#e8541c"
    areas_stroke: str = "#a8320a"
    areas_opacity: float = 0.6

class Observability(BaseModel):
    log_level: str = "INFO"
    json_logs: bool = False

class Settings(BaseModel):
    output_format: OutputFormat = OutputFormat.TEXT
    failure_policy: str = FAIL_FAST          # fail_fast | collect

    # 하위 섹션 (기본값/팩토리로 누락 방지)
    feeds: FeedsConfig = Field(default_factory=FeedsConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    geo: GeoConfig = Field(default_factory=GeoConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    map: MapConfig = Field(default_factory=MapConfig)
    observability: Observability = Field(default_factory=Observability)

    @field_validator("output_format", mode="before")
    @classmethod
    def _output_format(cls, v):
        return OutputFormat.parse(v)

    @field_validator("failure_policy")
    @classmethod
    def _policy(cls, v: str) -> str:
        if v not in (FAIL_FAST, COLLECT):
            raise ValueError(f"unknown failure policy: {v}")
        return v
