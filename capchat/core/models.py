"""
Core domain models for capchat.

This module defines the alert data model using Pydantic v2.
Polygons are shapely geometries, carried as arbitrary types.
"""

from datetime import datetime
from enum import IntEnum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from shapely.geometry import Polygon, mapping


class Severity(IntEnum):
    """CAP 심각도 (낮음 -> 높음 순서로 비교 가능)"""

    MINOR = 0
    MODERATE = 1
    SEVERE = 2
    EXTREME = 3

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        """
        대소문자 구분 없이 심각도 문자열을 변환합니다.

        Args:
            value: "Minor", "moderate" 등의 문자열 또는 Severity

        Returns:
            Severity 값

        Raises:
            ValueError: 알 수 없는 심각도
        """
        if isinstance(value, Severity):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"invalid severity: {value}") from None

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def __str__(self) -> str:
        return self.label


class AlertReference(BaseModel):
    """피드 항목 하나가 가리키는 경보 문서"""

    model_config = ConfigDict(frozen=True)

    guid: str
    title: str = ""
    link: str


class Area(BaseModel):
    """경보 영역 모델"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    desc: str = ""
    polygons: List[Polygon] = Field(default_factory=list)

    @field_serializer("polygons")
    def _polygons_as_geojson(self, polygons: List[Polygon]) -> list:
        return [mapping(p) for p in polygons]


class AlertInfo(BaseModel):
    """CAP info 블록"""

    model_config = ConfigDict(frozen=True)

    category: str = ""
    event: str = ""
    urgency: str = ""
    severity: Severity
    certainty: str = ""
    onset: datetime
    expires: datetime
    headline: str = ""
    description: str = ""
    instruction: str = ""
    response_type: str = ""
    sender_name: str = ""
    parameters: Dict[str, str] = Field(default_factory=dict)
    areas: List[Area] = Field(default_factory=list)

    @field_serializer("severity")
    def _severity_label(self, severity: Severity) -> str:
        return severity.label


class Alert(BaseModel):
    """
    CAP 경보 모델.

    동일성과 해시는 guid만으로 정의됩니다. 여러 피드에서 같은 경보를
    받아도 집합으로 합치면 하나만 남습니다.
    """

    model_config = ConfigDict(frozen=True)

    guid: str
    date_sent: datetime
    status: str = ""
    scope: str = ""
    msg_type: str = ""
    info: AlertInfo

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Alert):
            return NotImplemented
        return self.guid == other.guid

    def __hash__(self) -> int:
        return hash(self.guid)

    @property
    def severity(self) -> Severity:
        return self.info.severity

    def polygons(self) -> List[Polygon]:
        """모든 영역의 폴리곤을 순서대로 반환합니다."""
        return [p for area in self.info.areas for p in area.polygons]


class Output(BaseModel):
    """알림 발송자에게 전달되는 최종 결과"""

    message: str = ""
    image: Optional[bytes] = None
