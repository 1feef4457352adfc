"""
Output format selection for capchat.
"""

import json
from enum import Enum
from typing import Iterable

from capchat.core.models import Alert, Output


class OutputFormat(str, Enum):
    JSON = "json"
    TEXT = "text"
    MAP = "map"

    @classmethod
    def parse(cls, value: "str | OutputFormat") -> "OutputFormat":
        """대소문자 구분 없이 변환, "text+map"은 map과 같음"""
        if isinstance(value, OutputFormat):
            return value
        v = str(value).strip().lower()
        if v == "text+map":
            return cls.MAP
        try:
            return cls(v)
        except ValueError:
            raise ValueError(f"unknown output type: {value}") from None


def format_json(alerts: Iterable[Alert]) -> Output:
    """경보 목록을 JSON 배열로 (guid 순)"""
    payload = [a.model_dump(mode="json") for a in sorted(alerts, key=lambda a: a.guid)]
    return Output(message=json.dumps(payload, ensure_ascii=False, indent=2))
