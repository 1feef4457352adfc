"""
Plain-text alert summaries for capchat.
"""

from datetime import datetime, tzinfo
from itertools import groupby
from typing import Iterable, Optional

from capchat.core.models import Alert, Output

# MetService ColourCode 파라미터 → 이모지
COLOUR_CODE_EMOJI = {
    "blue": "🔵",
    "green": "🟢",
    "yellow": "🟡",
    "orange": "🟠",
    "red": "🔴",
    "purple": "🟣",
}


def colour_code_emoji(code: str) -> Optional[str]:
    return COLOUR_CODE_EMOJI.get(code.strip().lower())


def _clock(ts: datetime, tz: Optional[tzinfo]) -> str:
    # " 9:05pm Monday" 형식
    if tz is not None:
        ts = ts.astimezone(tz)
    hour = ts.hour % 12 or 12
    meridiem = "am" if ts.hour < 12 else "pm"
    return f"{hour:>2}:{ts:%M}{meridiem} {ts:%A}"


def _alert_block(alert: Alert, tz: Optional[tzinfo]) -> str:
    info = alert.info
    emoji = colour_code_emoji(info.parameters.get("ColourCode", "")) or " "
    areas = ", ".join(a.desc for a in info.areas)
    hours = int((info.expires - info.onset).total_seconds() // 3600)
    block = (
        f"{emoji} [{areas}]  {hours} hours from {_clock(info.onset, tz)} "
        f"to {_clock(info.expires, tz)}\n\n{info.description}\n\n"
    )
    return block.lstrip()


def format_text(alerts: Iterable[Alert], tz: Optional[tzinfo] = None) -> Output:
    """
    경보 집합을 헤드라인별로 묶은 텍스트 요약으로 만듭니다.

    Args:
        alerts: 경보 집합
        tz: 시각 표시 시간대, None이면 UTC

    Returns:
        image 없는 Output
    """
    ordered = sorted(alerts, key=lambda a: (a.info.headline, a.info.onset, a.guid))
    parts = []
    for headline, group in groupby(ordered, key=lambda a: a.info.headline):
        blocks = "\n\n".join(_alert_block(a, tz) for a in group)
        parts.append(f"{headline.upper()}\n\n{blocks}\n")
    return Output(message="".join(parts).strip(), image=None)
