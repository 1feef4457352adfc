"""
Notification port interface.

This module defines the protocol for sending rendered output to a
chat platform.
"""

from typing import Protocol
from capchat.core.models import Output


class NotifierPort(Protocol):
    """알림 발송 포트 인터페이스"""

    async def send(self, output: Output) -> None:
        """
        결과를 발송합니다. 길이 분할은 발송자 책임입니다.

        Args:
            output: 메시지와 선택적 이미지
        """
        ...
