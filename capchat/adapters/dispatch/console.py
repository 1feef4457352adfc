"""
Console notifier for capchat.

This module writes the rendered output of a run to a text stream and
the map image, if any, to a PNG file. Chat-platform senders implement
the same NotifierPort.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional, TextIO

from capchat.core.models import Output
from capchat.observability.logging_setup import get_logger

log = get_logger("capchat.dispatch")


class ConsoleNotifier:
    """표준 출력 + PNG 파일 발송자"""

    def __init__(self, image_path: Optional[str] = None, stream: Optional[TextIO] = None):
        """
        초기화합니다.

        Args:
            image_path: 지도 이미지 저장 경로, None이면 이미지를 버림
            stream: 메시지 출력 스트림, 기본값은 sys.stdout
        """
        self.image_path = image_path
        self.stream = stream

    async def send(self, output: Output) -> None:
        stream = self.stream or sys.stdout
        if output.message:
            print(output.message, file=stream)

        if output.image is None:
            return
        if not self.image_path:
            log.warning("이미지 저장 경로 없음, 지도 이미지 생략")
            return
        path = Path(self.image_path)
        await asyncio.to_thread(path.write_bytes, output.image)
        log.info(f"지도 저장: {path}, bytes={len(output.image)}")
