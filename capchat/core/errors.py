"""
Error hierarchy for capchat.

Every failure raised by the pipeline derives from CapchatError so the
entry point can report it uniformly.
"""


class CapchatError(Exception):
    """capchat 공통 예외"""


class FetchError(CapchatError):
    """피드 또는 경보 문서를 가져오지 못함 (네트워크/HTTP 상태)"""

    def __init__(self, url: str, message: str, status: int | None = None):
        self.url = url
        self.status = status
        super().__init__(f"{message}: {url}" + (f" (HTTP {status})" if status else ""))


class ParseError(CapchatError):
    """피드, 경보, 지오메트리 문서 형식 오류"""


class UnsupportedMediaType(ParseError):
    """지원하지 않는 피드 미디어 타입"""

    def __init__(self, media_type: str):
        self.media_type = media_type
        super().__init__(f"unsupported media type: {media_type}")


class GeometryError(CapchatError):
    """빈 경계 상자, 크기 0 이미지 요청, 불리언 연산 실패"""


class StoreError(CapchatError):
    """중복 제거 저장소 I/O 실패"""


class RenderError(CapchatError):
    """래스터화 또는 인코딩 실패"""
