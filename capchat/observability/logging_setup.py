from __future__ import annotations
import logging
import sys
from loguru import logger

# ---- stdlib logging → loguru 인터셉트 ----
class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())

def _hook_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # aiohttp/asyncio 로그도 같은 싱크로
    for noisy in ("aiohttp", "asyncio", "aiosqlite"):
        l = logging.getLogger(noisy)
        l.handlers = [InterceptHandler()]
        l.propagate = False

# ---- 콘솔 포맷(사람 친화) ----
DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{extra[name]}</cyan> | "
    "<cyan>{file}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# -v 개수 → 로그 레벨
VERBOSITY_LEVELS = {0: "INFO", 1: "DEBUG", 2: "TRACE"}

def level_for_verbosity(verbose: int) -> str:
    return VERBOSITY_LEVELS.get(verbose, "TRACE")

def setup_logging(log_level: str = "INFO", json: bool = False) -> None:
    """
    loguru 초기화.
    - 출력은 stderr (stdout은 결과 메시지용)
    - json=True면 한 줄 JSON 레코드
    - stdlib logging 흡수
    """
    logger.remove()  # 기본 sink 제거
    logger.configure(extra={"name": "capchat"})
    if json:
        logger.add(sys.stderr, serialize=True, level=log_level.upper(), backtrace=False, diagnose=False)
    else:
        logger.add(
            sys.stderr,
            format=DEV_FORMAT,
            colorize=None,
            backtrace=True,
            diagnose=False,   # 과도한 진단은 끔
            level=log_level.upper(),
        )
    _hook_stdlib_logging()

def get_logger(name: str = "capchat", **ctx):
    """선택적으로 컨텍스트를 바인딩한 logger 반환."""
    return logger.bind(name=name, **ctx)

def with_context(**ctx):
    """컨텍스트 매니저로 일시 컨텍스트 부여."""
    return logger.contextualize(**ctx)
