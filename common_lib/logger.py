"""로깅 설정 모듈(Logging setup module)."""
import logging
import sys

_logging_configured = False

_TEXT_FORMAT = "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"


def setup_logging() -> None:
    """루트 로거 1회 설정(Configure the root logger once)."""

    global _logging_configured
    if _logging_configured:
        return

    from .config import get_settings

    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)
    if settings.log_format.lower() == "json":
        from .observability import CustomJsonFormatter

        handler.setFormatter(CustomJsonFormatter("%(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        handlers=[handler],
        force=True,  # 기존 설정 강제 덮어쓰기
    )

    # 라이브러리 로그 레벨 조정
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """명명된 로거 가져오기(Get a named logger).

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    setup_logging()
    return logging.getLogger(name)
