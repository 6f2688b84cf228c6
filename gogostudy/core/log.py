"""
log.py

표준 logging 설정과 요청 로그 미들웨어.

- configure_logging : 콘솔 핸들러 하나를 dictConfig로 설치 (앱 생성 시 1회)
- request_logger    : "METHOD path status - N ms" 형식으로 요청 1건당 1줄 기록

토큰 / 비밀번호 등 민감 값은 로그에 남기지 않는다.

"""

import logging
import logging.config
import time

from fastapi import Request

logger = logging.getLogger("gogostudy.request")


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "gogostudy": {
                    "handlers": ["console"],
                    "level": level.upper(),
                    "propagate": False,
                },
            },
        }
    )


async def request_logger(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %s - %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response
