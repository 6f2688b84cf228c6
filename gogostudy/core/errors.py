"""
errors.py

도메인 에러 타입과 표준 에러 응답(envelope) 변환 모음.

서비스 계층은 실패 시 AppError를 raise 하고,
main.py에 등록된 exception handler가 모든 예외를
아래 형태의 JSON으로 변환한다.

    {timestamp, path, status, code, message, details?}

분류:
- 400 : 입력 오류 (INVALID_PAYLOAD, INVALID_STATUS, INVALID_DATE ...)
- 401 : 인증 오류 (UNAUTHORIZED, INVALID_TOKEN, TOKEN_REVOKED, INVALID_CREDENTIALS)
- 403 : 권한 오류 (FORBIDDEN, NOT_A_MEMBER, ACCOUNT_INACTIVE)
- 404 : 대상 없음 (STUDY_NOT_FOUND, MEMBER_NOT_FOUND, SESSION_NOT_FOUND, USER_NOT_FOUND)
- 409 : 상태 충돌 (EMAIL_TAKEN, ALREADY_JOINED, STUDY_FULL)
- 500 : 그 외 (INTERNAL_ERROR, DATABASE_ERROR)

"""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    def __init__(
        self,
        message: str,
        *,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str = "INTERNAL_ERROR",
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details

    def __repr__(self) -> str:
        return f"AppError({self.status_code}, {self.code!r}, {self.message!r})"


# 자주 쓰는 에러 생성 헬퍼

def bad_request(message: str, code: str = "INVALID_PAYLOAD", details: Any = None) -> AppError:
    return AppError(message, status_code=status.HTTP_400_BAD_REQUEST, code=code, details=details)


def unauthorized(message: str, code: str = "UNAUTHORIZED") -> AppError:
    return AppError(message, status_code=status.HTTP_401_UNAUTHORIZED, code=code)


def forbidden(message: str, code: str = "FORBIDDEN") -> AppError:
    return AppError(message, status_code=status.HTTP_403_FORBIDDEN, code=code)


def not_found(message: str, code: str) -> AppError:
    return AppError(message, status_code=status.HTTP_404_NOT_FOUND, code=code)


def conflict(message: str, code: str) -> AppError:
    return AppError(message, status_code=status.HTTP_409_CONFLICT, code=code)


def database_error(exc: Exception) -> AppError:
    return AppError(
        f"Database error: {type(exc).__name__}",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="DATABASE_ERROR",
    )


_STATUS_CODES = {
    400: "INVALID_PAYLOAD",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def format_error(*, path: str, status_code: int, code: str, message: str, details: Any = None) -> dict:
    body = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": path,
        "status": status_code,
        "code": code,
        "message": message,
    }
    if details is not None:
        body["details"] = details
    return body


def _respond(request: Request, status_code: int, code: str, message: str, details: Any = None, headers=None):
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            format_error(
                path=request.url.path,
                status_code=status_code,
                code=code,
                message=message,
                details=details,
            )
        ),
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _respond(request, exc.status_code, exc.code, exc.message, exc.details, headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return _respond(request, 400, "INVALID_PAYLOAD", "Request validation failed", details)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = _STATUS_CODES.get(exc.status_code, "INTERNAL_ERROR" if exc.status_code >= 500 else "HTTP_ERROR")
    return _respond(request, exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _respond(request, 500, "INTERNAL_ERROR", "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
