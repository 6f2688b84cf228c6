"""
main.py

FastAPI 애플리케이션 진입점(Entry Point).

이 파일은 서버 실행 시 가장 먼저 로드되며,
애플리케이션 전반의 설정과 라우터 등록을 담당한다.

주요 역할:
- create_app() 으로 FastAPI 앱 인스턴스 생성
- lifespan 에서 로깅 설정, Key-Value 저장소(Redis / 메모리) 생성
- CORS / 요청 로그 미들웨어, 예외 핸들러 등록
- 각 도메인별 라우터(auth, users, studies, sessions, attendance, admin) 등록
- 헬스 체크 및 DB 연결 상태 확인용 엔드포인트 제공

설계 원칙:
- 비즈니스 로직은 포함하지 않고 설정/조립 역할만 수행
- 실제 기능은 routers / services 계층에 위임

관련 파일:
- gogostudy.core.config        : 환경 변수 및 설정 로드
- gogostudy.core.errors        : 에러 응답 변환
- gogostudy.db.kv              : 세션 / 블랙리스트 저장소
- gogostudy.routers.*          : 기능별 API 라우터

"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from gogostudy.core.config import settings
from gogostudy.core.deps import get_db
from gogostudy.core.errors import register_exception_handlers
from gogostudy.core.log import configure_logging, request_logger
from gogostudy.db.base import Base
from gogostudy.db.kv import create_store
from gogostudy.db.session import engine
from gogostudy.routers import admin, attendance, auth, sessions, studies, users

import gogostudy.models  # noqa: F401  (metadata 등록)

logger = logging.getLogger("gogostudy")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 테스트에서는 미리 넣어 둔 저장소를 그대로 사용
    if getattr(app.state, "store", None) is None:
        app.state.store = create_store(settings)

    if settings.DB_AUTO_CREATE:
        Base.metadata.create_all(bind=engine)

    logger.info("%s %s started (env=%s)", settings.APP_NAME, settings.APP_VERSION, settings.APP_ENV)
    yield
    app.state.store.close()


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
    app.state.store = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_logger)
    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(studies.router)
    app.include_router(sessions.router)
    app.include_router(attendance.router)
    app.include_router(admin.router)

    """
    서버 헬스 체크 엔드포인트

    - 애플리케이션 프로세스가 정상 동작 중인지 확인
    - 로드밸런서 / 배포 환경에서 서버 상태 확인 용도

    """
    @app.get("/health")
    def health():
        return {"status": "ok", "service": settings.APP_NAME, "version": settings.APP_VERSION}

    """
    데이터베이스 연결 상태 확인 엔드포인트

    - 간단한 SELECT 1 쿼리를 통해 DB 연결 여부 확인
    - 서버는 살아 있으나 DB가 죽은 상황을 분리해서 감지 가능

    """
    @app.get("/db-ping")
    def db_ping(db: Session = Depends(get_db)):
        value = db.execute(text("SELECT 1")).scalar_one()
        return {"db": "ok", "value": value}

    return app


app = create_app()
