"""
session.py

데이터베이스 엔진 및 세션(Session) 관리 파일.

SQLAlchemy Engine과 SessionLocal을 생성하고,
FastAPI 의존성(get_db)을 통해 요청 단위로 세션을 생성/종료한다.

- pool_pre_ping=True : 유휴 후 끊어진 커넥션 자동 감지
- sqlite URL 은 check_same_thread=False (로컬 / 테스트)

관련 파일:
- gogostudy.core.config   : DATABASE_URL 설정
- gogostudy.core.deps     : get_db 의존성 (요청 단위 세션)

"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from gogostudy.core.config import settings


def _connect_args(url: str) -> dict:
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

# 요청 단위로 사용할 세션 팩토리
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
