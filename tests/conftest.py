import os

# ✅ settings 가 import 시점에 읽히므로 앱 import 전에 테스트 환경 고정
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["REDIS_DISABLED"] = "true"
os.environ["GOOGLE_CLIENT_ID"] = ""
os.environ["DB_AUTO_CREATE"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gogostudy.main import app as fastapi_app
from gogostudy.core.deps import get_db
from gogostudy.db.base import Base
from gogostudy.db.kv import InMemoryStore

# ✅ 모델 import (Base.metadata에 테이블 등록)
import gogostudy.models  # noqa: F401


# 메모리 sqlite 를 모든 커넥션이 공유하도록 StaticPool 사용
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_test_db():
    """테스트마다 스키마 새로 생성"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session():
    """테스트에서 직접 DB 조작할 때 쓰는 세션"""
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def store():
    return InMemoryStore()


@pytest.fixture()
def client(store):
    fastapi_app.state.store = store
    fastapi_app.dependency_overrides[get_db] = override_get_db
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.store = None
