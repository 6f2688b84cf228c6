"""
deps.py

FastAPI 의존성(Depends) 모음.

주요 기능:
- 요청 단위 DB 세션 (get_db)
- 기동 시 만들어진 Key-Value 저장소 / TokenManager 주입
- Bearer access 토큰 검증 후 현재 사용자 조회
- ADMIN 권한 검사

관련 파일:
- gogostudy.services.tokens  : 토큰 검증 / 폐기 여부 확인
- gogostudy.main             : lifespan 에서 app.state.store 생성

"""

from typing import Generator
import uuid

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from gogostudy.core.config import settings
from gogostudy.core.errors import forbidden, unauthorized
from gogostudy.db.kv import KeyValueStore
from gogostudy.db.session import SessionLocal
from gogostudy.models.user import User, UserStatus
from gogostudy.services.tokens import TokenManager

# Swagger Authorize에서 "Bearer 토큰" 입력받는 스키마
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_token_manager(store: KeyValueStore = Depends(get_store)) -> TokenManager:
    return TokenManager(settings, store)


def get_bearer_token(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    # 로그아웃처럼 access 토큰이 선택인 경우에 사용
    if cred is None or not cred.credentials:
        return None
    return cred.credentials


def get_current_user(
    token: str | None = Depends(get_bearer_token),
    tokens: TokenManager = Depends(get_token_manager),
    db: Session = Depends(get_db),
) -> User:
    if token is None:
        raise unauthorized("Not authenticated")

    # 서명 / 만료 / type / 블랙리스트 검사
    claims = tokens.verify_access_token(token)

    try:
        user_id = uuid.UUID(claims["sub"])
    except ValueError:
        raise unauthorized("Invalid token subject", code="INVALID_TOKEN")

    user = db.get(User, user_id)
    if not user:
        raise unauthorized("User not found", code="USER_NOT_FOUND")
    if user.status != UserStatus.ACTIVE:
        raise forbidden("Account is inactive", code="ACCOUNT_INACTIVE")

    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise forbidden("Admin role required")
    return current_user
