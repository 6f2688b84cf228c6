"""
services/auth.py

회원 가입 / 로그인 / 소셜 로그인 비즈니스 로직.

토큰 발급 자체는 TokenManager가 담당하고,
이 파일은 "누구에게 토큰을 줄 것인가"(계정 확인)만 판단한다.

주요 기능:
- 이메일 회원 가입 (소문자 정규화, 중복 시 EMAIL_TAKEN)
- 이메일 / 비밀번호 로그인 (비활성 계정 차단)
- Google ID 토큰 로그인 (없으면 계정 생성)
- refresh 시 토큰 subject -> 현재 사용자 조회

설계 원칙:
- HTTP / FastAPI 의존성 없음, 실패는 AppError로 전달
- 커밋 실패 시 rollback 후 에러 변환

관련 파일:
- gogostudy.core.security    : 비밀번호 해시
- gogostudy.services.tokens  : 토큰 발급 / 회전
- gogostudy.routers.auth     : 인증 API

"""

import logging
import uuid

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gogostudy.core.config import Settings
from gogostudy.core.errors import AppError, conflict, database_error, forbidden, unauthorized
from gogostudy.core.security import get_password_hash, verify_password
from gogostudy.models.user import AuthProvider, Role, User, UserStatus

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def ensure_active(user: User) -> None:
    if user.status != UserStatus.ACTIVE:
        raise forbidden("Account is inactive", code="ACCOUNT_INACTIVE")


"""
회원 가입

- 이메일은 소문자로 저장 (대소문자만 다른 이메일도 중복)
- 기본 권한은 USER, 가입 경로는 LOCAL
- 동시 가입으로 unique 제약에 걸려도 EMAIL_TAKEN

"""

def register_user(db: Session, *, email: str, password: str, name: str) -> User:
    email = normalize_email(email)

    if db.scalar(select(User).where(User.email == email)):
        raise conflict("Email already registered", code="EMAIL_TAKEN")

    user = User(
        email=email,
        password_hash=get_password_hash(password),
        name=name.strip(),
        role=Role.USER,
        status=UserStatus.ACTIVE,
        provider=AuthProvider.LOCAL,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise conflict("Email already registered", code="EMAIL_TAKEN")
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)

    logger.info("User registered user_id=%s", user.id)
    return user


"""
이메일 / 비밀번호 로그인

- 계정이 없거나 비밀번호가 틀리면 같은 에러 (INVALID_CREDENTIALS)
- 소셜 전용 계정(빈 해시)은 비밀번호 로그인 불가
- 비활성 계정은 ACCOUNT_INACTIVE

"""

def authenticate(db: Session, *, email: str, password: str) -> User:
    user = db.scalar(select(User).where(User.email == normalize_email(email)))

    if not user or not verify_password(password, user.password_hash):
        logger.info("Login failed")
        raise unauthorized("Invalid email or password", code="INVALID_CREDENTIALS")

    ensure_active(user)
    logger.info("Login succeeded user_id=%s", user.id)
    return user


def load_active_user(db: Session, subject: str) -> User:
    """토큰 subject(사용자 id 문자열)로 활성 사용자를 조회한다."""
    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        raise unauthorized("Invalid token subject", code="INVALID_TOKEN")

    user = db.get(User, user_id)
    if not user:
        raise unauthorized("User not found", code="USER_NOT_FOUND")
    ensure_active(user)
    return user


"""
Google 로그인

- GOOGLE_CLIENT_ID 미설정 시 500 GOOGLE_AUTH_NOT_CONFIGURED
- ID 토큰 검증 실패 / email, sub 누락 시 401 INVALID_GOOGLE_TOKEN
- 같은 이메일 계정이 없으면 GOOGLE 계정을 새로 만든다 (빈 비밀번호 해시)

"""

def login_with_google(db: Session, settings: Settings, token: str) -> User:
    if not settings.GOOGLE_CLIENT_ID:
        raise AppError("Google login is not configured", status_code=500, code="GOOGLE_AUTH_NOT_CONFIGURED")

    # 서명 / 만료 / audience 오류는 ValueError, issuer 오류는 GoogleAuthError
    try:
        payload = google_id_token.verify_oauth2_token(
            token,
            google_requests.Request(),
            settings.GOOGLE_CLIENT_ID,
        )
    except (ValueError, GoogleAuthError):
        raise unauthorized("Invalid Google token", code="INVALID_GOOGLE_TOKEN")

    if not payload or not payload.get("email") or not payload.get("sub"):
        raise unauthorized("Invalid Google token", code="INVALID_GOOGLE_TOKEN")

    email = normalize_email(payload["email"])
    user = db.scalar(select(User).where(User.email == email))
    if user is None:
        user = User(
            email=email,
            name=payload.get("name") or email,
            password_hash="",
            provider=AuthProvider.GOOGLE,
            provider_id=payload["sub"],
            status=UserStatus.ACTIVE,
        )
        try:
            db.add(user)
            db.commit()
            db.refresh(user)
        except IntegrityError:
            db.rollback()
            raise conflict("Email already registered", code="EMAIL_TAKEN")
        except SQLAlchemyError as e:
            db.rollback()
            raise database_error(e)
        logger.info("Google account created user_id=%s", user.id)

    ensure_active(user)
    return user
