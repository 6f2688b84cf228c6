"""
auth.py

인증(Authentication) API 모음.

이 파일은 회원 가입, 로그인, 토큰 재발급, 로그아웃, Google 로그인과 같이
사용자 인증 흐름 전반을 담당한다.
JWT 기반 인증 방식을 사용하며, Access Token + Refresh Token 구조를 따른다.

주요 기능:
- 회원 가입 및 토큰 발급
- 로그인 및 토큰 발급
- Refresh Token 회전 (같은 세션 유지, 기존 토큰은 재사용 불가)
- 로그아웃 (Refresh / Access 토큰 블랙리스트 등록)
- Google ID 토큰 로그인

설계 원칙:
- Access Token은 Authorization Header로 전달
- Refresh Token은 요청 바디(refreshToken)로 전달
- 토큰 폐기 상태는 Key-Value 저장소(Redis)의 세션 / 블랙리스트로 관리

관련 파일:
- gogostudy.services.auth     : 계정 확인 (가입 / 로그인 / Google)
- gogostudy.services.tokens   : 토큰 발급 / 회전 / 폐기
- gogostudy.schemas.auth      : 인증 관련 요청/응답

"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gogostudy.core.config import settings
from gogostudy.core.deps import get_bearer_token, get_db, get_token_manager
from gogostudy.models.user import User
from gogostudy.schemas.auth import (
    AuthResponse,
    GoogleLoginRequest,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
)
from gogostudy.schemas.user import UserResponse
from gogostudy.services import auth as auth_service
from gogostudy.services.tokens import TokenManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: User, tokens: TokenManager) -> AuthResponse:
    pair = tokens.issue_tokens(user)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )


"""
회원 가입 API

- 이메일은 소문자로 정규화하여 저장
- 이미 가입된 이메일이면 409 EMAIL_TAKEN
- 가입 즉시 토큰 쌍 발급

"""

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    tokens: TokenManager = Depends(get_token_manager),
):
    user = auth_service.register_user(db, email=data.email, password=data.password, name=data.name)
    return _auth_response(user, tokens)


"""
로그인 API

- 이메일 / 비밀번호 불일치 시 401 INVALID_CREDENTIALS
- 비활성 계정은 403 ACCOUNT_INACTIVE

"""

@router.post("/login")
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenManager = Depends(get_token_manager),
):
    user = auth_service.authenticate(db, email=data.email, password=data.password)
    return _auth_response(user, tokens)


"""
토큰 재발급 API

- 기존 refresh 토큰은 블랙리스트에 등록되고 같은 세션으로 새 쌍 발급
- 이미 사용된 / 폐기된 refresh 토큰은 401 TOKEN_REVOKED
- 재발급 시점의 사용자 role 이 새 토큰에 반영됨

"""

@router.post("/refresh")
def refresh(
    data: RefreshRequest,
    db: Session = Depends(get_db),
    tokens: TokenManager = Depends(get_token_manager),
):
    user, pair = tokens.refresh_tokens(
        data.refresh_token,
        lambda subject: auth_service.load_active_user(db, subject),
    )
    return AuthResponse(
        user=UserResponse.model_validate(user),
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )


"""
로그아웃 API

- refresh 토큰(필수)과 Authorization 헤더의 access 토큰(선택)을 모두 폐기
- 이후 두 토큰 모두 401 TOKEN_REVOKED

"""

@router.post("/logout")
def logout(
    data: LogoutRequest,
    access_token: str | None = Depends(get_bearer_token),
    tokens: TokenManager = Depends(get_token_manager),
):
    tokens.logout(data.refresh_token, access_token)
    logger.info("Logout completed")
    return {"success": True}


@router.post("/google")
def google_login(
    data: GoogleLoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenManager = Depends(get_token_manager),
):
    user = auth_service.login_with_google(db, settings, data.id_token)
    return _auth_response(user, tokens)
