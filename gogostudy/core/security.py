"""
security.py

비밀번호 해싱 및 JWT 서명/검증 저수준 유틸리티 모음.

라우터나 비즈니스 로직은 포함하지 않으며,
토큰 발급 / 회전 / 폐기 규칙은 gogostudy.services.tokens 에서 담당한다.

주요 기능:
- 비밀번호 해싱 및 검증 (bcrypt)
- JWT 서명 (sub / role / type / jti / iat / exp + 추가 클레임)
- JWT 디코딩 (서명 / 만료 검증)

관련 파일:
- gogostudy.services.tokens   : 토큰 수명주기 관리
- gogostudy.services.auth     : 회원 가입 / 로그인

"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Literal, Optional

from jose import jwt
from passlib.context import CryptContext


# bcrypt 기반 비밀번호 해싱 컨텍스트
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TokenType = Literal["access", "refresh"]


"""
비밀번호 해싱 함수

- 평문 비밀번호를 bcrypt 해시로 변환
- DB에는 해시 값만 저장

"""

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


"""
비밀번호 검증 함수

- 소셜 전용 계정(빈 해시)은 항상 False

"""

def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_token(
    *,
    subject: str,
    role: str,
    token_type: TokenType,
    ttl_seconds: int,
    secret: str,
    algorithm: str,
    extra: Optional[dict] = None,
) -> tuple[str, dict[str, Any]]:
    """서명된 토큰과 그 클레임을 함께 반환한다."""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(seconds=ttl_seconds)
    claims: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "type": token_type,
        "jti": str(uuid.uuid4()),
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    if extra:
        claims.update(extra)
    return jwt.encode(claims, secret, algorithm=algorithm), claims


def decode_token(token: str, *, secret: str, algorithm: str) -> dict[str, Any]:
    # 서명 / 만료 오류는 jose.JWTError (ExpiredSignatureError 포함) 로 전파
    return jwt.decode(token, secret, algorithms=[algorithm])
