"""
services/tokens.py

Access / Refresh 토큰 수명주기(발급, 검증, 회전, 폐기) 관리.

Refresh 세션 상태:
    ISSUED -> ACTIVE -> ROTATED | REVOKED

저장소 키 (gogostudy.db.kv):
- refresh-session:{sid} : 현재 유효한 refresh 토큰의 jti (TTL = refresh 수명)
- blacklist:{jti}       : 폐기된 토큰 표시 (TTL = 토큰 남은 수명, 최소 1초)

규칙:
- access / refresh 모두 sub, role, type, jti 를 가지며 refresh 는 sid 도 가진다
- 회전 시 기존 refresh jti 는 블랙리스트에 오르고 같은 sid 로 새 쌍이 발급된다
- 로그아웃 시 refresh(및 전달된 access) jti 를 블랙리스트에 올리고 세션을 지운다
- 블랙리스트에 있는 jti 는 TOKEN_REVOKED, 그 외 검증 실패는 INVALID_TOKEN

"""

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable

from jose import JWTError

from gogostudy.core.config import Settings
from gogostudy.core.errors import unauthorized
from gogostudy.core.security import create_token, decode_token
from gogostudy.db.kv import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY = "refresh-session:{sid}"
BLACKLIST_KEY = "blacklist:{jti}"

_REQUIRED_CLAIMS = ("sub", "role", "type", "jti")


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    session_id: str


class TokenManager:
    def __init__(self, settings: Settings, store: KeyValueStore, clock: Callable[[], float] = time.time):
        self._settings = settings
        self._store = store
        self._clock = clock

    # 발급

    def issue_tokens(self, user, session_id: str | None = None) -> TokenPair:
        # session_id 가 주어지면 같은 세션을 이어서 회전한 것으로 본다
        sid = session_id or str(uuid.uuid4())
        subject = str(user.id)
        role = user.role.value if hasattr(user.role, "value") else str(user.role)

        access, _ = create_token(
            subject=subject,
            role=role,
            token_type="access",
            ttl_seconds=self._settings.ACCESS_TOKEN_TTL_SECONDS,
            secret=self._settings.JWT_ACCESS_SECRET,
            algorithm=self._settings.JWT_ALGORITHM,
        )
        refresh, refresh_claims = create_token(
            subject=subject,
            role=role,
            token_type="refresh",
            ttl_seconds=self._settings.REFRESH_TOKEN_TTL_SECONDS,
            secret=self._settings.JWT_REFRESH_SECRET,
            algorithm=self._settings.JWT_ALGORITHM,
            extra={"sid": sid},
        )

        self._store.set(
            SESSION_KEY.format(sid=sid),
            json.dumps({
                "userId": subject,
                "jti": refresh_claims["jti"],
                "rotatedAt": refresh_claims["iat"] if session_id else None,
            }),
            self._settings.REFRESH_TOKEN_TTL_SECONDS,
        )
        return TokenPair(access_token=access, refresh_token=refresh, session_id=sid)

    # 검증

    def _decode(self, token: str, *, secret: str, expected_type: str) -> dict[str, Any]:
        try:
            claims = decode_token(token, secret=secret, algorithm=self._settings.JWT_ALGORITHM)
        except JWTError:
            raise unauthorized("Invalid or expired token", code="INVALID_TOKEN")

        for name in _REQUIRED_CLAIMS:
            value = claims.get(name)
            if not isinstance(value, str) or not value:
                raise unauthorized(f"Token is missing {name} claim", code="INVALID_TOKEN")

        if claims["type"] != expected_type:
            raise unauthorized(f"Invalid {expected_type} token", code="INVALID_TOKEN")
        return claims

    def is_revoked(self, jti: str) -> bool:
        return self._store.exists(BLACKLIST_KEY.format(jti=jti))

    def verify_access_token(self, token: str) -> dict[str, Any]:
        claims = self._decode(token, secret=self._settings.JWT_ACCESS_SECRET, expected_type="access")
        if self.is_revoked(claims["jti"]):
            raise unauthorized("Token has been revoked", code="TOKEN_REVOKED")
        return claims

    def verify_refresh_token(self, token: str) -> dict[str, Any]:
        claims = self._decode(token, secret=self._settings.JWT_REFRESH_SECRET, expected_type="refresh")
        sid = claims.get("sid")
        if not isinstance(sid, str) or not sid:
            raise unauthorized("Invalid refresh token", code="INVALID_TOKEN")

        if self.is_revoked(claims["jti"]):
            raise unauthorized("Token has been revoked", code="TOKEN_REVOKED")

        raw = self._store.get(SESSION_KEY.format(sid=sid))
        if raw is None:
            raise unauthorized("Refresh session is no longer active", code="TOKEN_REVOKED")
        session = json.loads(raw)
        if session.get("jti") != claims["jti"]:
            raise unauthorized("Token has been revoked", code="TOKEN_REVOKED")
        return claims

    # 회전 / 폐기

    def _revoke(self, claims: dict[str, Any]) -> None:
        remaining = int(claims.get("exp", 0) - self._clock())
        self._store.set(BLACKLIST_KEY.format(jti=claims["jti"]), "1", max(remaining, 1))

    def refresh_tokens(self, refresh_token: str, resolve_user: Callable[[str], Any]) -> tuple[Any, TokenPair]:
        """
        refresh 토큰 회전.

        resolve_user(sub) 는 현재 사용자 객체를 돌려주거나 AppError를 raise 해야 한다
        (탈퇴 / 비활성 사용자 차단, 최신 role 반영).
        """
        try:
            claims = self.verify_refresh_token(refresh_token)
        except Exception:
            logger.info("Refresh rejected (reused, revoked or invalid token)")
            raise

        user = resolve_user(claims["sub"])
        self._revoke(claims)
        pair = self.issue_tokens(user, session_id=claims["sid"])
        return user, pair

    def logout(self, refresh_token: str, access_token: str | None = None) -> None:
        claims = self.verify_refresh_token(refresh_token)
        self._revoke(claims)
        self._store.delete(SESSION_KEY.format(sid=claims["sid"]))

        if not access_token:
            return
        try:
            access_claims = decode_token(
                access_token,
                secret=self._settings.JWT_ACCESS_SECRET,
                algorithm=self._settings.JWT_ALGORITHM,
            )
        except JWTError:
            # 이미 만료 / 위조된 access 토큰은 폐기할 필요 없음
            return
        if access_claims.get("type") == "access" and access_claims.get("sub") == claims["sub"] and access_claims.get("jti"):
            self._revoke(access_claims)
