"""
TokenManager 단위 테스트.
- Redis 구현체(fakeredis) 위에서 발급 / 검증 / 회전 / 폐기 규칙과
  세션 / 블랙리스트 키의 TTL 을 확인한다.
"""

import json
import uuid
from types import SimpleNamespace

import fakeredis
import pytest

from gogostudy.core.config import settings
from gogostudy.core.errors import AppError
from gogostudy.core.security import create_token
from gogostudy.db.kv import RedisStore
from gogostudy.models.user import Role
from gogostudy.services.tokens import TokenManager


@pytest.fixture()
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def manager(redis_client):
    return TokenManager(settings, RedisStore(redis_client))


@pytest.fixture()
def user():
    return SimpleNamespace(id=uuid.uuid4(), role=Role.USER)


def _error_code(fn, *args) -> str:
    with pytest.raises(AppError) as exc:
        fn(*args)
    assert exc.value.status_code == 401
    return exc.value.code


def test_issued_tokens_verify(manager, user):
    pair = manager.issue_tokens(user)

    access = manager.verify_access_token(pair.access_token)
    assert access["sub"] == str(user.id)
    assert access["role"] == "USER"
    assert access["type"] == "access"

    refresh = manager.verify_refresh_token(pair.refresh_token)
    assert refresh["type"] == "refresh"
    assert refresh["sid"] == pair.session_id
    assert refresh["jti"] != access["jti"]


def test_session_record_is_written_with_refresh_ttl(manager, user, redis_client):
    pair = manager.issue_tokens(user)
    key = f"refresh-session:{pair.session_id}"

    record = json.loads(redis_client.get(key))
    assert record["userId"] == str(user.id)
    assert record["jti"] == manager.verify_refresh_token(pair.refresh_token)["jti"]
    assert record["rotatedAt"] is None

    ttl = redis_client.ttl(key)
    assert 0 < ttl <= settings.REFRESH_TOKEN_TTL_SECONDS


def test_token_type_is_enforced(manager, user):
    pair = manager.issue_tokens(user)
    # 서로 다른 secret 이므로 서명 단계에서 거부
    assert _error_code(manager.verify_access_token, pair.refresh_token) == "INVALID_TOKEN"
    assert _error_code(manager.verify_refresh_token, pair.access_token) == "INVALID_TOKEN"


def test_wrong_type_claim_with_valid_signature(manager, user):
    token, _ = create_token(
        subject=str(user.id),
        role="USER",
        token_type="refresh",
        ttl_seconds=60,
        secret=settings.JWT_ACCESS_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    assert _error_code(manager.verify_access_token, token) == "INVALID_TOKEN"


def test_expired_and_tampered_tokens(manager, user):
    expired, _ = create_token(
        subject=str(user.id),
        role="USER",
        token_type="access",
        ttl_seconds=-30,
        secret=settings.JWT_ACCESS_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    assert _error_code(manager.verify_access_token, expired) == "INVALID_TOKEN"

    pair = manager.issue_tokens(user)
    tampered = pair.access_token[:-2] + ("AA" if not pair.access_token.endswith("AA") else "BB")
    assert _error_code(manager.verify_access_token, tampered) == "INVALID_TOKEN"


def test_refresh_without_sid_is_invalid(manager, user):
    token, _ = create_token(
        subject=str(user.id),
        role="USER",
        token_type="refresh",
        ttl_seconds=60,
        secret=settings.JWT_REFRESH_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    assert _error_code(manager.verify_refresh_token, token) == "INVALID_TOKEN"


def test_rotation_keeps_session_and_revokes_old(manager, user, redis_client):
    pair = manager.issue_tokens(user)
    old_jti = manager.verify_refresh_token(pair.refresh_token)["jti"]

    returned_user, new_pair = manager.refresh_tokens(pair.refresh_token, lambda sub: user)
    assert returned_user is user
    assert new_pair.session_id == pair.session_id

    # 이전 jti 는 블랙리스트 (TTL = 남은 수명)
    ttl = redis_client.ttl(f"blacklist:{old_jti}")
    assert 1 <= ttl <= settings.REFRESH_TOKEN_TTL_SECONDS

    record = json.loads(redis_client.get(f"refresh-session:{pair.session_id}"))
    assert record["jti"] == manager.verify_refresh_token(new_pair.refresh_token)["jti"]
    assert record["rotatedAt"] is not None

    assert _error_code(manager.refresh_tokens, pair.refresh_token, lambda sub: user) == "TOKEN_REVOKED"


def test_rotation_uses_current_role(manager, user):
    pair = manager.issue_tokens(user)
    promoted = SimpleNamespace(id=user.id, role=Role.ADMIN)

    _, new_pair = manager.refresh_tokens(pair.refresh_token, lambda sub: promoted)
    assert manager.verify_access_token(new_pair.access_token)["role"] == "ADMIN"


def test_failed_user_lookup_does_not_consume_token(manager, user):
    pair = manager.issue_tokens(user)

    def reject(sub):
        raise AppError("gone", status_code=401, code="USER_NOT_FOUND")

    assert _error_code(manager.refresh_tokens, pair.refresh_token, reject) == "USER_NOT_FOUND"
    # 사용자 확인 전에 실패했으므로 토큰은 아직 유효
    manager.verify_refresh_token(pair.refresh_token)


def test_logout_revokes_access_and_deletes_session(manager, user, redis_client):
    pair = manager.issue_tokens(user)
    manager.logout(pair.refresh_token, pair.access_token)

    assert redis_client.get(f"refresh-session:{pair.session_id}") is None
    assert _error_code(manager.verify_access_token, pair.access_token) == "TOKEN_REVOKED"
    assert _error_code(manager.verify_refresh_token, pair.refresh_token) == "TOKEN_REVOKED"
    assert _error_code(manager.logout, pair.refresh_token) == "TOKEN_REVOKED"


def test_logout_ignores_other_users_access_token(manager, user):
    other = SimpleNamespace(id=uuid.uuid4(), role=Role.USER)
    mine = manager.issue_tokens(user)
    theirs = manager.issue_tokens(other)

    manager.logout(mine.refresh_token, theirs.access_token)
    assert manager.verify_access_token(theirs.access_token)["sub"] == str(other.id)


def test_logout_sessions_are_independent(manager, user):
    first = manager.issue_tokens(user)
    second = manager.issue_tokens(user)
    assert first.session_id != second.session_id

    manager.logout(first.refresh_token)
    assert manager.verify_refresh_token(second.refresh_token)["sid"] == second.session_id
