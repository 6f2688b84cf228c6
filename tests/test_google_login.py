"""
Google 로그인 서비스 테스트.
- 실제 Google 검증 대신 verify_oauth2_token 을 monkeypatch 하여
  잘못된 토큰(ValueError / 잘못된 issuer) -> 401 INVALID_GOOGLE_TOKEN,
  최초 로그인 시 GOOGLE 계정 생성, 기존 이메일 계정 재사용을 확인.
"""

from types import SimpleNamespace

import pytest
from google.auth.exceptions import GoogleAuthError

from gogostudy.core.errors import AppError
from gogostudy.models.user import AuthProvider
from gogostudy.services import auth as auth_service
from tests.helpers import register

GOOGLE_SETTINGS = SimpleNamespace(GOOGLE_CLIENT_ID="test-client-id.apps.googleusercontent.com")


def _patch_verify(monkeypatch, fn):
    monkeypatch.setattr(auth_service.google_id_token, "verify_oauth2_token", fn)


@pytest.mark.parametrize("error", [ValueError("Token expired"), GoogleAuthError("Wrong issuer.")])
def test_invalid_google_token_is_401(monkeypatch, db_session, error):
    def fake_verify(token, request, audience):
        raise error

    _patch_verify(monkeypatch, fake_verify)

    with pytest.raises(AppError) as exc:
        auth_service.login_with_google(db_session, GOOGLE_SETTINGS, "bad-token")
    assert exc.value.status_code == 401
    assert exc.value.code == "INVALID_GOOGLE_TOKEN"


def test_google_payload_without_email_is_401(monkeypatch, db_session):
    _patch_verify(monkeypatch, lambda token, request, audience: {"sub": "g-1"})

    with pytest.raises(AppError) as exc:
        auth_service.login_with_google(db_session, GOOGLE_SETTINGS, "token")
    assert exc.value.code == "INVALID_GOOGLE_TOKEN"


def test_first_google_login_creates_account(monkeypatch, db_session):
    _patch_verify(
        monkeypatch,
        lambda token, request, audience: {"sub": "g-123", "email": "Google.User@Test.com", "name": "구글유저"},
    )

    user = auth_service.login_with_google(db_session, GOOGLE_SETTINGS, "token")
    assert user.email == "google.user@test.com"
    assert user.provider == AuthProvider.GOOGLE
    assert user.provider_id == "g-123"
    assert user.password_hash == ""

    again = auth_service.login_with_google(db_session, GOOGLE_SETTINGS, "token")
    assert again.id == user.id


def test_google_login_reuses_existing_email(client, monkeypatch, db_session):
    existing = register(client, email="local@test.com")
    _patch_verify(monkeypatch, lambda token, request, audience: {"sub": "g-9", "email": "LOCAL@test.com"})

    user = auth_service.login_with_google(db_session, GOOGLE_SETTINGS, "token")
    assert str(user.id) == existing["user"]["id"]
    assert user.provider == AuthProvider.LOCAL
