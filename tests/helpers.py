# tests/helpers.py
import uuid
from sqlalchemy.orm import Session
from sqlalchemy import select

from gogostudy.models.user import User, Role, UserStatus
from gogostudy.core.security import get_password_hash

DEFAULT_PASSWORD = "UserPassw0rd!"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:6]}@test.com"


def register(client, *, email: str | None = None, password: str = DEFAULT_PASSWORD, name: str = "테스트유저") -> dict:
    r = client.post(
        "/auth/register",
        json={"email": email or unique_email(), "password": password, "name": name},
    )
    assert r.status_code == 201, r.text
    return r.json()


def create_admin_in_db(db: Session, *, email: str, password: str) -> User:
    admin = User(
        email=email,
        password_hash=get_password_hash(password),
        name="ADMIN",
        role=Role.ADMIN,
        status=UserStatus.ACTIVE,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def login_admin(client, db: Session) -> dict:
    email = unique_email("admin")
    password = "AdminPassw0rd!"
    create_admin_in_db(db, email=email, password=password)
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


def create_study(client, token: str, **fields) -> dict:
    payload = {"title": "알고리즘 스터디", "description": "매주 문제 풀이"}
    payload.update(fields)
    r = client.post("/studies", json=payload, headers=auth_header(token))
    assert r.status_code == 201, r.text
    return r.json()["study"]


def join_and_approve(client, study_id: str, leader_token: str, member: dict) -> None:
    j = client.post(f"/studies/{study_id}/join", headers=auth_header(member["accessToken"]))
    assert j.status_code == 201, j.text
    a = client.patch(
        f"/studies/{study_id}/members/{member['user']['id']}/status",
        json={"status": "APPROVED"},
        headers=auth_header(leader_token),
    )
    assert a.status_code == 200, a.text


def create_session(client, study_id: str, token: str, *, title: str = "1주차", date: str = "2025-03-01T10:00:00Z") -> dict:
    r = client.post(
        f"/studies/{study_id}/sessions",
        json={"title": title, "date": date},
        headers=auth_header(token),
    )
    assert r.status_code == 201, r.text
    return r.json()["session"]


def get_user(db: Session, user_id: str) -> User:
    return db.scalar(select(User).where(User.id == uuid.UUID(user_id)))
