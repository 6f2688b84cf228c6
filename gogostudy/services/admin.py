"""
services/admin.py

관리자 관련 비즈니스 로직(Service) 모음.

이 파일은 관리자 기능에서 공통으로 사용되는
순수 비즈니스 로직을 담당한다.
라우터에서는 이 파일의 함수를 호출하여
DB 조회/검증/정책 판단을 수행한다.

주요 기능:
- 현재 활성 ADMIN 계정 수 계산
- 사용자 목록 검색 / 정렬 / 페이지네이션
- 서비스 전체 통계 (사용자 / 스터디 / 세션 / 출석)

설계 원칙:
- HTTP / FastAPI 의존성 없음
- 트랜잭션 제어는 라우터에서 수행
- 관리자 정책(마지막 ADMIN 보호 등)을 중앙에서 관리

관련 파일:
- gogostudy.models.user        : User / Role 모델
- gogostudy.routers.admin      : 관리자 API

"""

from sqlalchemy.orm import Session
from sqlalchemy import select, func, or_

from gogostudy.models.attendance import AttendanceRecord, AttendanceSession, AttendanceStatus
from gogostudy.models.study import Study, StudyStatus
from gogostudy.models.user import User, Role, UserStatus
from gogostudy.services.studies import parse_pagination, total_pages


_USER_SORTS = {
    "createdAt": User.created_at,
    "email": User.email,
    "name": User.name,
}


"""
현재 활성 ADMIN 계정 수를 반환

- Role.ADMIN 이면서 ACTIVE 인 사용자만 집계
- 마지막 ADMIN 보호 로직에서 사용

"""

def count_admins(db: Session) -> int:
    return db.scalar(
        select(func.count()).select_from(User).where(
            User.role == Role.ADMIN,
            User.status == UserStatus.ACTIVE,
        )
    ) or 0


def is_last_active_admin(db: Session, user: User) -> bool:
    return user.role == Role.ADMIN and user.status == UserStatus.ACTIVE and count_admins(db) <= 1


def _user_order(raw: str | None):
    field, _, direction = (raw or "").partition(":")
    column = _USER_SORTS.get(field)
    if column is None or direction.lower() not in ("asc", "desc", ""):
        return User.created_at.desc(), "createdAt:desc"
    direction = direction.lower() or "asc"
    clause = column.desc() if direction == "desc" else column.asc()
    return clause, f"{field}:{direction}"


"""
사용자 목록 조회

- keyword : 이메일 / 이름 부분 일치 (대소문자 무시)
- sort    : createdAt | email | name + :asc | :desc (기본 createdAt:desc)

"""

def list_users(db: Session, *, keyword: str | None = None, page=None, size=None, sort: str | None = None) -> dict:
    page_num, size_num = parse_pagination(page, size)
    order_by, sort_value = _user_order(sort)

    conditions = []
    if keyword and keyword.strip():
        pattern = f"%{keyword.strip().lower()}%"
        conditions.append(or_(func.lower(User.email).like(pattern), func.lower(User.name).like(pattern)))

    total = db.scalar(select(func.count()).select_from(User).where(*conditions)) or 0
    users = db.scalars(
        select(User)
        .where(*conditions)
        .order_by(order_by, User.id)
        .offset((page_num - 1) * size_num)
        .limit(size_num)
    ).all()

    return {
        "items": list(users),
        "page": page_num,
        "page_size": size_num,
        "total": total,
        "total_pages": total_pages(total, size_num),
        "sort": sort_value,
    }


def _count(db: Session, model, *conditions) -> int:
    return db.scalar(select(func.count()).select_from(model).where(*conditions)) or 0


def stats_overview(db: Session) -> dict:
    by_status = dict(
        db.execute(
            select(AttendanceRecord.status, func.count()).group_by(AttendanceRecord.status)
        ).all()
    )
    return {
        "users": {
            "total": _count(db, User),
            "active": _count(db, User, User.status == UserStatus.ACTIVE),
            "inactive": _count(db, User, User.status == UserStatus.INACTIVE),
            "admins": _count(db, User, User.role == Role.ADMIN),
        },
        "studies": {
            "total": _count(db, Study),
            **{s.value: _count(db, Study, Study.status == s) for s in StudyStatus},
        },
        "sessions": {"total": _count(db, AttendanceSession)},
        "attendance": {
            "total": sum(by_status.values()),
            **{s.value: by_status.get(s, 0) for s in AttendanceStatus},
        },
    }
