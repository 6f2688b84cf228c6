"""
admin.py

관리자(ADMIN) 전용 API 모음.

주요 기능:
- 사용자 목록 검색 / 권한 변경 / 비활성화 / 재활성화
- 사용자별 출석 기록 조회
- 전체 스터디 목록, 서비스 통계
- 관리자 행위 로그 조회

설계 원칙:
- 모든 엔드포인트는 get_current_admin 필요
- 마지막 활성 ADMIN 은 강등 / 비활성화 불가 (400 LAST_ADMIN)
- 본인 권한 / 상태는 변경 불가 (400 INVALID_OPERATION)
- 변경과 로그 기록은 같은 트랜잭션에서 커밋

관련 파일:
- gogostudy.services.admin      : 목록 / 통계 / 마지막 ADMIN 판정
- gogostudy.services.admin_log  : 행위 로그 기록

"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gogostudy.core.deps import get_db, get_current_admin
from gogostudy.core.errors import bad_request, database_error, not_found
from gogostudy.models.admin_log import AdminAction
from gogostudy.models.user import Role, User, UserStatus
from gogostudy.schemas.attendance import MyRecordResponse
from gogostudy.schemas.study import StudyResponse
from gogostudy.schemas.user import RoleUpdate, UserResponse
from gogostudy.services import studies as study_service
from gogostudy.services.admin import is_last_active_admin, list_users, stats_overview
from gogostudy.services.admin_log import recent_logs, write_admin_log
from gogostudy.services.attendance import my_attendance


router = APIRouter(prefix="/admin", tags=["admin"])


def _get_user_or_404(db: Session, user_id: uuid.UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise not_found("User not found", code="USER_NOT_FOUND")
    return user


@router.get("/users")
def admin_list_users(
    keyword: str | None = None,
    page: str | None = None,
    size: str | None = None,
    sort: str | None = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    result = list_users(db, keyword=keyword, page=page, size=size, sort=sort)
    return {
        "data": [UserResponse.model_validate(u) for u in result["items"]],
        "page": result["page"],
        "pageSize": result["page_size"],
        "total": result["total"],
        "totalPages": result["total_pages"],
        "sort": result["sort"],
    }


# 관리자가 회원 권한을 변경하는 엔드포인트
@router.patch("/users/{user_id}/role")
def set_role(
    user_id: uuid.UUID,
    data: RoleUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    user = _get_user_or_404(db, user_id)

    # 자기 자신 권한 변경 금지
    if user.id == current_admin.id:
        raise bad_request("Cannot change your own role", code="INVALID_OPERATION")

    # 이미 해당 권한인 경우
    if user.role == data.role:
        raise bad_request(f"User already {user.role.value}", code="INVALID_ROLE")

    # 마지막 ADMIN 강등 금지
    if data.role != Role.ADMIN and is_last_active_admin(db, user):
        raise bad_request("Cannot demote the last ADMIN", code="LAST_ADMIN")

    before = user.role

    try:
        user.role = data.role
        write_admin_log(
            db,
            actor_id=current_admin.id,
            action=AdminAction.SET_ROLE,
            target_user_id=user.id,
            before_value=before.value,
            after_value=user.role.value,
        )
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)

    return {"user": UserResponse.model_validate(user)}


def _set_status(db: Session, current_admin: User, user: User, new_status: UserStatus) -> User:
    if user.id == current_admin.id:
        raise bad_request("Cannot change your own status", code="INVALID_OPERATION")
    if user.status == new_status:
        return user
    if new_status == UserStatus.INACTIVE and is_last_active_admin(db, user):
        raise bad_request("Cannot deactivate the last ADMIN", code="LAST_ADMIN")

    before = user.status
    action = AdminAction.DEACTIVATE_USER if new_status == UserStatus.INACTIVE else AdminAction.ACTIVATE_USER

    try:
        user.status = new_status
        write_admin_log(
            db,
            actor_id=current_admin.id,
            action=action,
            target_user_id=user.id,
            before_value=before.value,
            after_value=new_status.value,
        )
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    return user


"""
사용자 비활성화 API

- 비활성 사용자는 로그인 / 토큰 재발급 / 인증 API 모두 403 ACCOUNT_INACTIVE
- 이미 비활성이면 그대로 반환

"""

@router.patch("/users/{user_id}/deactivate")
def deactivate_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    user = _set_status(db, current_admin, _get_user_or_404(db, user_id), UserStatus.INACTIVE)
    return {"user": UserResponse.model_validate(user)}


@router.patch("/users/{user_id}/activate")
def activate_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    user = _set_status(db, current_admin, _get_user_or_404(db, user_id), UserStatus.ACTIVE)
    return {"user": UserResponse.model_validate(user)}


@router.get("/users/{user_id}/attendance")
def user_attendance(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    user = _get_user_or_404(db, user_id)
    records = my_attendance(db, user)
    return {
        "user": UserResponse.model_validate(user),
        "records": [MyRecordResponse.model_validate(r) for r in records],
    }


@router.get("/studies")
def admin_list_studies(
    keyword: str | None = None,
    category: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    page: str | None = None,
    size: str | None = None,
    sort: str | None = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    result = study_service.list_studies(
        db,
        keyword=keyword,
        category=category,
        status=status_filter,
        page=page,
        page_size=size,
        sort=sort,
    )
    return {
        "data": [StudyResponse.model_validate(s) for s in result["items"]],
        "page": result["page"],
        "pageSize": result["page_size"],
        "total": result["total"],
        "totalPages": result["total_pages"],
        "sort": result["sort"],
    }


@router.get("/stats/overview")
def overview(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    return stats_overview(db)


# 관리자 행위 로그 (최근 순)
@router.get("/logs")
def list_logs(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    logs = recent_logs(db, limit)
    return {
        "data": [
            {
                "id": str(log.id),
                "actorId": str(log.actor_id),
                "targetUserId": str(log.target_user_id) if log.target_user_id else None,
                "action": log.action.value,
                "beforeValue": log.before_value,
                "afterValue": log.after_value,
                "createdAt": log.created_at.isoformat(),
            }
            for log in logs
        ]
    }
