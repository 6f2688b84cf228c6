"""
users.py

로그인한 사용자 본인용 API 모음.

관리자용 사용자 관리 기능(admin.py)과 분리하여,
본인 계정 범위의 조회 / 수정만 담당한다.

주요 기능:
- 본인 프로필 조회 / 이름 수정
- 비밀번호 변경
- 본인 출석 기록 조회 (세션 / 스터디 정보 포함)

관련 파일:
- gogostudy.core.deps             : 인증(get_current_user)
- gogostudy.services.attendance   : 출석 기록 조회
"""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gogostudy.core.deps import get_current_user, get_db
from gogostudy.core.errors import bad_request, database_error
from gogostudy.core.security import get_password_hash, verify_password
from gogostudy.models.user import User
from gogostudy.schemas.attendance import MyRecordResponse
from gogostudy.schemas.user import ChangePasswordRequest, UpdateMeRequest, UserResponse
from gogostudy.services.attendance import my_attendance

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {"user": UserResponse.model_validate(current_user)}


@router.patch("/me")
def update_me(
    data: UpdateMeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    current_user.name = data.name.strip()
    try:
        db.commit()
        db.refresh(current_user)
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)

    return {"user": UserResponse.model_validate(current_user)}


"""
비밀번호 변경 API

- 현재 비밀번호 확인 필수 (불일치 시 400 INVALID_PASSWORD)
- 새 비밀번호는 기존 비밀번호와 달라야 함
- 소셜 전용 계정(비밀번호 없음)은 변경 불가

"""

@router.patch("/me/password")
def change_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # 1) 현재 비밀번호 확인
    if not verify_password(data.current_password, current_user.password_hash):
        raise bad_request("Current password is incorrect", code="INVALID_PASSWORD")

    # 2) 새 비밀번호가 기존과 같은지 방지
    if data.current_password == data.new_password:
        raise bad_request("New password must be different", code="INVALID_PASSWORD")

    try:
        current_user.password_hash = get_password_hash(data.new_password)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)

    return {"success": True}


@router.get("/me/attendance")
def my_attendance_records(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    records = my_attendance(db, current_user)
    return {"records": [MyRecordResponse.model_validate(r) for r in records]}
