"""
studies.py

스터디 및 멤버십 API 모음.

주요 기능:
- 스터디 생성 / 목록 / 상세 / 수정 / 상태 변경 / 삭제
- 내 스터디 목록 (내 역할 / 멤버십 상태 포함)
- 가입 신청, 멤버 상태 변경(승인 / 대기 / 거절), 강퇴, 자진 탈퇴
- 멤버 목록 (승인 멤버 / 리더 / 관리자)

설계 원칙:
- 권한 / 상태 검사는 services.studies 에서 수행하고 라우터는 응답 조립만 담당
- /studies/me 는 /studies/{study_id} 보다 먼저 선언

관련 파일:
- gogostudy.services.studies  : 멤버십 워크플로우
- gogostudy.schemas.study     : 요청 / 응답 스키마

"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gogostudy.core.deps import get_current_user, get_db
from gogostudy.models.study import Study
from gogostudy.models.user import User
from gogostudy.schemas.study import (
    MemberResponse,
    MembershipResponse,
    MyStudyResponse,
    StatusRequest,
    StudyCreate,
    StudyDetailResponse,
    StudyResponse,
    StudyUpdate,
)
from gogostudy.schemas.user import UserSummary
from gogostudy.services import studies as study_service

router = APIRouter(prefix="/studies", tags=["studies"])


def _detail(db: Session, study: Study) -> StudyDetailResponse:
    member_count, session_count = study_service.study_counts(db, study.id)
    return StudyDetailResponse(
        **StudyResponse.model_validate(study).model_dump(),
        leader=UserSummary.model_validate(study.leader),
        member_count=member_count,
        session_count=session_count,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_study(
    data: StudyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = study_service.create_study(
        db,
        current_user,
        title=data.title,
        description=data.description,
        category=data.category,
        max_members=data.max_members,
    )
    return {"study": _detail(db, study)}


"""
스터디 목록 API (공개)

- keyword  : 제목 / 설명 부분 일치
- category : 카테고리 일치 (대소문자 무시)
- sort     : createdAt:desc(기본) | createdAt:asc | title:asc | title:desc
- page / pageSize : 잘못된 값은 기본값, pageSize 최대 50

"""

@router.get("")
def list_studies(
    keyword: str | None = None,
    category: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    page: str | None = None,
    page_size: str | None = Query(None, alias="pageSize"),
    sort: str | None = None,
    db: Session = Depends(get_db),
):
    result = study_service.list_studies(
        db,
        keyword=keyword,
        category=category,
        status=status_filter,
        page=page,
        page_size=page_size,
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


"""
내 스터디 목록 API

- role         : LEADER | MEMBER (스터디에서의 내 역할)
- status       : 스터디 상태 (RECRUITING | CLOSED | INACTIVE | ARCHIVED)
- memberStatus : 내 멤버십 상태 (APPROVED | PENDING | REJECTED)

"""

@router.get("/me")
def my_studies(
    role: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    member_status: str | None = Query(None, alias="memberStatus"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = study_service.list_my_studies(
        db, current_user, role=role, status=status_filter, member_status=member_status
    )
    return {
        "studies": [
            MyStudyResponse(
                **StudyResponse.model_validate(study).model_dump(),
                member_role=membership.member_role,
                member_status=membership.status,
            )
            for study, membership in rows
        ]
    }


@router.get("/{study_id}")
def get_study(study_id: uuid.UUID, db: Session = Depends(get_db)):
    study = study_service.get_study_or_404(db, study_id)
    return {"study": _detail(db, study)}


@router.patch("/{study_id}")
def update_study(
    study_id: uuid.UUID,
    data: StudyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = study_service.get_study_or_404(db, study_id)
    study = study_service.update_study(
        db,
        study,
        current_user,
        title=data.title,
        description=data.description,
        category=data.category,
        max_members=data.max_members,
        fields_set=data.model_fields_set,
    )
    return {"study": _detail(db, study)}


@router.patch("/{study_id}/status")
def change_study_status(
    study_id: uuid.UUID,
    data: StatusRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = study_service.get_study_or_404(db, study_id)
    study = study_service.change_status(db, study, current_user, data.status)
    return {"study": StudyResponse.model_validate(study)}


@router.delete("/{study_id}")
def delete_study(
    study_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = study_service.get_study_or_404(db, study_id)
    study_service.delete_study(db, study, current_user)
    return {"success": True}


"""
가입 신청 API

- 신규 / 거절 / 대기 -> PENDING (201)
- 리더 또는 이미 승인된 멤버는 409 ALREADY_JOINED

"""

@router.post("/{study_id}/join", status_code=status.HTTP_201_CREATED)
def join_study(
    study_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = study_service.get_study_or_404(db, study_id)
    membership = study_service.join(db, study, current_user)
    return {"membership": MembershipResponse.model_validate(membership)}


@router.get("/{study_id}/members")
def list_members(
    study_id: uuid.UUID,
    status_filter: str | None = Query(None, alias="status"),
    page: str | None = None,
    page_size: str | None = Query(None, alias="pageSize"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = study_service.get_study_or_404(db, study_id)
    result = study_service.list_members(
        db, study, current_user, status=status_filter, page=page, page_size=page_size
    )
    return {
        "members": [MemberResponse.model_validate(m) for m in result["items"]],
        "page": result["page"],
        "pageSize": result["page_size"],
        "total": result["total"],
        "totalPages": result["total_pages"],
    }


"""
멤버 상태 변경 API (리더 / 관리자)

- status : APPROVED | PENDING | REJECTED (그 외 400 INVALID_STATUS)
- 정원 초과 승인은 409 STUDY_FULL
- 리더 대상은 400 INVALID_OPERATION

"""

@router.patch("/{study_id}/members/{user_id}/status")
def set_member_status(
    study_id: uuid.UUID,
    user_id: uuid.UUID,
    data: StatusRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = study_service.get_study_or_404(db, study_id)
    membership = study_service.set_member_status(db, study, current_user, user_id, data.status)
    return {"membership": MembershipResponse.model_validate(membership)}


@router.post("/{study_id}/members/leave")
def leave_study(
    study_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = study_service.get_study_or_404(db, study_id)
    study_service.leave(db, study, current_user)
    return {"success": True}


@router.delete("/{study_id}/members/{user_id}")
def remove_member(
    study_id: uuid.UUID,
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = study_service.get_study_or_404(db, study_id)
    study_service.remove_member(db, study, current_user, user_id)
    return {"success": True}
