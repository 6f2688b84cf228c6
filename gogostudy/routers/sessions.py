"""
sessions.py

출석 세션 및 출석 체크 API 모음.

주요 기능:
- 세션 생성 / 목록 / 수정 / 삭제
- 본인 출석 체크 (같은 세션 재제출 시 기존 기록 교체)
- 리더 일괄 출석 입력
- 세션별 출석 기록 조회 (스터디 경로 / 세션 단독 경로)

관련 파일:
- gogostudy.services.attendance  : 세션 / 출석 비즈니스 로직
- gogostudy.schemas.attendance   : 요청 / 응답 스키마

"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gogostudy.core.deps import get_current_user, get_db
from gogostudy.models.user import User
from gogostudy.schemas.attendance import (
    BulkAttendanceRequest,
    CheckInRequest,
    RecordResponse,
    RecordWithUserResponse,
    SessionCreate,
    SessionResponse,
    SessionUpdate,
)
from gogostudy.services import attendance as attendance_service
from gogostudy.services.studies import get_study_or_404

router = APIRouter(tags=["sessions"])


def _records_payload(session, records) -> dict:
    return {
        "sessionId": session.id,
        "studyId": session.study_id,
        "records": [RecordWithUserResponse.model_validate(r) for r in records],
    }


"""
세션 생성 API (리더 / 관리자)

- date 는 ISO-8601 (예: 2025-01-05T10:00:00Z), 아니면 400 INVALID_DATE

"""

@router.post("/studies/{study_id}/sessions", status_code=status.HTTP_201_CREATED)
def create_session(
    study_id: uuid.UUID,
    data: SessionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = get_study_or_404(db, study_id)
    session = attendance_service.create_session(db, study, current_user, title=data.title, date=data.date)
    return {"session": SessionResponse.model_validate(session)}


@router.get("/studies/{study_id}/sessions")
def list_sessions(
    study_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = get_study_or_404(db, study_id)
    sessions = attendance_service.list_sessions(db, study, current_user)
    return {"sessions": [SessionResponse.model_validate(s) for s in sessions]}


@router.patch("/studies/{study_id}/sessions/{session_id}")
def update_session(
    study_id: uuid.UUID,
    session_id: uuid.UUID,
    data: SessionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = get_study_or_404(db, study_id)
    session = attendance_service.get_session_or_404(db, session_id, study.id)
    session = attendance_service.update_session(
        db, study, session, current_user, title=data.title, date=data.date
    )
    return {"session": SessionResponse.model_validate(session)}


@router.delete("/studies/{study_id}/sessions/{session_id}")
def delete_session(
    study_id: uuid.UUID,
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = get_study_or_404(db, study_id)
    session = attendance_service.get_session_or_404(db, session_id, study.id)
    attendance_service.delete_session(db, study, session, current_user)
    return {"success": True}


"""
출석 체크 API (본인)

- status : PRESENT | LATE | ABSENT (그 외 400 INVALID_STATUS)
- 승인 멤버가 아니면 403 NOT_A_MEMBER
- 항상 201, 기존 기록이 있으면 교체된 기록을 반환

"""

@router.post("/studies/{study_id}/sessions/{session_id}/attendance", status_code=status.HTTP_201_CREATED)
def check_in(
    study_id: uuid.UUID,
    session_id: uuid.UUID,
    data: CheckInRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = get_study_or_404(db, study_id)
    session = attendance_service.get_session_or_404(db, session_id, study.id)
    record = attendance_service.record_attendance(db, study, session, current_user, data.status)
    return {"record": RecordResponse.model_validate(record)}


@router.post("/studies/{study_id}/sessions/{session_id}/attendance/bulk", status_code=status.HTTP_201_CREATED)
def bulk_check_in(
    study_id: uuid.UUID,
    session_id: uuid.UUID,
    data: BulkAttendanceRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = get_study_or_404(db, study_id)
    session = attendance_service.get_session_or_404(db, session_id, study.id)
    records = attendance_service.record_bulk_attendance(
        db, study, session, current_user, [(r.user_id, r.status) for r in data.records]
    )
    return {
        "sessionId": session.id,
        "records": [RecordWithUserResponse.model_validate(r) for r in records],
    }


@router.get("/studies/{study_id}/sessions/{session_id}/attendance")
def list_attendance(
    study_id: uuid.UUID,
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = get_study_or_404(db, study_id)
    session = attendance_service.get_session_or_404(db, session_id, study.id)
    records = attendance_service.list_attendance(db, study, session, current_user)
    return _records_payload(session, records)


# 세션 id 만으로 조회 (스터디 id 없이)
@router.get("/sessions/{session_id}/attendance")
def list_attendance_by_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = attendance_service.get_session_or_404(db, session_id)
    study = get_study_or_404(db, session.study_id)
    records = attendance_service.list_attendance(db, study, session, current_user)
    return _records_payload(session, records)
