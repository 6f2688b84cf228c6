"""
services/attendance.py

출석 세션 / 출석 체크 / 출석 통계 비즈니스 로직.

주요 기능:
- 세션 생성 / 수정 / 삭제 / 목록 (리더 또는 관리자)
- 본인 출석 체크 (승인 멤버만, 같은 세션 재제출 시 기존 기록 교체)
- 리더 일괄 출석 입력
- 세션별 출석 기록 조회
- 스터디 / 사용자별 출석 요약 (선택적 기간 [from, to])
- 내 출석 기록, 내보내기용 행 조회

출석률:
    round((PRESENT + LATE) / 스터디 전체 세션 수 * 100, 2), 세션이 없으면 0
    (분모는 기간 필터와 무관하게 전체 세션 수)

설계 원칙:
- (session, user) 당 기록 1개는 "조회 후 update / insert" 로 유지
  -> 같은 사용자의 동시 제출에는 경쟁 구간이 존재
- date / status 입력 검증은 여기서 수행 (INVALID_DATE / INVALID_STATUS)

관련 파일:
- gogostudy.models.attendance : AttendanceSession / AttendanceRecord
- gogostudy.services.studies  : 권한 검사
- gogostudy.routers.sessions  : 세션 / 출석 API

"""

import logging
import re
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gogostudy.core.errors import bad_request, database_error, forbidden, not_found
from gogostudy.models.attendance import AttendanceRecord, AttendanceSession, AttendanceStatus
from gogostudy.models.common import utcnow
from gogostudy.models.study import MemberStatus, Study, StudyMember
from gogostudy.models.user import User
from gogostudy.services.studies import (
    ensure_approved_member,
    ensure_leader_or_admin,
    find_membership,
)

logger = logging.getLogger(__name__)

# "+0900" 형태 오프셋 (Python 3.10 fromisoformat 은 "+09:00" 만 허용)
_COMPACT_OFFSET = re.compile(r"([T ].*[+-]\d{2})(\d{2})$")


# ---- 입력 파싱 ----

def parse_instant(raw, label: str = "date") -> datetime:
    """
    ISO-8601 문자열 -> tz 없는 UTC datetime.

    - '2024-01-05', '2024-01-05T10:00:00', '2024-01-05T10:00:00Z', '+09:00' / '+0900' 오프셋 허용
    - 오프셋이 없으면 UTC로 간주
    """
    if isinstance(raw, datetime):
        value = raw
    else:
        text = str(raw or "").strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _COMPACT_OFFSET.sub(r"\1:\2", text)
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise bad_request(f"{label} must be an ISO-8601 date", code="INVALID_DATE")

    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_range(date_from=None, date_to=None) -> tuple[datetime | None, datetime | None]:
    start = parse_instant(date_from, "from") if date_from else None
    end = parse_instant(date_to, "to") if date_to else None
    return start, end


def parse_attendance_status(raw) -> AttendanceStatus:
    try:
        return AttendanceStatus(str(raw).upper())
    except ValueError:
        raise bad_request("status must be one of PRESENT, LATE, ABSENT", code="INVALID_STATUS")


def attendance_rate(present: int, late: int, total_sessions: int) -> float:
    if total_sessions <= 0:
        return 0
    return round((present + late) / total_sessions * 100, 2)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)


# ---- 세션 ----

def get_session_or_404(db: Session, session_id: uuid.UUID, study_id: uuid.UUID | None = None) -> AttendanceSession:
    session = db.get(AttendanceSession, session_id)
    if not session or (study_id is not None and session.study_id != study_id):
        raise not_found("Attendance session not found", code="SESSION_NOT_FOUND")
    return session


def create_session(db: Session, study: Study, actor: User, *, title: str, date) -> AttendanceSession:
    ensure_leader_or_admin(study, actor)
    when = parse_instant(date)

    session = AttendanceSession(study_id=study.id, title=title.strip(), date=when)
    db.add(session)
    _commit(db)
    db.refresh(session)
    logger.info("Session created session_id=%s study_id=%s", session.id, study.id)
    return session


def update_session(
    db: Session,
    study: Study,
    session: AttendanceSession,
    actor: User,
    *,
    title: str | None = None,
    date=None,
) -> AttendanceSession:
    ensure_leader_or_admin(study, actor)
    if title is not None:
        session.title = title.strip()
    if date is not None:
        session.date = parse_instant(date)
    _commit(db)
    db.refresh(session)
    return session


def delete_session(db: Session, study: Study, session: AttendanceSession, actor: User) -> None:
    ensure_leader_or_admin(study, actor)
    try:
        db.execute(delete(AttendanceRecord).where(AttendanceRecord.session_id == session.id))
        db.delete(session)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    logger.info("Session deleted session_id=%s study_id=%s", session.id, study.id)


def list_sessions(db: Session, study: Study, actor: User) -> list[AttendanceSession]:
    ensure_approved_member(db, study, actor)
    return list(
        db.scalars(
            select(AttendanceSession)
            .where(AttendanceSession.study_id == study.id)
            .order_by(AttendanceSession.date.desc(), AttendanceSession.created_at.desc())
        ).all()
    )


# ---- 출석 기록 ----

def _upsert_record(db: Session, session_id: uuid.UUID, user_id: uuid.UUID, status: AttendanceStatus) -> AttendanceRecord:
    record = db.scalar(
        select(AttendanceRecord).where(
            AttendanceRecord.session_id == session_id,
            AttendanceRecord.user_id == user_id,
        )
    )
    if record:
        record.status = status
        record.recorded_at = utcnow()
    else:
        record = AttendanceRecord(session_id=session_id, user_id=user_id, status=status)
        db.add(record)
    return record


"""
본인 출석 체크

- status 는 PRESENT / LATE / ABSENT
- 승인된 멤버십(리더 포함)이 있어야 함 (관리자도 멤버가 아니면 불가)
- 같은 세션에 이미 기록이 있으면 그 기록을 교체

"""

def record_attendance(db: Session, study: Study, session: AttendanceSession, user: User, status) -> AttendanceRecord:
    new_status = parse_attendance_status(status)

    membership = find_membership(db, study.id, user.id)
    if not membership or not (membership.is_leader or membership.status == MemberStatus.APPROVED):
        raise forbidden("Approved membership required for this study", code="NOT_A_MEMBER")

    record = _upsert_record(db, session.id, user.id, new_status)
    _commit(db)
    db.refresh(record)
    return record


"""
일괄 출석 입력 (리더 / 관리자)

- 모든 대상이 해당 스터디의 승인 멤버여야 함 (아니면 400 INVALID_MEMBERS)
- 같은 사용자가 여러 번 나오면 마지막 값이 남음
- 전체가 한 트랜잭션

"""

def record_bulk_attendance(
    db: Session,
    study: Study,
    session: AttendanceSession,
    actor: User,
    entries: list[tuple[uuid.UUID, str]],
) -> list[AttendanceRecord]:
    ensure_leader_or_admin(study, actor)

    parsed = [(user_id, parse_attendance_status(status)) for user_id, status in entries]
    user_ids = {user_id for user_id, _ in parsed}

    approved = set(
        db.scalars(
            select(StudyMember.user_id).where(
                StudyMember.study_id == study.id,
                StudyMember.user_id.in_(list(user_ids)),
                StudyMember.status == MemberStatus.APPROVED,
            )
        ).all()
    )
    missing = user_ids - approved
    if missing:
        raise bad_request(
            "All users must be approved members of the study",
            code="INVALID_MEMBERS",
            details={"userIds": sorted(str(u) for u in missing)},
        )

    try:
        for user_id, status in parsed:
            _upsert_record(db, session.id, user_id, status)
            db.flush()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)

    logger.info("Bulk attendance session_id=%s count=%d", session.id, len(parsed))
    return list_records(db, session.id)


def list_records(db: Session, session_id: uuid.UUID) -> list[AttendanceRecord]:
    return list(
        db.scalars(
            select(AttendanceRecord)
            .where(AttendanceRecord.session_id == session_id)
            .order_by(AttendanceRecord.recorded_at.desc())
        ).unique().all()
    )


def list_attendance(db: Session, study: Study, session: AttendanceSession, actor: User) -> list[AttendanceRecord]:
    ensure_leader_or_admin(study, actor)
    return list_records(db, session.id)


def my_attendance(db: Session, user: User) -> list[AttendanceRecord]:
    return list(
        db.scalars(
            select(AttendanceRecord)
            .join(AttendanceSession, AttendanceSession.id == AttendanceRecord.session_id)
            .where(AttendanceRecord.user_id == user.id)
            .order_by(AttendanceSession.date.desc())
        ).unique().all()
    )


# ---- 통계 ----

def count_sessions(db: Session, study_id: uuid.UUID) -> int:
    return db.scalar(
        select(func.count()).select_from(AttendanceSession).where(AttendanceSession.study_id == study_id)
    ) or 0


def _grouped_counts(db: Session, study_id: uuid.UUID, start, end, user_id: uuid.UUID | None = None):
    """(user_id, status, count) 행. 세션 날짜가 [start, end] 안인 기록만."""
    stmt = (
        select(AttendanceRecord.user_id, AttendanceRecord.status, func.count())
        .join(AttendanceSession, AttendanceSession.id == AttendanceRecord.session_id)
        .where(AttendanceSession.study_id == study_id)
        .group_by(AttendanceRecord.user_id, AttendanceRecord.status)
    )
    if start is not None:
        stmt = stmt.where(AttendanceSession.date >= start)
    if end is not None:
        stmt = stmt.where(AttendanceSession.date <= end)
    if user_id is not None:
        stmt = stmt.where(AttendanceRecord.user_id == user_id)
    return db.execute(stmt).all()


def _empty_counts() -> dict:
    return {"total": 0, **{s.value: 0 for s in AttendanceStatus}}


def study_summary(db: Session, study: Study, actor: User, *, date_from=None, date_to=None) -> dict:
    ensure_leader_or_admin(study, actor)
    start, end = parse_range(date_from, date_to)

    total_sessions = count_sessions(db, study.id)
    summary = _empty_counts()
    per_user: dict[uuid.UUID, dict] = {}

    for user_id, status, count in _grouped_counts(db, study.id, start, end):
        summary[status.value] += count
        summary["total"] += count
        per_user.setdefault(user_id, _empty_counts())
        per_user[user_id][status.value] += count
        per_user[user_id]["total"] += count

    users = {}
    if per_user:
        users = {u.id: u for u in db.scalars(select(User).where(User.id.in_(list(per_user)))).all()}

    members = []
    for user_id, counts in per_user.items():
        members.append({
            "user": users.get(user_id),
            "present": counts["PRESENT"],
            "late": counts["LATE"],
            "absent": counts["ABSENT"],
            "attendance_rate": attendance_rate(counts["PRESENT"], counts["LATE"], total_sessions),
        })
    members.sort(key=lambda m: (m["user"].name if m["user"] else ""))

    return {
        "study_id": study.id,
        "total_sessions": total_sessions,
        "summary": summary,
        "members": members,
    }


def user_summary(
    db: Session,
    study: Study,
    actor: User,
    target_user_id: uuid.UUID,
    *,
    date_from=None,
    date_to=None,
) -> dict:
    if not (actor.is_admin or study.leader_id == actor.id or actor.id == target_user_id):
        raise forbidden("Only the study leader, admin or the user can view this summary")
    start, end = parse_range(date_from, date_to)

    total_sessions = count_sessions(db, study.id)
    summary = _empty_counts()
    for _, status, count in _grouped_counts(db, study.id, start, end, user_id=target_user_id):
        summary[status.value] += count
        summary["total"] += count

    return {
        "study_id": study.id,
        "user_id": target_user_id,
        "total_sessions": total_sessions,
        "summary": summary,
        "attendance_rate": attendance_rate(summary["PRESENT"], summary["LATE"], total_sessions),
    }


def export_rows(db: Session, study: Study, actor: User):
    """내보내기용 (세션, 기록) 목록. 세션 날짜 -> 사용자 이름 순."""
    ensure_leader_or_admin(study, actor)
    rows = db.execute(
        select(AttendanceSession, AttendanceRecord)
        .join(AttendanceRecord, AttendanceRecord.session_id == AttendanceSession.id)
        .join(User, User.id == AttendanceRecord.user_id)
        .where(AttendanceSession.study_id == study.id)
        .order_by(AttendanceSession.date.asc(), User.name.asc())
    ).unique().all()
    return [(session, record) for session, record in rows]
