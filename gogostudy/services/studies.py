"""
services/studies.py

스터디 관리 및 멤버십 승인 워크플로우 비즈니스 로직.

주요 기능:
- 스터디 생성 (스터디 + LEADER 멤버 행을 한 트랜잭션에서 생성)
- 스터디 목록 / 상세 / 수정 / 상태 변경 / 삭제(연쇄 삭제)
- 가입 신청, 승인 / 거절 / 대기 전환 (정원 검사는 승인 시점)
- 멤버 강퇴, 자진 탈퇴, 멤버 목록, 내 스터디 목록
- 리더 / 관리자 / 승인 멤버 권한 검사 (출석 서비스에서도 사용)

멤버십 상태 전이:
    NONE -> PENDING -> APPROVED | REJECTED
    APPROVED -> REJECTED | PENDING,  REJECTED -> PENDING
    LEADER 행은 생성 이후 변경 / 삭제 불가

설계 원칙:
- HTTP / FastAPI 의존성 없음, 실패는 AppError로 전달
- 검사는 쓰기 전에 단순 조회로 수행 (row lock / version 컬럼 없음)
  -> 동시 승인 시 정원을 넘을 수 있는 경쟁 구간이 존재

관련 파일:
- gogostudy.models.study       : Study / StudyMember 모델
- gogostudy.routers.studies    : 스터디 API
- gogostudy.services.attendance: 권한 검사 재사용

"""

import logging
import math
import uuid

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gogostudy.core.errors import bad_request, conflict, database_error, forbidden, not_found
from gogostudy.models.attendance import AttendanceRecord, AttendanceSession
from gogostudy.models.study import MemberRole, MemberStatus, Study, StudyMember, StudyStatus
from gogostudy.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50

DEFAULT_SORT = "createdAt:desc"
_SORT_COLUMNS = {
    "createdAt": Study.created_at,
    "title": Study.title,
}
# 예전 클라이언트용 별칭
_SORT_ALIASES = {
    "newest": "createdAt:desc",
    "oldest": "createdAt:asc",
    "title": "title:asc",
}


# ---- 입력 파싱 ----

def _positive_int(raw) -> int | None:
    if raw is None:
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value >= 1 else None


def parse_pagination(page=None, page_size=None) -> tuple[int, int]:
    """
    page / pageSize 쿼리 파싱.

    - 숫자가 아니거나 1 미만이면 기본값 (1, 10)
    - pageSize 최대 50
    """
    page_num = _positive_int(page) or DEFAULT_PAGE
    size_num = _positive_int(page_size) or DEFAULT_PAGE_SIZE
    return page_num, min(size_num, MAX_PAGE_SIZE)


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size else 0


def parse_sort(raw: str | None):
    """'field:direction' 문자열을 (order_by 절, 정규화된 문자열)로 변환. 잘못된 값은 기본 정렬."""
    value = (raw or "").strip()
    value = _SORT_ALIASES.get(value, value)

    field, _, direction = value.partition(":")
    direction = direction.lower() or "asc"
    column = _SORT_COLUMNS.get(field)
    if column is None or direction not in ("asc", "desc"):
        field, direction = DEFAULT_SORT.split(":")
        column = _SORT_COLUMNS[field]

    clause = column.desc() if direction == "desc" else column.asc()
    return clause, f"{field}:{direction}"


def parse_member_status(raw) -> MemberStatus:
    try:
        return MemberStatus(str(raw).upper())
    except ValueError:
        raise bad_request(
            "status must be one of APPROVED, PENDING, REJECTED",
            code="INVALID_STATUS",
        )


def parse_study_status(raw) -> StudyStatus:
    try:
        return StudyStatus(str(raw).upper())
    except ValueError:
        raise bad_request(
            "status must be one of RECRUITING, CLOSED, INACTIVE, ARCHIVED",
            code="INVALID_STATUS",
        )


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)


# ---- 조회 / 권한 검사 ----

def get_study_or_404(db: Session, study_id: uuid.UUID) -> Study:
    study = db.get(Study, study_id)
    if not study:
        raise not_found("Study not found", code="STUDY_NOT_FOUND")
    return study


def find_membership(db: Session, study_id: uuid.UUID, user_id: uuid.UUID) -> StudyMember | None:
    return db.scalar(
        select(StudyMember).where(
            StudyMember.study_id == study_id,
            StudyMember.user_id == user_id,
        )
    )


def is_leader(study: Study, user: User) -> bool:
    return study.leader_id == user.id


def ensure_leader_or_admin(study: Study, user: User) -> None:
    if user.is_admin or is_leader(study, user):
        return
    raise forbidden("Only the study leader or admin can perform this action")


def ensure_approved_member(db: Session, study: Study, user: User) -> StudyMember | None:
    """
    승인 멤버(리더 포함) 또는 관리자만 통과.

    관리자는 멤버십 행이 없어도 통과하며 이때 None을 반환한다.
    """
    if user.is_admin:
        return None

    membership = find_membership(db, study.id, user.id)
    if membership and (membership.is_leader or membership.status == MemberStatus.APPROVED):
        return membership
    raise forbidden("Approved membership required for this study", code="NOT_A_MEMBER")


def count_approved(db: Session, study_id: uuid.UUID, *, exclude_user_id: uuid.UUID | None = None) -> int:
    stmt = select(func.count()).select_from(StudyMember).where(
        StudyMember.study_id == study_id,
        StudyMember.status == MemberStatus.APPROVED,
    )
    if exclude_user_id is not None:
        stmt = stmt.where(StudyMember.user_id != exclude_user_id)
    return db.scalar(stmt) or 0


# ---- 스터디 관리 ----

"""
스터디 생성

- 생성자가 LEADER / APPROVED 멤버로 같은 트랜잭션에서 등록됨
- 둘 중 하나라도 실패하면 전체 rollback

"""

def create_study(
    db: Session,
    leader: User,
    *,
    title: str,
    description: str,
    category: str | None = None,
    max_members: int | None = None,
) -> Study:
    study = Study(
        title=title.strip(),
        description=description.strip(),
        category=category.strip() if category else None,
        max_members=max_members,
        status=StudyStatus.RECRUITING,
        leader_id=leader.id,
    )
    try:
        db.add(study)
        db.flush()
        db.add(
            StudyMember(
                study_id=study.id,
                user_id=leader.id,
                member_role=MemberRole.LEADER,
                status=MemberStatus.APPROVED,
            )
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)

    db.refresh(study)
    logger.info("Study created study_id=%s leader_id=%s", study.id, leader.id)
    return study


def study_counts(db: Session, study_id: uuid.UUID) -> tuple[int, int]:
    """(멤버 행 수, 세션 수)"""
    members = db.scalar(
        select(func.count()).select_from(StudyMember).where(StudyMember.study_id == study_id)
    ) or 0
    sessions = db.scalar(
        select(func.count()).select_from(AttendanceSession).where(AttendanceSession.study_id == study_id)
    ) or 0
    return members, sessions


def list_studies(
    db: Session,
    *,
    keyword: str | None = None,
    category: str | None = None,
    status: str | None = None,
    page=None,
    page_size=None,
    sort: str | None = None,
) -> dict:
    page_num, size_num = parse_pagination(page, page_size)
    order_by, sort_value = parse_sort(sort)

    conditions = []
    if keyword and keyword.strip():
        pattern = f"%{keyword.strip().lower()}%"
        conditions.append(
            or_(
                func.lower(Study.title).like(pattern),
                func.lower(Study.description).like(pattern),
            )
        )
    if category and category.strip():
        conditions.append(func.lower(Study.category) == category.strip().lower())
    if status:
        conditions.append(Study.status == parse_study_status(status))

    total = db.scalar(select(func.count()).select_from(Study).where(*conditions)) or 0
    studies = db.scalars(
        select(Study)
        .where(*conditions)
        .order_by(order_by, Study.id)
        .offset((page_num - 1) * size_num)
        .limit(size_num)
    ).unique().all()

    return {
        "items": list(studies),
        "page": page_num,
        "page_size": size_num,
        "total": total,
        "total_pages": total_pages(total, size_num),
        "sort": sort_value,
    }


def update_study(
    db: Session,
    study: Study,
    actor: User,
    *,
    title: str | None = None,
    description: str | None = None,
    category: str | None = None,
    max_members: int | None = None,
    fields_set: set[str] | None = None,
) -> Study:
    ensure_leader_or_admin(study, actor)

    # 정원은 현재 승인 인원(리더 포함)보다 작게 줄일 수 없음
    if max_members is not None and count_approved(db, study.id) > max_members:
        raise conflict("maxMembers is below the current approved member count", code="STUDY_FULL")

    fields_set = fields_set or set()
    if title is not None:
        study.title = title.strip()
    if description is not None:
        study.description = description.strip()
    if "category" in fields_set:
        study.category = category.strip() if category else None
    if max_members is not None:
        study.max_members = max_members

    _commit(db)
    db.refresh(study)
    return study


def change_status(db: Session, study: Study, actor: User, status) -> Study:
    ensure_leader_or_admin(study, actor)
    study.status = parse_study_status(status)
    _commit(db)
    db.refresh(study)
    logger.info("Study status changed study_id=%s status=%s", study.id, study.status.value)
    return study


"""
스터디 삭제

- 출석 기록 -> 세션 -> 멤버십 -> 스터디 순서로 한 트랜잭션에서 삭제

"""

def delete_study(db: Session, study: Study, actor: User) -> None:
    ensure_leader_or_admin(study, actor)

    session_ids = select(AttendanceSession.id).where(AttendanceSession.study_id == study.id)
    try:
        db.execute(delete(AttendanceRecord).where(AttendanceRecord.session_id.in_(session_ids)))
        db.execute(delete(AttendanceSession).where(AttendanceSession.study_id == study.id))
        db.execute(delete(StudyMember).where(StudyMember.study_id == study.id))
        db.delete(study)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)

    logger.info("Study deleted study_id=%s by user_id=%s", study.id, actor.id)


# ---- 멤버십 ----

"""
가입 신청

- 리더 본인 / 이미 승인된 멤버는 409 ALREADY_JOINED
- 거절 / 대기 상태면 PENDING 으로 되돌림, 없으면 새로 생성
- 정원은 여기서 검사하지 않음 (승인 시점에 검사)

"""

def join(db: Session, study: Study, user: User) -> StudyMember:
    existing = find_membership(db, study.id, user.id)

    if is_leader(study, user) or (existing and existing.is_leader):
        raise conflict("Leader is already part of the study", code="ALREADY_JOINED")
    if existing and existing.status == MemberStatus.APPROVED:
        raise conflict("Already an approved member of this study", code="ALREADY_JOINED")

    if existing:
        existing.status = MemberStatus.PENDING
        membership = existing
    else:
        membership = StudyMember(
            study_id=study.id,
            user_id=user.id,
            member_role=MemberRole.MEMBER,
            status=MemberStatus.PENDING,
        )
        db.add(membership)

    _commit(db)
    db.refresh(membership)
    logger.info("Join requested study_id=%s user_id=%s", study.id, user.id)
    return membership


"""
멤버 상태 변경 (승인 / 대기 / 거절)

- 리더 또는 관리자만 가능
- 리더 행은 변경 불가
- 승인 시 정원(max_members)이 있으면 대상 본인을 제외한 승인 인원(리더 포함)으로 검사

"""

def set_member_status(db: Session, study: Study, actor: User, target_user_id: uuid.UUID, status) -> StudyMember:
    ensure_leader_or_admin(study, actor)
    new_status = parse_member_status(status)

    membership = find_membership(db, study.id, target_user_id)
    if not membership:
        raise not_found("Study member not found", code="MEMBER_NOT_FOUND")
    if membership.is_leader:
        raise bad_request("Leader membership cannot be changed", code="INVALID_OPERATION")

    if new_status == MemberStatus.APPROVED and study.max_members:
        approved = count_approved(db, study.id, exclude_user_id=target_user_id)
        if approved >= study.max_members:
            raise conflict("Study capacity is already full", code="STUDY_FULL")

    before = membership.status
    membership.status = new_status
    _commit(db)
    db.refresh(membership)

    logger.info(
        "Member status changed study_id=%s user_id=%s %s -> %s",
        study.id, target_user_id, before.value, new_status.value,
    )
    return membership


def remove_member(db: Session, study: Study, actor: User, target_user_id: uuid.UUID) -> None:
    ensure_leader_or_admin(study, actor)

    membership = find_membership(db, study.id, target_user_id)
    if not membership:
        raise not_found("Study member not found", code="MEMBER_NOT_FOUND")
    if membership.is_leader:
        raise bad_request("Leader cannot be removed from the study", code="INVALID_OPERATION")

    db.delete(membership)
    _commit(db)
    logger.info("Member removed study_id=%s user_id=%s", study.id, target_user_id)


def leave(db: Session, study: Study, user: User) -> None:
    membership = find_membership(db, study.id, user.id)
    if not membership:
        raise not_found("Study member not found", code="MEMBER_NOT_FOUND")
    if membership.is_leader:
        raise bad_request("Leader cannot leave the study", code="INVALID_OPERATION")

    db.delete(membership)
    _commit(db)
    logger.info("Member left study_id=%s user_id=%s", study.id, user.id)


def list_members(
    db: Session,
    study: Study,
    actor: User,
    *,
    status: str | None = None,
    page=None,
    page_size=None,
) -> dict:
    ensure_approved_member(db, study, actor)
    page_num, size_num = parse_pagination(page, page_size)

    conditions = [StudyMember.study_id == study.id]
    if status:
        conditions.append(StudyMember.status == parse_member_status(status))

    total = db.scalar(select(func.count()).select_from(StudyMember).where(*conditions)) or 0
    members = db.scalars(
        select(StudyMember)
        .where(*conditions)
        .order_by(StudyMember.joined_at.asc(), StudyMember.id)
        .offset((page_num - 1) * size_num)
        .limit(size_num)
    ).unique().all()

    return {
        "items": list(members),
        "page": page_num,
        "page_size": size_num,
        "total": total,
        "total_pages": total_pages(total, size_num),
    }


def list_my_studies(
    db: Session,
    user: User,
    *,
    role: str | None = None,
    status: str | None = None,
    member_status: str | None = None,
):
    """
    내가 멤버십을 가진 스터디 목록 -> [(Study, StudyMember)]

    - role          : 스터디에서의 내 역할 (LEADER | MEMBER)
    - status        : 스터디 상태 (RECRUITING | CLOSED | INACTIVE | ARCHIVED)
    - member_status : 내 멤버십 상태 (APPROVED | PENDING | REJECTED)
    """
    stmt = (
        select(Study, StudyMember)
        .join(StudyMember, StudyMember.study_id == Study.id)
        .where(StudyMember.user_id == user.id)
        .order_by(Study.created_at.desc())
    )
    if role:
        try:
            stmt = stmt.where(StudyMember.member_role == MemberRole(role.upper()))
        except ValueError:
            raise bad_request("role must be one of LEADER, MEMBER", code="INVALID_PAYLOAD")
    if status:
        stmt = stmt.where(Study.status == parse_study_status(status))
    if member_status:
        stmt = stmt.where(StudyMember.status == parse_member_status(member_status))

    return [(study, membership) for study, membership in db.execute(stmt).unique().all()]
