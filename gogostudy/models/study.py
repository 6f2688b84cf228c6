"""
study.py

스터디(Study)와 스터디 멤버십(StudyMember) 모델.

멤버십 규칙:
- (study_id, user_id) 는 고유 -> 사용자당 스터디별 멤버십 1개
- 스터디마다 LEADER 행은 정확히 1개이며 스터디 생성과 같은 트랜잭션에서 만들어진다
- LEADER 의 역할 / 상태는 이후 변경되지 않는다

상태 전이 (MEMBER):
    NONE -> PENDING -> APPROVED | REJECTED
    APPROVED -> REJECTED | PENDING,  REJECTED -> PENDING

"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gogostudy.db.base import Base
from gogostudy.models.common import utcnow
from gogostudy.models.user import User


class StudyStatus(str, Enum):
    RECRUITING = "RECRUITING"
    CLOSED = "CLOSED"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"


class MemberRole(str, Enum):
    LEADER = "LEADER"
    MEMBER = "MEMBER"


class MemberStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Study(Base):
    __tablename__ = "studies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    max_members: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[StudyStatus] = mapped_column(
        SAEnum(StudyStatus, name="study_status", native_enum=False, length=20),
        nullable=False,
        default=StudyStatus.RECRUITING,
    )

    leader_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    leader: Mapped[User] = relationship(lazy="joined")


class StudyMember(Base):
    __tablename__ = "study_members"
    __table_args__ = (
        UniqueConstraint("study_id", "user_id", name="uq_study_members_study_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    study_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("studies.id"), nullable=False, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    member_role: Mapped[MemberRole] = mapped_column(
        SAEnum(MemberRole, name="member_role", native_enum=False, length=20),
        nullable=False,
        default=MemberRole.MEMBER,
    )
    status: Mapped[MemberStatus] = mapped_column(
        SAEnum(MemberStatus, name="member_status", native_enum=False, length=20),
        nullable=False,
        default=MemberStatus.PENDING,
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    user: Mapped[User] = relationship(lazy="joined")
    study: Mapped[Study] = relationship()

    @property
    def is_leader(self) -> bool:
        return self.member_role == MemberRole.LEADER
