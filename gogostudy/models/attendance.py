"""
attendance.py

출석 세션(AttendanceSession)과 출석 기록(AttendanceRecord) 모델.

- 세션은 스터디 리더(또는 ADMIN)만 생성
- 기록은 (session_id, user_id) 당 1개를 유지한다.
  DB 제약이 아니라 "조회 후 update / insert" 로 유지되므로
  같은 사용자의 동시 중복 제출에는 안전하지 않다.

"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gogostudy.db.base import Base
from gogostudy.models.common import utcnow
from gogostudy.models.study import Study
from gogostudy.models.user import User


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"


class AttendanceSession(Base):
    __tablename__ = "attendance_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    study_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("studies.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    study: Mapped[Study] = relationship()


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        Index("ix_attendance_records_session_user", "session_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    session_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("attendance_sessions.id"), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    status: Mapped[AttendanceStatus] = mapped_column(
        SAEnum(AttendanceStatus, name="attendance_status", native_enum=False, length=20),
        nullable=False,
    )
    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    session: Mapped[AttendanceSession] = relationship()
    user: Mapped[User] = relationship(lazy="joined")
