"""
admin_log.py

관리자(Admin) 행위 기록(Audit Log) 모델.

관리자가 사용자에게 수행한 권한 변경 / 비활성화 / 재활성화를
변경 전후 값과 함께 남긴다. 로그 행은 수정 / 삭제하지 않는다.

"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gogostudy.db.base import Base
from gogostudy.models.common import utcnow


class AdminAction(str, Enum):
    SET_ROLE = "SET_ROLE"
    DEACTIVATE_USER = "DEACTIVATE_USER"
    ACTIVATE_USER = "ACTIVATE_USER"


class AdminActionLog(Base):
    __tablename__ = "admin_action_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    actor_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    target_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)

    action: Mapped[AdminAction] = mapped_column(
        SAEnum(AdminAction, name="admin_action", native_enum=False, length=30),
        nullable=False,
    )

    before_value: Mapped[str | None] = mapped_column(String(20), nullable=True)
    after_value: Mapped[str | None] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
