import uuid
from datetime import datetime

from pydantic import Field

from gogostudy.models.study import MemberRole, MemberStatus, StudyStatus
from gogostudy.schemas.common import CamelModel
from gogostudy.schemas.user import UserSummary


class StudyCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category: str | None = Field(default=None, max_length=50)
    max_members: int | None = Field(default=None, ge=1)


class StudyUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, max_length=50)
    max_members: int | None = Field(default=None, ge=1)


# status 값 검증은 서비스 계층에서 (INVALID_STATUS)
class StatusRequest(CamelModel):
    status: str


class StudyResponse(CamelModel):
    id: uuid.UUID
    title: str
    description: str
    category: str | None
    max_members: int | None
    status: StudyStatus
    leader_id: uuid.UUID
    created_at: datetime


class StudyDetailResponse(StudyResponse):
    leader: UserSummary
    member_count: int
    session_count: int


class MyStudyResponse(StudyResponse):
    member_role: MemberRole
    member_status: MemberStatus


class MembershipResponse(CamelModel):
    id: uuid.UUID
    study_id: uuid.UUID
    user_id: uuid.UUID
    member_role: MemberRole
    status: MemberStatus
    joined_at: datetime


class MemberResponse(MembershipResponse):
    user: UserSummary
