import uuid
from datetime import datetime

from pydantic import Field

from gogostudy.models.attendance import AttendanceStatus
from gogostudy.schemas.common import CamelModel
from gogostudy.schemas.user import UserSummary


# date / status 값 검증은 서비스 계층에서 (INVALID_DATE / INVALID_STATUS)
class SessionCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    date: str


class SessionUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    date: str | None = None


class SessionResponse(CamelModel):
    id: uuid.UUID
    study_id: uuid.UUID
    title: str
    date: datetime
    created_at: datetime


class CheckInRequest(CamelModel):
    status: str


class BulkEntry(CamelModel):
    user_id: uuid.UUID
    status: str


class BulkAttendanceRequest(CamelModel):
    records: list[BulkEntry] = Field(min_length=1)


class RecordResponse(CamelModel):
    id: uuid.UUID
    session_id: uuid.UUID
    user_id: uuid.UUID
    status: AttendanceStatus
    recorded_at: datetime


class RecordWithUserResponse(RecordResponse):
    user: UserSummary


class StudyBrief(CamelModel):
    id: uuid.UUID
    title: str


class SessionWithStudyResponse(SessionResponse):
    study: StudyBrief


class MyRecordResponse(RecordResponse):
    session: SessionWithStudyResponse
