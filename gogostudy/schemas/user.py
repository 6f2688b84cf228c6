import uuid
from datetime import datetime

from pydantic import Field

from gogostudy.models.user import AuthProvider, Role, UserStatus
from gogostudy.schemas.common import CamelModel


# 🔹 유저 응답용 (password_hash 제외)
class UserResponse(CamelModel):
    id: uuid.UUID
    email: str
    name: str
    role: Role
    status: UserStatus
    provider: AuthProvider
    created_at: datetime
    updated_at: datetime


# 🔹 다른 응답 안에 들어가는 요약 정보
class UserSummary(CamelModel):
    id: uuid.UUID
    email: str
    name: str


class UpdateMeRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=64)


# 🔹 관리자 role 변경 요청용
class RoleUpdate(CamelModel):
    role: Role
